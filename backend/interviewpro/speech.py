"""Response assembly and best-effort inline speech.

Voice is an add-on: a failed synthesis drops the audio field and never
changes the status of the text response.
"""
import base64
import logging
from typing import Optional

from .validation import resolve_voice

logger = logging.getLogger("interviewpro.speech")

# Spoken text is capped tighter than chat text to bound synthesis cost and latency
MAX_SPEECH_CHARS = 1000
MAX_AUDIO_BYTES = 5 * 1024 * 1024


def truncate_for_speech(text: str) -> str:
    return text[:MAX_SPEECH_CHARS]


def synthesize_inline_audio(speech_service, text: str, voice) -> Optional[str]:
    """Return base64 mp3 for ``text`` or None; never raises."""
    if not voice:
        return None
    spoken = truncate_for_speech(text)
    try:
        audio = speech_service.synthesize(spoken, resolve_voice(voice))
    except Exception as e:
        logger.warning("Inline TTS failed (non-blocking): %s", e)
        return None
    if not audio:
        logger.warning("Inline TTS returned empty audio")
        return None
    logger.info("Inline TTS: %d chars -> %d bytes", len(spoken), len(audio))
    return base64.b64encode(audio).decode("ascii")


def assemble_reply(text: str, usage, audio_base64: Optional[str] = None, contains_feedback=None, key: str = "message") -> dict:
    payload = {"success": True, key: text}
    if contains_feedback is not None:
        payload["containsFeedback"] = contains_feedback
    payload["usage"] = usage.model_dump() if hasattr(usage, "model_dump") else dict(usage)
    if audio_base64:
        payload["audioBase64"] = audio_base64
    return payload
