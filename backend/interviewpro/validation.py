"""Request validation and prompt-slot sanitization.

Everything here is pure: payloads come in as decoded JSON, validated request
models or ``InvalidInput`` come out. Validation always runs before any
upstream call so a bad request never costs tokens.
"""
import re

from .errors import InvalidInput
from .schemas import ConversationTurn, InterviewRequest, QuickAnswerRequest, SpeechRequest

MAX_JOB_TITLE_LENGTH = 200
MAX_MESSAGES = 100
MAX_MESSAGE_LENGTH = 10000
MAX_QUESTION_LENGTH = 2000
MAX_SPEECH_TEXT_LENGTH = 4096

VALID_VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")
DEFAULT_VOICE = "nova"

DEFAULT_INDUSTRY = "General"
DEFAULT_EXPERIENCE_LEVEL = "Mid-level"
DEFAULT_INTERVIEW_TYPE = "Behavioral and Technical"
DEFAULT_QUICK_ANSWER_JOB_TITLE = "Professional"

# C0 controls (newline, carriage return, tab included) and DEL
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def validate_string(value, max_length: int = 500) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0 and len(value) <= max_length


def sanitize_input(value) -> str:
    """Collapse control characters to spaces so a context field cannot open a new prompt line."""
    if not isinstance(value, str):
        return ""
    return _CONTROL_CHARS.sub(" ", value).strip()


def validate_messages(messages) -> bool:
    if not isinstance(messages, list):
        return False
    if len(messages) > MAX_MESSAGES:
        return False
    return all(
        isinstance(msg, dict)
        and isinstance(msg.get("role"), str)
        and isinstance(msg.get("content"), str)
        and len(msg["content"]) <= MAX_MESSAGE_LENGTH
        for msg in messages
    )


def normalize_messages(messages) -> tuple[ConversationTurn, ...]:
    # Anything the client calls a role other than "user" is replayed as the interviewer
    return tuple(
        ConversationTurn(role="user" if msg["role"] == "user" else "assistant", content=msg["content"])
        for msg in messages
    )


def _require_object(payload) -> dict:
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")
    return payload


def parse_interview_request(payload, require_messages: bool = False) -> InterviewRequest:
    payload = _require_object(payload)

    job_title = payload.get("jobTitle")
    if not validate_string(job_title, MAX_JOB_TITLE_LENGTH):
        raise InvalidInput("A valid job title is required")

    messages = payload.get("messages")
    if require_messages:
        if not validate_messages(messages) or not messages:
            raise InvalidInput("Valid messages array is required")
    elif messages is not None and not validate_messages(messages):
        raise InvalidInput("Invalid messages format")

    voice = payload.get("voice")
    return InterviewRequest(
        messages=normalize_messages(messages or []),
        job_title=sanitize_input(job_title),
        industry=sanitize_input(payload.get("industry")) or DEFAULT_INDUSTRY,
        experience_level=sanitize_input(payload.get("experienceLevel")) or DEFAULT_EXPERIENCE_LEVEL,
        interview_type=sanitize_input(payload.get("interviewType")) or DEFAULT_INTERVIEW_TYPE,
        voice=voice if isinstance(voice, str) and voice else None,
    )


def parse_quick_answer_request(payload) -> QuickAnswerRequest:
    payload = _require_object(payload)
    question = payload.get("question")
    if not validate_string(question, MAX_QUESTION_LENGTH):
        raise InvalidInput(f"A valid question is required (max {MAX_QUESTION_LENGTH} characters)")
    return QuickAnswerRequest(
        question=sanitize_input(question),
        job_title=sanitize_input(payload.get("jobTitle")) or DEFAULT_QUICK_ANSWER_JOB_TITLE,
        industry=sanitize_input(payload.get("industry")) or DEFAULT_INDUSTRY,
    )


def parse_speech_request(payload) -> SpeechRequest:
    payload = _require_object(payload)
    text = payload.get("text")
    if not validate_string(text, MAX_SPEECH_TEXT_LENGTH):
        raise InvalidInput(f"Text is required (max {MAX_SPEECH_TEXT_LENGTH} characters)")
    voice = payload.get("voice", DEFAULT_VOICE)
    if voice not in VALID_VOICES:
        raise InvalidInput("Invalid voice. Valid options: " + ", ".join(VALID_VOICES))
    return SpeechRequest(text=text, voice=voice)


def resolve_voice(voice) -> str:
    """Inline audio never rejects a voice; unknown ones use the default."""
    return voice if voice in VALID_VOICES else DEFAULT_VOICE
