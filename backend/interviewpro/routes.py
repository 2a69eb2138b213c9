import asyncio
import functools
import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from .errors import (
    BadUpstreamAudio,
    EmptyUpstreamResponse,
    GatewayError,
    InvalidInput,
    RequestTimeout,
    UpstreamError,
    UpstreamOverloaded,
    UpstreamUnavailable,
    mask_secret,
)
from .postprocess import contains_feedback, enforce_one_question, postprocess
from .progress import classify
from .prompts import (
    MOCK_INTERVIEW_PROMPT,
    QUICK_ANSWER_PROMPT,
    REAL_INTERVIEW_PROMPT,
    REAL_INTERVIEW_SEED,
    build_conversation,
    compose_system_prompt,
    interview_context,
)
from .ratelimit import ai_limit, api_limit, tts_limit
from .speech import MAX_AUDIO_BYTES, assemble_reply, synthesize_inline_audio, truncate_for_speech
from .validation import parse_interview_request, parse_quick_answer_request, parse_speech_request

logger = logging.getLogger("interviewpro.routes")

router = APIRouter()

MOCK_INTERVIEW_MAX_TOKENS = 1024
QUICK_ANSWER_MAX_TOKENS = 1024

AI_BUSY = "AI service is busy. Please try again in a moment."
TTS_BUSY = "TTS service is busy. Please try again in a moment."


def get_chat_service(request: Request):
    return request.app.state.chat_service


def get_speech_service(request: Request):
    return request.app.state.speech_service


async def read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise InvalidInput("Request body must be valid JSON")


def _remaining(request: Request) -> float:
    deadline = getattr(request.state, "deadline", None)
    if deadline is None:
        deadline = time.monotonic() + request.app.state.settings.request_timeout
        request.state.deadline = deadline
    return deadline - time.monotonic()


def _in_thread(func, *args):
    # Cancelling the future abandons the wait; the worker thread still runs to completion
    return asyncio.get_running_loop().run_in_executor(None, functools.partial(func, *args))


def _upstream_failure(request: Request, err: UpstreamError, label: str, busy: str, failure: str) -> GatewayError:
    settings = request.app.state.settings
    message = mask_secret(err.message, [settings.openai_api_key])
    logger.error("%s Error: %s", label, message)
    details = message if settings.show_error_details() else None
    if err.overloaded:
        return UpstreamOverloaded(busy, details)
    return UpstreamUnavailable(failure, details)


async def call_upstream(request: Request, func, *args, label: str, busy: str, failure: str):
    """Run a blocking upstream call off the event loop, bounded by the request deadline."""
    remaining = _remaining(request)
    if remaining <= 0:
        raise RequestTimeout()
    try:
        return await asyncio.wait_for(_in_thread(func, *args), timeout=remaining)
    except asyncio.TimeoutError:
        logger.warning("%s: request deadline exceeded while waiting on upstream", label)
        raise RequestTimeout()
    except UpstreamError as e:
        raise _upstream_failure(request, e, label, busy, failure)
    except GatewayError:
        raise
    except Exception as e:
        status = getattr(e, "status_code", None) or getattr(e, "status", None)
        wrapped = UpstreamError(str(e), status_code=status if isinstance(status, int) else None)
        raise _upstream_failure(request, wrapped, label, busy, failure)


async def inline_audio(request: Request, speech_service, text: str, voice):
    """Best-effort audio for a finished reply; never changes the reply's status."""
    if not voice:
        return None
    remaining = _remaining(request)
    if remaining <= 0:
        logger.warning("Inline TTS skipped: request deadline already reached")
        return None
    if await request.is_disconnected():
        logger.info("Client disconnected before speech synthesis; skipping audio")
        return None
    try:
        return await asyncio.wait_for(
            _in_thread(synthesize_inline_audio, speech_service, text, voice),
            timeout=remaining,
        )
    except asyncio.TimeoutError:
        logger.warning("Inline TTS dropped: request deadline reached")
        return None


# ============================================
# Health
# ============================================

@router.get("/")
def root(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "message": f"{settings.app_name} is running",
        "version": settings.app_version,
        "poweredBy": f"OpenAI {settings.chat_model} + {settings.tts_model}",
    }


@router.get("/api/health")
def health():
    return {"status": "ok"}


# ============================================
# Interview endpoints
# ============================================

@router.post("/api/real-interview")
@ai_limit
@api_limit
async def real_interview(request: Request, chat=Depends(get_chat_service), speech=Depends(get_speech_service)):
    interview = parse_interview_request(await read_json(request))

    tier = classify(interview.messages)
    system_prompt = compose_system_prompt(REAL_INTERVIEW_PROMPT, interview_context(interview), tier.directive)
    turns = build_conversation(interview.messages, REAL_INTERVIEW_SEED)
    logger.info("Real interview: tier=%s user_turns=%d max_tokens=%d", tier.name, tier.user_turn_count, tier.max_tokens)

    reply = await call_upstream(
        request, chat.complete, system_prompt, turns, tier.max_tokens,
        label="Real Interview", busy=AI_BUSY, failure="Failed to process interview. Please try again.",
    )
    if not reply.text:
        raise EmptyUpstreamResponse()

    feedback = contains_feedback(reply.text)
    if tier.expects_feedback and not feedback:
        logger.warning("Real interview: final turn reply has no feedback block")
    message = postprocess(reply.text, feedback)

    audio = None
    if not feedback:
        audio = await inline_audio(request, speech, message, interview.voice)
    return assemble_reply(message, reply.usage, audio, contains_feedback=feedback)


@router.post("/api/mock-interview")
@ai_limit
@api_limit
async def mock_interview(request: Request, chat=Depends(get_chat_service), speech=Depends(get_speech_service)):
    interview = parse_interview_request(await read_json(request), require_messages=True)

    system_prompt = compose_system_prompt(
        MOCK_INTERVIEW_PROMPT, interview_context(interview, include_interview_type=False)
    )
    turns = build_conversation(interview.messages)

    reply = await call_upstream(
        request, chat.complete, system_prompt, turns, MOCK_INTERVIEW_MAX_TOKENS,
        label="Mock Interview", busy=AI_BUSY, failure="Failed to process mock interview. Please try again.",
    )
    if not reply.text:
        raise EmptyUpstreamResponse()

    message = enforce_one_question(reply.text)
    audio = await inline_audio(request, speech, message, interview.voice)
    return assemble_reply(message, reply.usage, audio)


@router.post("/api/quick-answer")
@ai_limit
@api_limit
async def quick_answer(request: Request, chat=Depends(get_chat_service)):
    ask = parse_quick_answer_request(await read_json(request))

    system_prompt = compose_system_prompt(
        QUICK_ANSWER_PROMPT, [("Job Title", ask.job_title), ("Industry", ask.industry)]
    )
    turns = [{"role": "user", "content": f'How should I answer this interview question: "{ask.question}"'}]

    reply = await call_upstream(
        request, chat.complete, system_prompt, turns, QUICK_ANSWER_MAX_TOKENS,
        label="Quick Answer", busy=AI_BUSY, failure="Failed to generate answer. Please try again.",
    )
    if not reply.text:
        raise EmptyUpstreamResponse()
    return assemble_reply(reply.text, reply.usage, key="answer")


# ============================================
# Text-to-speech
# ============================================

@router.post("/api/tts")
@tts_limit
@api_limit
async def text_to_speech(request: Request, speech=Depends(get_speech_service)):
    """Synthesize ``text`` with one of the six OpenAI voices and return raw mp3."""
    ask = parse_speech_request(await read_json(request))
    text = truncate_for_speech(ask.text)
    logger.info("TTS: %d chars (original: %d), voice: %s", len(text), len(ask.text), ask.voice)

    audio = await call_upstream(
        request, speech.synthesize, text, ask.voice,
        label="TTS", busy=TTS_BUSY, failure="Failed to generate speech. Please try again.",
    )
    if not audio:
        raise BadUpstreamAudio("TTS returned empty audio. Please try again.")
    if len(audio) > MAX_AUDIO_BYTES:
        logger.error("TTS: Audio too large (%d bytes), rejecting", len(audio))
        raise BadUpstreamAudio("Generated audio too large. Please try shorter text.")

    logger.info("TTS Response: %d bytes", len(audio))
    return Response(content=audio, media_type="audio/mpeg", headers={"Cache-Control": "no-cache"})
