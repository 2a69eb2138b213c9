"""Error taxonomy shared by the validators, the upstream services and the routes.

Every error an endpoint can return is an ``HTTPException`` subclass so the
handlers registered in ``main`` can render them all the same way:
``{"error": detail}`` plus ``details`` when error details are exposed.
"""
import re

from fastapi import HTTPException

_KEY_PATTERN = re.compile(r"sk-[A-Za-z0-9_-]+")
REDACTED = "[REDACTED]"


class GatewayError(HTTPException):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None, details: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
        # Upstream text, only rendered when error details are exposed
        self.details = details


class InvalidInput(GatewayError):
    status_code = 400
    default_detail = "Invalid request"


class Unauthorized(GatewayError):
    status_code = 401
    default_detail = "Unauthorized"


class NotFound(GatewayError):
    status_code = 404
    default_detail = "Endpoint not found"


class RequestTimeout(GatewayError):
    status_code = 408
    default_detail = "Request timed out. Please try again."


class TooManyRequests(GatewayError):
    status_code = 429
    default_detail = "Too many requests, please try again later."


class UpstreamOverloaded(GatewayError):
    status_code = 429
    default_detail = "AI service is busy. Please try again in a moment."


class EmptyUpstreamResponse(GatewayError):
    status_code = 502
    default_detail = "AI returned an empty response. Please try again."


class BadUpstreamAudio(GatewayError):
    status_code = 502
    default_detail = "TTS returned unusable audio. Please try again."


class UpstreamUnavailable(GatewayError):
    status_code = 500
    default_detail = "Upstream service failed. Please try again."


class UpstreamError(Exception):
    """Raised by the upstream services; routes map it onto the taxonomy above."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def overloaded(self) -> bool:
        return self.status_code == 429


def mask_secret(text, secrets=()):
    """Replace API-key-looking substrings (and any known secret) with a placeholder."""
    if text is None:
        return ""
    text = str(text)
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return _KEY_PATTERN.sub(REDACTED, text)


def extract_error_message(response_data):
    try:
        err = response_data.get("error")
        if isinstance(err, dict):
            return err.get("message") or err.get("code") or str(err)
        if isinstance(err, str):
            return err
    except AttributeError:
        return str(response_data)
    return response_data.get("message") or response_data.get("detail") or str(response_data)
