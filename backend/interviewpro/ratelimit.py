"""Per-client request limits on top of slowapi.

One process-wide ``limiter`` holds the counters (fixed window, in memory).
The limit values are read through ``rate_limits`` on every request, so the
app factory can apply the configured numbers after the routes are decorated.
"""
import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger("interviewpro.ratelimit")

API_LIMIT_MESSAGE = "Too many requests, please try again later."
AI_LIMIT_MESSAGE = "Too many AI requests, please try again later."
TTS_LIMIT_MESSAGE = "Too many TTS requests, please try again later."


def client_key(request) -> str:
    """Address to count requests against.

    Behind a trusted proxy the last ``X-Forwarded-For`` hop is the one the
    proxy appended; everything left of it is client supplied.
    """
    settings = request.app.state.settings
    if settings.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if hops:
            return hops[-1]
    return get_remote_address(request)


def per_window(count: int, seconds: int) -> str:
    return f"{count} per {seconds} second"


class RateLimits:
    def __init__(self):
        self.api = per_window(100, 15 * 60)
        self.ai = per_window(20, 60)
        self.tts = per_window(30, 60)

    def configure(self, settings) -> None:
        self.api = per_window(settings.api_rate_limit, settings.api_rate_window)
        self.ai = per_window(settings.ai_rate_limit, settings.ai_rate_window)
        self.tts = per_window(settings.tts_rate_limit, settings.tts_rate_window)
        logger.debug("Rate limits: api=%s ai=%s tts=%s", self.api, self.ai, self.tts)

    def api_limit(self) -> str:
        return self.api

    def ai_limit(self) -> str:
        return self.ai

    def tts_limit(self) -> str:
        return self.tts


rate_limits = RateLimits()

limiter = Limiter(key_func=client_key, strategy="fixed-window", storage_uri="memory://")

# Every /api endpoint except health draws from one bucket per client
api_limit = limiter.shared_limit(rate_limits.api_limit, scope="api", error_message=API_LIMIT_MESSAGE)
ai_limit = limiter.shared_limit(rate_limits.ai_limit, scope="ai", error_message=AI_LIMIT_MESSAGE)
tts_limit = limiter.shared_limit(rate_limits.tts_limit, scope="tts", error_message=TTS_LIMIT_MESSAGE)
