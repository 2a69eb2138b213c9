import hmac
import logging
import sys
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings as default_settings
from .errors import GatewayError, NotFound, TooManyRequests, Unauthorized
from .log import install_exception_hooks, setup_logging
from .ratelimit import limiter, rate_limits
from .routes import router as routes_router
from .upstream import ChatCompletionService, SpeechSynthesisService

logger = logging.getLogger("interviewpro")

# Reachable without the shared secret and never rate limited
PUBLIC_PATHS = {"/", "/api/health"}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Resource-Policy": "same-origin",
}

ENDPOINTS = (
    "POST /api/real-interview",
    "POST /api/mock-interview",
    "POST /api/quick-answer",
    "POST /api/tts",
)


def error_response(exc: StarletteHTTPException, settings: Settings) -> JSONResponse:
    if isinstance(exc, GatewayError):
        body = {"error": exc.detail}
        if exc.details and settings.show_error_details():
            body["details"] = exc.details
    elif exc.status_code == 404:
        body = {"error": NotFound.default_detail}
    else:
        body = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


def create_app(settings: Settings | None = None, chat_service=None, speech_service=None) -> FastAPI:
    """Build the gateway. Upstream services are created here once and shared by all requests."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not settings.openai_api_key:
            logger.error("OPENAI_API_KEY is not set; upstream calls will fail")
        logger.info(
            "%s v%s listening on port %s; endpoints: %s",
            settings.app_name, settings.app_version, settings.port, ", ".join(ENDPOINTS),
        )
        yield
        for service in (app.state.chat_service, app.state.speech_service):
            close = getattr(service, "close", None)
            if close:
                close()
        logger.info("Server closed.")

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.state.settings = settings
    app.state.chat_service = chat_service or ChatCompletionService(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.chat_model,
        temperature=settings.temperature,
        timeout=settings.upstream_timeout,
        max_retries=settings.upstream_max_retries,
    )
    app.state.speech_service = speech_service or SpeechSynthesisService(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.tts_model,
        timeout=settings.upstream_timeout,
        max_retries=settings.upstream_max_retries,
    )
    app.state.limiter = limiter
    rate_limits.configure(settings)

    @app.middleware("http")
    async def gateway_middleware(request: Request, call_next):
        request.state.deadline = time.monotonic() + settings.request_timeout
        path = request.url.path
        logger.info("%s %s", request.method, path)

        response = None
        if path.startswith("/api") and path not in PUBLIC_PATHS:
            if settings.api_secret and not hmac.compare_digest(
                request.headers.get("x-api-key", "").encode(), settings.api_secret.encode()
            ):
                response = error_response(Unauthorized(), settings)
        if response is None:
            response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # Added last so CORS preflight is answered before the secret check
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-API-Key"],
        max_age=86400,
    )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit %s exceeded on %s %s", exc.limit.limit, request.method, request.url.path)
        return error_response(TooManyRequests(exc.detail), settings)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc, settings)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled Error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(routes_router)
    return app


app = create_app()


def run() -> None:
    setup_logging(default_settings.log_level, secrets=[default_settings.openai_api_key, default_settings.api_secret])
    install_exception_hooks()
    if not default_settings.openai_api_key:
        logger.error("ERROR: OPENAI_API_KEY environment variable is required")
        sys.exit(1)
    uvicorn.run(
        app,
        host=default_settings.host,
        port=default_settings.port,
        proxy_headers=default_settings.trust_proxy,
        log_config=None,
        timeout_graceful_shutdown=10,
    )


if __name__ == "__main__":
    run()
