import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from portfolio_chat.config import Settings
from portfolio_chat.dependencies import get_settings
from portfolio_chat.errors import GENERIC_ERROR, register_exception_handlers
from portfolio_chat.routers import chat, static
from portfolio_chat.services.chat import ChatService
from portfolio_chat.services.origin_guard import SECURITY_HEADERS, OriginGuard
from portfolio_chat.services.rate_limiter import build_rate_limiter
from portfolio_chat.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start and stop the periodic sweeps owned by the stores."""
    await app.state.rate_limiter.start()
    await app.state.session_store.start()
    yield
    await app.state.session_store.stop()
    await app.state.rate_limiter.stop()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="Portfolio Chat", version="0.1.0", lifespan=lifespan)

    sessions = SessionStore(
        timeout_seconds=settings.session_timeout_seconds,
        max_sessions=settings.max_sessions,
        cleanup_interval_seconds=settings.session_cleanup_interval_seconds,
    )
    app.state.settings = settings
    app.state.session_store = sessions
    app.state.rate_limiter = build_rate_limiter(settings)
    app.state.chat_service = ChatService(settings, sessions)
    app.state.origin_guard = OriginGuard(settings.cors_origins, settings.cors_origin_regex)

    if not app.state.chat_service.configured:
        logger.warning("OPENAI_API_KEY not set, chat will answer 503")

    @app.middleware("http")
    async def origin_guard_middleware(request: Request, call_next):
        origin = request.headers.get("origin")
        headers = {**SECURITY_HEADERS, **request.app.state.origin_guard.cors_headers(origin)}

        # Preflight never reaches rate limiting or validation
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"error": GENERIC_ERROR}, headers=headers)

        response.headers.update(headers)
        return response

    register_exception_handlers(app)
    app.include_router(chat.router)

    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "ai": app.state.chat_service.configured,
            "rateLimiter": app.state.rate_limiter.source,
        }

    if settings.serve_static:
        app.include_router(static.router)

    return app

