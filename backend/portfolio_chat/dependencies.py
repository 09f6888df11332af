import logging
from functools import lru_cache

from fastapi import Depends, Request, Response

from portfolio_chat.config import Settings
from portfolio_chat.errors import RateLimited
from portfolio_chat.services.chat import ChatService
from portfolio_chat.services.rate_limiter import RateLimiter, RateLimitResult
from portfolio_chat.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_client_ip(request: Request) -> str:
    """Best-effort client address, honouring the usual proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> RateLimitResult:
    """FastAPI dependency: admit the caller or raise 429.

    On admission the ``X-RateLimit-*`` headers are copied onto the response.

    Raises:
        RateLimited with ``Retry-After`` when the caller is over the limit.
    """
    client_ip = get_client_ip(request)
    result = await limiter.admit(f"ip:{client_ip}")

    if not result.allowed:
        logger.info(
            "Rate limit: %s blocked for %ss (%s)", client_ip, result.retry_after, result.source
        )
        raise RateLimited(result.retry_after, headers=result.headers())

    response.headers.update(result.headers())
    return result
