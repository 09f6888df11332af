import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Try again."


class ChatAPIError(Exception):
    """Error with a fixed, client-safe message.

    Rendered as ``{"error": message, **extra}``. The message is the only
    text a client ever sees; provider and internal detail stays in the logs.
    """

    status_code = 500
    message = GENERIC_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
        extra: dict | None = None,
    ):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers or {}
        self.extra = extra or {}
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message, **self.extra}


class ClientError(ChatAPIError):
    status_code = 400
    message = "Invalid request payload"


class RateLimited(ChatAPIError):
    status_code = 429

    def __init__(self, retry_after: int, *, headers: dict[str, str] | None = None):
        super().__init__(
            f"Too many requests. Try again in {retry_after} seconds.",
            headers=headers,
            extra={"retryAfter": retry_after},
        )
        self.retry_after = retry_after


class CompletionNotConfigured(ChatAPIError):
    status_code = 503
    message = "AI not configured. Use direct commands: help, projects, show [name]"


class ProviderAuthError(ChatAPIError):
    status_code = 500
    message = "API configuration error. Please try again later."


class ProviderOverload(ChatAPIError):
    status_code = 429
    message = "AI service is busy. Please try again in a moment."


class ProviderError(ChatAPIError):
    status_code = 500
    message = GENERIC_ERROR


async def chat_api_error_handler(request: Request, exc: ChatAPIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
        headers=exc.headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChatAPIError, chat_api_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
