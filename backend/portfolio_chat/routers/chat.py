import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from portfolio_chat.config import Settings
from portfolio_chat.dependencies import (
    enforce_rate_limit,
    get_app_settings,
    get_chat_service,
)
from portfolio_chat.errors import ChatAPIError, ClientError, CompletionNotConfigured
from portfolio_chat.models.chat import ChatResponse, ErrorResponse, RateLimitErrorResponse
from portfolio_chat.services.chat import ChatService
from portfolio_chat.services.input_validator import validate_chat_payload
from portfolio_chat.services.rate_limiter import RateLimitResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


async def read_json_body(request: Request, max_bytes: int) -> Any:
    """Read the request body in chunks, giving up once it passes max_bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise ClientError("Request body too large", status_code=413)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise ClientError("Request body too large", status_code=413)

    try:
        return json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ClientError()


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        429: {"model": RateLimitErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def chat(
    request: Request,
    rate_limit: RateLimitResult = Depends(enforce_rate_limit),
    settings: Settings = Depends(get_app_settings),
    chat_service: ChatService = Depends(get_chat_service),
):
    headers = rate_limit.headers()

    body = await read_json_body(request, settings.max_request_body_bytes)
    validation = validate_chat_payload(
        body,
        max_message_length=settings.max_message_length,
        max_session_id_length=settings.max_session_id_length,
    )
    if not validation.valid:
        raise ClientError(validation.error_message, headers=headers)

    if not chat_service.configured:
        raise CompletionNotConfigured(headers=headers)

    sanitized = validation.sanitized
    try:
        return await chat_service.reply(sanitized.session_id, sanitized.message)
    except ChatAPIError as e:
        e.headers = {**headers, **e.headers}
        raise


@router.api_route(
    "/chat",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def chat_method_not_allowed():
    raise ClientError("Method not allowed", status_code=405, headers={"Allow": "POST, OPTIONS"})
