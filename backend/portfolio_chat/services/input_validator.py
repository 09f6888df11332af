from dataclasses import dataclass, field
from typing import Any

from portfolio_chat.models.chat import SanitizedChat
from portfolio_chat.utils.text import sanitize_session_id

# Object-internal names that must never appear as top-level payload keys.
RESERVED_KEYS = frozenset({"__proto__", "constructor", "prototype"})

INVALID_PAYLOAD = "Invalid request payload"


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    sanitized: SanitizedChat | None = None

    @property
    def error_message(self) -> str:
        return ". ".join(self.errors)


def validate_chat_payload(
    body: Any,
    max_message_length: int = 500,
    max_session_id_length: int = 50,
) -> ValidationResult:
    """Validate and normalise a decoded chat request body.

    Pure function: no I/O, no state. ``sanitized`` is only set when the
    payload is valid.
    """
    if not isinstance(body, dict):
        return ValidationResult(valid=False, errors=[INVALID_PAYLOAD])

    if RESERVED_KEYS.intersection(body):
        return ValidationResult(valid=False, errors=[INVALID_PAYLOAD])

    errors: list[str] = []
    message = body.get("message")

    if message is None or message == "":
        errors.append("Message is required")
    elif not isinstance(message, str):
        errors.append("Message must be a string")
    else:
        message = message.strip()
        if not message:
            errors.append("Message cannot be empty")
        elif len(message) > max_message_length:
            errors.append(f"Message too long. Maximum {max_message_length} characters.")

    session_id = "default"
    raw_session_id = body.get("sessionId")
    if raw_session_id is not None and raw_session_id != "":
        if not isinstance(raw_session_id, str):
            errors.append("Session ID must be a string")
        else:
            session_id = sanitize_session_id(raw_session_id, max_session_id_length)

    if errors:
        return ValidationResult(valid=False, errors=errors)

    return ValidationResult(
        valid=True,
        sanitized=SanitizedChat(message=message, session_id=session_id),
    )
