from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class SanitizedChat(BaseModel):
    message: str
    session_id: str = "default"


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    show_project: str | None = Field(default=None, alias="showProject")
    project_data: dict | None = Field(default=None, alias="projectData")


class ErrorResponse(BaseModel):
    error: str


class RateLimitErrorResponse(ErrorResponse):
    retry_after: int = Field(alias="retryAfter")
