import logging

import openai
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from portfolio_chat.config import Settings
from portfolio_chat.errors import (
    ChatAPIError,
    CompletionNotConfigured,
    ProviderAuthError,
    ProviderError,
    ProviderOverload,
)
from portfolio_chat.knowledge import generate_system_prompt, get_project
from portfolio_chat.models.chat import ChatMessage, ChatResponse
from portfolio_chat.services.session_store import SessionStore
from portfolio_chat.utils.text import extract_show_project

logger = logging.getLogger(__name__)

OVERLOAD_STATUS_CODES = {503, 529}


def classify_provider_error(exc: Exception) -> ChatAPIError:
    """Map a completion-service failure onto a client-safe error."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderAuthError()
    if isinstance(exc, openai.RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota":
            return ProviderAuthError()
        return ProviderOverload()
    if isinstance(exc, openai.APIStatusError) and exc.status_code in OVERLOAD_STATUS_CODES:
        return ProviderOverload()
    return ProviderError()


class ChatService:
    def __init__(
        self,
        settings: Settings,
        sessions: SessionStore,
        llm: ChatOpenAI | None = None,
    ):
        self.settings = settings
        self.sessions = sessions
        if llm is None and settings.openai_api_key:
            llm = ChatOpenAI(
                model=settings.chat_model,
                max_tokens=settings.chat_max_tokens,
                temperature=settings.chat_temperature,
                openai_api_key=settings.openai_api_key,
            )
        self.llm = llm

    @property
    def configured(self) -> bool:
        return self.llm is not None

    def _build_messages(self, history: list[ChatMessage], message: str) -> list:
        """System persona, then recent history, then the new user message."""
        messages = [SystemMessage(content=generate_system_prompt())]

        for msg in history:
            if msg.role == "user":
                messages.append(HumanMessage(content=msg.content))
            elif msg.role == "assistant":
                messages.append(AIMessage(content=msg.content))

        messages.append(HumanMessage(content=message))
        return messages

    async def _complete(self, messages: list) -> str:
        try:
            result = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.exception("Completion service call failed")
            raise classify_provider_error(e) from e

        content = result.content
        if not isinstance(content, str):
            logger.error("Completion service returned non-text content: %r", content)
            raise ProviderError()
        return content

    async def reply(self, session_id: str, message: str) -> ChatResponse:
        if not self.configured:
            raise CompletionNotConfigured()

        session = self.sessions.get_or_create(session_id)
        history = self.sessions.recent(session, self.settings.chat_history_limit)
        messages = self._build_messages(history, message)

        raw_reply = await self._complete(messages)

        self.sessions.append_turn(session, message, raw_reply)

        clean_reply, show_project = extract_show_project(raw_reply)
        return ChatResponse(
            reply=clean_reply,
            show_project=show_project,
            project_data=get_project(show_project),
        )
