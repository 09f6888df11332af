import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from portfolio_chat.models.chat import ChatMessage

logger = logging.getLogger(__name__)


@dataclass
class Session:
    session_id: str
    history: list[ChatMessage] = field(default_factory=list)
    last_access: float = 0.0


class SessionStore:
    """In-process conversation memory keyed by session id.

    History is append-only for the life of a session. Sessions go away when
    idle past ``timeout_seconds``; if the population is still above
    ``max_sessions`` after that, the least recently used half is evicted.
    Nothing survives a restart and nothing is shared between instances.
    """

    def __init__(
        self,
        timeout_seconds: int = 30 * 60,
        max_sessions: int = 1000,
        cleanup_interval_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_sessions = max_sessions
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._cleanup_task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id=session_id)
            self._sessions[session_id] = session
        session.last_access = self._clock()
        return session

    def append_turn(self, session: Session, user_message: str, assistant_message: str) -> None:
        session.history.append(ChatMessage(role="user", content=user_message))
        session.history.append(ChatMessage(role="assistant", content=assistant_message))
        session.last_access = self._clock()

    @staticmethod
    def recent(session: Session, n: int) -> list[ChatMessage]:
        if n <= 0:
            return []
        return list(session.history[-n:])

    def cleanup(self) -> int:
        """Run one sweep. Returns how many sessions were removed."""
        now = self._clock()
        expired = [
            key
            for key, session in self._sessions.items()
            if now - session.last_access > self.timeout_seconds
        ]
        for key in expired:
            del self._sessions[key]
        removed = len(expired)

        if len(self._sessions) > self.max_sessions:
            by_age = sorted(self._sessions.values(), key=lambda s: s.last_access)
            to_remove = len(by_age) // 2
            for session in by_age[:to_remove]:
                del self._sessions[session.session_id]
            removed += to_remove
            logger.warning(
                "Session store over capacity, evicted %d least recently used sessions",
                to_remove,
            )

        if removed:
            logger.info("Session sweep removed %d sessions, %d remain", removed, len(self._sessions))
        return removed

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval_seconds)
            try:
                self.cleanup()
            except Exception:
                logger.exception("Session sweep failed, skipping")

    async def start(self) -> None:
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None
