import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from portfolio_chat.config import Settings
from portfolio_chat.main import create_app


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLLM:
    """Records prompts and answers with canned replies (or raises)."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or ["She builds things. Kind of her whole deal."])
        self.error = error
        self.calls: list[list] = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return AIMessage(content=reply)


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's environment."""
    values = {
        "openai_api_key": None,
        "redis_url": None,
        "fe_host": None,
        "serve_static": False,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def app(fake_llm):
    """Fresh application per test with the completion service faked out."""
    application = create_app(make_settings())
    application.state.chat_service.llm = fake_llm
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
