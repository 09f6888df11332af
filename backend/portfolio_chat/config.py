from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_CORS_ORIGINS = [
    "https://suedagul.com",
    "https://www.suedagul.com",
    "https://whyme.live",
    "https://www.whyme.live",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


class Settings(BaseSettings):
    openai_api_key: Optional[str] = None   # chat answers 503 without it
    redis_url: Optional[str] = None        # shared rate-limit store, in-memory if unset
    host: str = "0.0.0.0"
    port: int = 3000
    fe_host: Optional[str] = None          # appended to cors_origins when set
    cors_origins: List[str] = DEFAULT_CORS_ORIGINS
    cors_origin_regex: Optional[str] = r"https://[a-z0-9-]+\.vercel\.app"

    chat_model: str = "gpt-4o-mini"
    chat_max_tokens: int = 500
    chat_temperature: float = 0.7
    chat_history_limit: int = 10

    rate_limit_requests: int = 15
    rate_limit_window_seconds: int = 60
    rate_limit_block_seconds: int = 120
    rate_limit_cleanup_interval_seconds: int = 300
    rate_limit_prefix: str = "portfolio_chat"

    session_timeout_seconds: int = 30 * 60
    max_sessions: int = 1000
    session_cleanup_interval_seconds: int = 300

    max_message_length: int = 500
    max_session_id_length: int = 50
    max_request_body_bytes: int = 2048

    serve_static: bool = True
    static_dir: str = "./public"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.fe_host and self.fe_host not in self.cors_origins:
            self.cors_origins = [*self.cors_origins, self.fe_host]

    @property
    def ai_configured(self) -> bool:
        return bool(self.openai_api_key)
