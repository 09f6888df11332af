"""ASGI entry point for serverless hosts: the chat API without static files."""

from portfolio_chat.config import Settings
from portfolio_chat.main import create_app

app = create_app(Settings(serve_static=False))
