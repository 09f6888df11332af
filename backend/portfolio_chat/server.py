import logging

import uvicorn

from portfolio_chat.dependencies import get_settings
from portfolio_chat.main import create_app

logger = logging.getLogger(__name__)

app = create_app()


def main() -> None:
    """Run the standalone server: chat API plus static files."""
    settings = get_settings()
    logger.info("Starting portfolio chat on http://%s:%d", settings.host, settings.port)
    uvicorn.run(
        "portfolio_chat.server:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
