"""Entry point for the expense API server (pocketbudget-server)."""

import structlog

from pocketbudget.api import create_app
from pocketbudget.audit import configure_logging
from pocketbudget.config import get_settings

logger = structlog.get_logger(__name__)


def main() -> None:
    settings = get_settings()
    configure_logging(settings.app.log_level)

    app = create_app(settings=settings)
    logger.info("server_starting", host=settings.server.host, port=settings.server.port)
    app.run(
        host=settings.server.host,
        port=settings.server.port,
        debug=settings.app.debug_mode,
    )


if __name__ == "__main__":
    main()
