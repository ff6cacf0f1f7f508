"""Folio server entry point."""

import logging

from aiohttp import web

from folio.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the chat API on the configured host and port."""
    from folio.server import create_app

    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is empty: every chat turn will use the fallback reply")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is empty: retrieval and ingestion will fail")

    logger.info(
        "Starting Folio on %s:%d with model %s...",
        settings.server_host,
        settings.server_port,
        settings.chat_model,
    )
    web.run_app(create_app(), host=settings.server_host, port=settings.server_port, print=None)


if __name__ == "__main__":
    main()
