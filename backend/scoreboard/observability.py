"""Logfire observability initialization and instrumentation."""

import logging

import logfire

from scoreboard import __version__
from scoreboard.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app=None) -> bool:
    """
    Initialize Logfire once at startup.

    Instruments the feed's HTTPX client, bridges Python logging, and, when a
    FastAPI app is passed, the dashboard API. Observability is optional: a
    missing token or any setup failure only logs a warning.

    Returns:
        True if Logfire was configured.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="scoreboard",
            service_version=__version__,
        )

        logfire.instrument_httpx()

        if app is not None:
            logfire.instrument_fastapi(app)

        logging.getLogger().addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
