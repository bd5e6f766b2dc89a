"""Logging configuration for PingGraph application."""

import logging
import os
import sys

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging() -> None:
    """Configure application-wide logging.

    Respects PINGGRAPH_LOG_LEVEL environment variable (default: INFO).
    Logs to stderr with timestamp, level, module name, and message.

    Environment Variables:
        PINGGRAPH_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                             Default is INFO. Unknown values fall back to INFO.

    Examples:
        # Default INFO level
        $ python -m pinggraph

        # Every sampling cycle
        $ PINGGRAPH_LOG_LEVEL=DEBUG python -m pinggraph
    """
    log_level_str = os.environ.get("PINGGRAPH_LOG_LEVEL", "INFO").strip().upper()
    log_level = LOG_LEVELS.get(log_level_str, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.info("Logging configured: level=%s", logging.getLevelName(log_level))
