"""Logging configuration for the PNL card service."""

import logging
import sys

from pnlcard.config import get_settings


def configure_logging() -> None:
    """
    Configure the root logger to write to stdout.

    Uses the level from settings and quiets the chatty HTTP, websocket
    and asyncio loggers so price feed traffic does not flood the console.
    """
    level = getattr(logging, get_settings().log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.info("Logging configured")
