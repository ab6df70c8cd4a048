"""
structlog setup for applications embedding the listing-upload core.

Library code only ever calls structlog.get_logger(); nothing here runs on
import. The host application calls configure_logging() once at start-up,
before creating a draft session.
"""
import logging

import structlog

from src.config import settings


def configure_logging(level: str = settings.log_level) -> None:
    """Route structlog output through a level filter taken from settings."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
