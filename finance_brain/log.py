"""
Structured Logging

Every component logs through structlog with snake_case event names and
keyword context, e.g. ``logger.error("scan_failed", type_tag="expense")``.

Logging is configured once at import with sensible defaults. Call
configure_from_settings() at startup, before the first log call, to apply
the level and renderer from FinanceSettings.
"""

import logging
import sys
from typing import Optional

import structlog

from finance_brain.config import FinanceSettings, get_settings


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """Configure stdlib logging and structlog processors."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: Optional[FinanceSettings] = None) -> None:
    """Configure logging from FinanceSettings (cached settings by default)."""
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json=settings.log_json)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to a module name."""
    return structlog.get_logger(name)


configure_logging()
