"""
Logging setup.

Ledger code logs structlog key/value events (``transaction_submitted``,
``checkout_approved``, ``balance_cas_retry`` ...). The same renderer is
installed on the root stdlib handler through ``ProcessorFormatter``, so
uvicorn and aiosqlite records land in one stream with one format: console
lines in development, JSON lines everywhere else.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from stockledger.config.settings import Settings, get_settings

# Libraries whose INFO chatter drowns out ledger events
_QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")

_handler: logging.Handler | None = None


class _ServiceIdentity:
    """Stamps each event with app name, version and environment."""

    def __init__(self, settings: Settings) -> None:
        self._fields = {
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        for key, value in self._fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def _render_chain(settings: Settings) -> list[Processor]:
    if settings.environment == "development":
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging(settings: Settings | None = None) -> None:
    """
    Route structlog and stdlib logging through one renderer.

    Safe to call more than once (app factory and manage.py both do); the
    handler installed by a previous call is replaced.
    """
    global _handler
    settings = settings or get_settings()

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _ServiceIdentity(settings),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_render_chain(settings),
        ],
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(formatter)
    root.addHandler(_handler)
    root.setLevel(settings.log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
