"""Logging configuration for Discord Vault Sync.

Events are structlog key/value records on stderr: JSON in production,
coloured console lines in development.

Every event emitted during a sync run carries a ``sync_run_id`` key
(bound with :func:`bind_run_context`), so one run's page fetches, saved
notes and cursor writes can be grouped. Cursor and message ids are logged
as ``cursor`` and ``message_id``; the bot token is never logged.
"""

import logging
import sys
import uuid

import structlog

from discord_vault_sync.config import get_settings

RUN_ID_KEY = "sync_run_id"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "trafilatura")


def _renderer(development: bool) -> structlog.typing.Processor:
    if development:
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def setup_logging() -> None:
    """Configure structured logging from the runtime settings."""
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(settings.is_development),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # trafilatura and httpx log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_context() -> str:
    """Start tagging log events with a fresh run id and return it."""
    run_id = uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(**{RUN_ID_KEY: run_id})
    return run_id


def clear_run_context() -> None:
    """Stop tagging log events with the run id."""
    structlog.contextvars.unbind_contextvars(RUN_ID_KEY)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
