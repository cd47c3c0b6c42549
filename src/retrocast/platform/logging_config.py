"""Structured logging for RetroCast.

Everything logs through structlog; stdlib records from uvicorn and the Google
and AWS clients are rendered by the same pipeline. Rendering follows ``ENV``:
coloured console output in development, one JSON object per line otherwise.
``LOG_LEVEL`` sets the root level.

Inside a pipeline run, wrap the work in :func:`job_context` so every event
carries ``job_id`` and ``user_id`` without passing them to each call.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

import structlog

from retrocast.platform.config import get_settings

SERVICE_NAME = "retrocast"

_NOISY_LOGGERS = ("uvicorn.access", "botocore", "urllib3", "google.auth", "httpx")


def _add_service(_, __, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: str | None = None, env: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    ``level`` and ``env`` default to the ``LOG_LEVEL`` and ``ENV`` settings.
    Safe to call more than once; the root handler is replaced each time.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    env = env or settings.env

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if env == "development":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


@contextmanager
def job_context(job_id: str, user_id: str, **extra) -> Iterator[None]:
    """Bind ``job_id`` / ``user_id`` (plus *extra*) to every event in the block."""
    with structlog.contextvars.bound_contextvars(job_id=job_id, user_id=user_id, **extra):
        yield
