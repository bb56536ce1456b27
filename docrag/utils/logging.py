"""structlog configuration for the docrag service and CLI.

Every event carries ``service`` and ``version`` so that records from the
API process, the scheduler and one-off CLI runs can be told apart once
they land in the same sink.  Scoped fields (the HTTP ``request_id``, the
``namespace`` and ``run_id`` of an ingestion run) are bound through
:func:`log_context` and merged into every event emitted inside the block.

Rendering is JSON when ``json_output`` is set or ``APP_ENV`` is
``production``; otherwise a coloured console renderer is used.  The stdlib
root logger shares the processor chain so uvicorn and qdrant-client
records are formatted the same way.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from docrag import __version__

SERVICE_NAME = "docrag"

# Per-request and per-embedding-batch chatter from the HTTP stack.
_NOISY_LOGGERS = ("httpx", "httpcore")


def add_service_info(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Stamp the service name and package version, keeping explicit overrides."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Install the docrag processor chain for structlog and stdlib logging.

    Safe to call more than once; the root handler is replaced each time.
    """
    level = log_level.upper()
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    renderer: structlog.types.Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger(logger_name=SERVICE_NAME)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind *fields* to every event logged inside the block.

    ``None`` values are dropped.  Bindings made by an enclosing block are
    restored on exit, so request and ingestion scopes nest.
    """
    bound = {key: value for key, value in fields.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield
