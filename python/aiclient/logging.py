"""Structured logging configuration using structlog.

The library never configures logging on import. Applications opt in by
calling ``configure_logging()`` once at startup; until then structlog's
defaults apply and events go wherever the host application routes them.

Every event emitted while an ``AIClient`` call is running carries:
- call_id: Correlation ID for one task call (shared by all its attempts)
- operation: Task method name (e.g. "summarize", "chat_stream")

Usage:
    from aiclient.logging import get_logger, configure_logging

    # Configure once at startup
    configure_logging(json_format=False)

    logger = get_logger(__name__)
    logger.info("something_happened", extra_field="value")
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

from aiclient.config import get_settings

# Context variables for call-scoped logging
call_id_var: ContextVar[str | None] = ContextVar("call_id", default=None)
operation_var: ContextVar[str | None] = ContextVar("operation", default=None)


def add_call_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Add call context to all log entries.

    Injects all non-None ContextVar values into the log event dict.
    """
    call_id = call_id_var.get()
    operation = operation_var.get()

    if call_id:
        event_dict["call_id"] = call_id
    if operation:
        event_dict["operation"] = operation

    return event_dict


def configure_logging(json_format: bool | None = None, level: int = logging.INFO) -> None:
    """Configure structlog for applications embedding the client.

    Args:
        json_format: If True, output JSON logs. If False, output console-friendly logs.
            None reads AICLIENT_LOG_JSON (default True).
        level: Root logger level.
    """
    if json_format is None:
        json_format = get_settings().log_json

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_call_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Silence noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


@contextmanager
def call_context(call_id: str, operation: str) -> Iterator[None]:
    """Bind call_id and operation for the duration of one task call.

    Previous values are restored on exit, so nested or concurrent calls
    never see each other's context.
    """
    call_token = call_id_var.set(call_id)
    operation_token = operation_var.set(operation)
    try:
        yield
    finally:
        call_id_var.reset(call_token)
        operation_var.reset(operation_token)
