"""Structured logging built on structlog and the standard logging module.

- JSON lines in production (or with LOG_FORMAT=json), colored console otherwise
- Request-scoped context (correlation id, method, path) bound through
  ``structlog.contextvars`` so every log line inside a request carries it
- Third-party records (uvicorn, httpx) rendered through the same pipeline

Usage:
    from storyfeed.core.logging import configure_logging, get_logger

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info("stories_page_built", page=1, total_count=187)
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from storyfeed.config import Settings

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def bind_request_context(correlation_id: str, **values: object) -> None:
    """Bind the correlation id (and any extra values) for the current request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id, **values)


def clear_request_context() -> None:
    """Drop everything bound by ``bind_request_context``."""
    structlog.contextvars.clear_contextvars()


def get_correlation_id() -> str | None:
    """Correlation id of the request being handled, if any."""
    return structlog.contextvars.get_contextvars().get("correlation_id")


def app_context_processor(settings: Settings) -> Processor:
    """Build a processor stamping service name and environment on each entry."""
    service = settings.app_name.lower()
    environment = settings.app_env.value

    def add_app_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", service)
        event_dict.setdefault("env", environment)
        return event_dict

    return add_app_context


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structured logging for the application.

    Safe to call more than once; the root handler is replaced each time.

    Args:
        settings: Application settings. If None, uses default settings.
    """
    if settings is None:
        from storyfeed.config import get_settings

        settings = get_settings()

    log_level = getattr(logging, settings.log_level.value, logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        app_context_processor(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Processor
    if settings.use_json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    # structlog hands events to stdlib; the formatter does the final rendering
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)
