"""
Structured logging for the booking engine, built on structlog.

Every event carries the service name and environment so booking, conflict
and transition logs from several instances can be told apart. Production
renders JSON lines; other environments get the console renderer.
"""

import logging
import sys
from typing import Optional

import structlog

from hotel_booking.core.config import Settings, get_settings

_HANDLER_NAME = "hotel_booking"

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncpg", "redis")


def _service_info(settings: Settings):
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", settings.APP_NAME)
        event_dict.setdefault("env", settings.ENVIRONMENT)
        return event_dict

    return processor


def setup_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _service_info(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.ENVIRONMENT == "production":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.DEBUG)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer]
        )
    )

    root_logger = logging.getLogger()
    # app restarts in one process (tests, reloads) must not stack handlers
    for existing in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
