"""
Structured logging for the booking core.

structlog over stdlib logging: JSON lines in production, colored console
otherwise. Every entry carries the service name and environment; request
fields (request_id, method, path, actor_id) are merged from contextvars by
the request middleware.

Booking events log money as Decimal, instants as aware datetimes and states
as enums; `render_domain_values` turns them into stable strings so the JSON
renderer never falls back to repr().
"""

import logging
import sys
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

import structlog

from companion_booking.core.config import get_settings

# Libraries whose INFO output drowns the booking events
NOISY_LOGGERS = ("uvicorn.access", "aiosqlite", "asyncio")


def add_service_context(logger, method_name, event_dict):
    settings = get_settings()
    event_dict.setdefault("service", settings.APP_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def render_domain_values(logger, method_name, event_dict):
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, (datetime, date)):
            event_dict[key] = value.isoformat()
    return event_dict


def setup_logging() -> None:
    settings = get_settings()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        render_domain_values,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.ENVIRONMENT == "production":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[add_service_context, structlog.stdlib.add_log_level],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # SQL echo follows DEBUG rather than the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
