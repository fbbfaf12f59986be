"""Structured logging for the progress engine.

structlog renders every entry, including stdlib records from uvicorn,
SQLAlchemy and asyncpg, as JSON in production or colored console output in
debug. Each entry carries:
- the service name
- the request correlation id (asgi-correlation-id)
- the mission being written, while inside mission_context()
"""

import logging
import logging.config
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from asgi_correlation_id.context import correlation_id

# Third-party loggers kept below the root level unless asked for
QUIET_LOGGERS = ("uvicorn.access", "asyncpg")


def add_correlation_id(logger, method, event_dict):
    """Inject correlation_id from asgi-correlation-id context into every log entry."""
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def add_service_name(service: str):
    """Processor stamping `service` on entries that do not set it themselves."""

    def processor(logger, method, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return processor


@contextmanager
def mission_context(mission_id: str, **extra) -> Iterator[None]:
    """Bind mission_id (and any extra keys) to every entry logged inside the block.

    Lock, store and retry logs emitted during a write inherit the mission
    without each call site passing it.
    """
    with structlog.contextvars.bound_contextvars(mission_id=mission_id, **extra):
        yield


def logger_levels(sql_log_level: str = "WARNING") -> dict[str, dict[str, str]]:
    levels = {name: {"level": "WARNING"} for name in QUIET_LOGGERS}
    levels["sqlalchemy.engine"] = {"level": sql_log_level.upper()}
    return levels


def configure_structlog(
    log_level: str = "INFO",
    json_logs: bool = True,
    *,
    service: str = "progress-engine",
    sql_log_level: str = "WARNING",
) -> None:
    """Configure structlog with a stdlib bridge.

    Call this BEFORE any other package imports to avoid the cache pitfall
    (structlog caches the processor chain on first use).

    Args:
        log_level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
        json_logs: True for JSON output (production), False for ConsoleRenderer (dev)
        service: Value of the `service` key on every entry
        sql_log_level: Level for sqlalchemy.engine; INFO echoes statements
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_name(service),
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        # Tracebacks from exc_info=True become structured lists instead of text
        final_processors = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        final_processors = [structlog.dev.ConsoleRenderer()]

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    *final_processors,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["default"], "level": log_level.upper()},
        "loggers": logger_levels(sql_log_level),
    })

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
