"""
Logging Configuration for the Inventory Analytics Service

Structured logging through structlog on top of the stdlib handlers. Every
event carries the service name and environment; request-scoped values such
as `request_id` come in through contextvars.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.processors import CallsiteParameter, JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from inventory_analytics.config.settings import get_settings

# Third-party loggers and the quietest level they may log at
LIBRARY_LEVELS = {
    "reportlab": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.INFO,
    "asyncio": logging.WARNING,
}


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Stamp every event with the service name and environment"""
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.app_env)
    return event_dict


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    """
    settings = get_settings()
    level = log_level or settings.monitoring.log_level

    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Common processors for structlog and stdlib records
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        add_service_context,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Call sites only when debugging
    if numeric_level <= logging.DEBUG:
        shared_processors.append(structlog.processors.CallsiteParameterAdder([
            CallsiteParameter.MODULE,
            CallsiteParameter.FUNC_NAME,
            CallsiteParameter.LINENO,
        ]))

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # JSON for log shipping, colored console for local work
    if settings.monitoring.log_format == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    formatter = ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Replace, never stack, handlers on reconfiguration
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Route uvicorn through the same handler
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logger = logging.getLogger(logger_name)
        logger.handlers = []
        logger.propagate = False
        logger.addHandler(console_handler)
        logger.setLevel(numeric_level)

    # SQL echo is controlled by POSTGRES_ECHO, not the root level
    for logger_name, floor in LIBRARY_LEVELS.items():
        if logger_name == "sqlalchemy.engine" and settings.database.echo:
            continue
        logging.getLogger(logger_name).setLevel(max(numeric_level, floor))

    log = structlog.get_logger(__name__)
    log.info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
        environment=settings.app_env,
    )
