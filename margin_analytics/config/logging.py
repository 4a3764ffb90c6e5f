"""
Logging Configuration for Superstore Margin Analytics

Structlog on top of the standard library: pipeline modules log key/value
events through structlog, and a single ProcessorFormatter renders them (and
any third-party stdlib records) as JSON or for the console.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from margin_analytics.config.settings import get_settings

PIPELINE_LOGGERS = ["margin_analytics"]


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structured logging for pipeline runs.

    Arguments override the monitoring settings (LOG_LEVEL, LOG_FORMAT, LOG_FILE).

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_format: "json" or "text"
        log_file: Also write rendered events to this file
    """
    settings = get_settings()
    level_name = (log_level or settings.monitoring.log_level).upper()
    log_format = log_format or settings.monitoring.log_format
    log_file = log_file or settings.monitoring.log_file

    level = getattr(logging, level_name, logging.INFO)
    shared = _shared_processors()

    structlog.configure(
        processors=shared + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if log_format == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    formatter = ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level, formatter))
    if log_file:
        root_logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), level, formatter))

    # Package loggers may have been given a level before configuration
    for name in PIPELINE_LOGGERS:
        logging.getLogger(name).setLevel(level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level_name,
        format=log_format,
        log_file=log_file,
        environment=settings.app_env,
    )
