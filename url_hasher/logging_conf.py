"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config

import structlog

_STRUCTLOG_CONFIGURED = False


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + a stderr JSON handler and return the application logger.

    The stdlib side is re-applied on every call so the handler always writes
    to the current ``sys.stderr``; structlog itself is configured once.
    """

    global _STRUCTLOG_CONFIGURED
    level = "DEBUG" if verbose else "INFO"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "pythonjsonlogger.json.JsonFormatter",
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "level": level,
                    "formatter": "json",
                },
            },
            "loggers": {
                "url_hasher": {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                },
            },
        }
    )

    if not _STRUCTLOG_CONFIGURED:
        # Forward events to stdlib logging; JSON rendering happens at handler level
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _STRUCTLOG_CONFIGURED = True
    return structlog.get_logger("url_hasher")


__all__ = ["configure_logging"]
