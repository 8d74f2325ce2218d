"""Structured logging configuration — structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog

# Third-party loggers that stay quiet unless something goes wrong.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def _log_level(verbose: bool) -> str:
    level = os.environ.get("PKGSENTINEL_LOG_LEVEL")
    if level:
        return level.upper()
    return "DEBUG" if verbose else "WARNING"


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog and stdlib logging for a CLI run.

    Reads from environment variables:
        PKGSENTINEL_LOG_LEVEL  — log level (default: WARNING, DEBUG with ``-v``)
        PKGSENTINEL_LOG_FORMAT — console | json (default: console)

    Everything goes to stderr so stdout carries only the report. JSON
    records are timestamped; console lines are not.
    """
    log_level = _log_level(verbose)
    log_format = os.environ.get("PKGSENTINEL_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if log_format == "json":
        shared_processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    shared_processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    loggers = {name: {"level": "WARNING"} for name in _QUIET_LOGGERS}
    loggers["pkgsentinel"] = {"level": log_level}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "pkgsentinel": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "pkgsentinel",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": loggers,
        }
    )
