"""Structured logging: structlog events rendered by a stdlib handler on stderr."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _dict_config(level: str, pre_chain: list, renderer: structlog.types.Processor) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "repointel": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": pre_chain,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "repointel",
            },
        },
        "root": {"handlers": ["stderr"], "level": "WARNING"},
        "loggers": {
            "repointel": {"level": level},
            **{name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
        },
    }


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog and stdlib logging for the CLI.

    Arguments win over the environment:
        REPOINTEL_LOG_LEVEL  - level of the ``repointel`` loggers (default: INFO)
        REPOINTEL_LOG_FORMAT - console | json (default: console)

    Output goes to stderr so ``--json`` results on stdout stay parseable.
    """
    log_level = (level or os.environ.get("REPOINTEL_LOG_LEVEL") or "INFO").upper()
    log_format = (fmt or os.environ.get("REPOINTEL_LOG_FORMAT") or "console").lower()

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(_dict_config(log_level, pre_chain, _renderer(log_format)))
