"""Logging wiring — structlog events rendered through one stdlib root handler.

Both structlog loggers and plain ``logging`` loggers (aiohttp, botocore,
urllib3) end up in the same handler, so third-party records get the same
timestamp/level fields and renderer as the dispatcher's own events.
"""

from __future__ import annotations

import logging
import sys

import structlog

from alert_dispatcher.core.config import LoggingConfig

# Minimum level per third-party logger, applied on top of the root level.
_NOISY_LOGGERS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "botocore": logging.INFO,
    "boto3": logging.INFO,
    "urllib3": logging.INFO,
    "httpx": logging.WARNING,
}

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def resolve_level(name: str) -> int:
    """Map a level name to its numeric value; unknown names mean INFO."""
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _build_handler(fmt: str) -> logging.Handler:
    if fmt == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))
    return handler


def setup_logging(config: LoggingConfig, level: str | None = None) -> int:
    """Install the root handler and configure structlog.

    Args:
        config: The ``logging`` section of the loaded settings.
        level: Optional level name overriding ``config.level`` (CLI flag).

    Returns:
        The numeric root level that was applied.
    """
    root_level = resolve_level(level or config.level)

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(_build_handler(config.format))
    root.setLevel(root_level)

    for name, floor in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(root_level, floor))

    return root_level
