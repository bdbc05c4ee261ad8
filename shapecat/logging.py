"""Logging configuration for shapecat.

Library modules log through loguru with a bound ``component`` so records can
be traced back to the stage that emitted them. Logging is disabled by default
and enabled for the duration of a logging_session().

Example:
    from shapecat.logging import LogConfig, logging_session

    with logging_session(LogConfig(level="DEBUG", file="shapecat.log")):
        provider.list_offerable_instance_types()
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger

# Disable by default (library behavior)
logger.disable("shapecat")

type LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]

# Extra keys rendered after the source location, in this order
_CONTEXT_KEYS = ("component", "zone", "shape", "capacity_type", "generation")


def _format_context(extra: dict[str, Any]) -> str:
    parts = [f"{k}={extra[k]}" for k in _CONTEXT_KEYS if k in extra]
    return f" [{' '.join(parts)}]" if parts else ""


def _inject_context(record: Any) -> bool:
    """Sink filter: keep shapecat records and render their bound context."""
    name = record["name"]
    if name is None or not name.startswith("shapecat"):
        return False
    record["extra"]["_ctx"] = _format_context(record["extra"])
    return True


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan>"
    "<dim>{extra[_ctx]}</dim> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line}{extra[_ctx]} - {message}"
)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """The ``[logging]`` table.

    Attributes:
        level: Minimum level printed on stderr.
        file: Optional log file path.
        file_level: Minimum level written to ``file``.
        console: Whether to log to stderr.
        rotation: File rotation policy, e.g. "50 MB" or "1 day".
        retention: Number of rotated files kept.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    file_level: LogLevel = "DEBUG"
    console: bool = True
    rotation: str = "50 MB"
    retention: int = 10


def _sinks(config: LogConfig) -> list[tuple[Any, dict[str, Any]]]:
    sinks: list[tuple[Any, dict[str, Any]]] = []
    if config.console:
        sinks.append(
            (sys.stderr, {"level": config.level, "format": CONSOLE_FORMAT, "colorize": True})
        )
    if config.file:
        sinks.append(
            (
                config.file,
                {
                    "level": config.file_level,
                    "format": FILE_FORMAT,
                    "rotation": config.rotation,
                    "retention": config.retention,
                    "compression": "zip",
                    "diagnose": False,  # OCI config values must not land in tracebacks
                    "enqueue": True,
                },
            )
        )
    return sinks


def setup_logging(config: LogConfig) -> list[int]:
    """Enable shapecat records and add the configured sinks.

    Returns the loguru handler ids, to be passed to teardown_logging().
    """
    logger.enable("shapecat")
    return [logger.add(sink, filter=_inject_context, **options) for sink, options in _sinks(config)]


def teardown_logging(handler_ids: list[int]) -> None:
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable("shapecat")


@contextmanager
def logging_session(config: LogConfig) -> Iterator[list[int]]:
    handler_ids = setup_logging(config)
    try:
        yield handler_ids
    finally:
        logger.complete()
        teardown_logging(handler_ids)
