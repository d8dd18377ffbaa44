"""Structured logging: structlog events rendered through loguru sinks."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, cast

import structlog
from loguru import logger as loguru_logger
from structlog.exceptions import DropEvent
from structlog.stdlib import BoundLogger
from structlog.typing import EventDict, WrappedLogger

from intune_policy_export.config.settings import log_dir


FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message} | {extra}"
CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message} | {extra}"
)
DEFAULT_LOG_FILENAME = "intune-policy-export.log"

# Frames between the structlog call site and the loguru call below.
_CALLER_DEPTH = 6


@dataclass(slots=True)
class LoggingOptions:
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    file_logging: bool = True
    log_path: Optional[Path] = None
    rotation: str = "10 MB"
    retention: str = "14 days"


class _State:
    configured = False
    log_path: Optional[Path] = None


def _forward_to_loguru(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    level = str(event_dict.pop("level", "info")).upper()
    message = str(event_dict.pop("event", ""))
    exception = event_dict.pop("exception", None)
    for key in ("timestamp", "stack"):
        event_dict.pop(key, None)
    if exception:
        message = f"{message}\n{exception}"
    loguru_logger.bind(**event_dict).opt(depth=_CALLER_DEPTH).log(level, message)
    raise DropEvent


def configure_logging(options: LoggingOptions | None = None) -> Path | None:
    """Install the console sink and, unless disabled, a rotating file sink.

    Returns the log file path, or ``None`` for console-only logging.
    """

    opts = options or LoggingOptions()
    level = "DEBUG" if opts.debug else opts.level

    loguru_logger.remove()
    loguru_logger.add(
        sys.stderr,
        level=level,
        colorize=True,
        backtrace=opts.debug,
        diagnose=opts.debug,
        format=CONSOLE_FORMAT,
    )

    log_path: Path | None = None
    if opts.file_logging:
        log_path = opts.log_path or log_dir() / DEFAULT_LOG_FILENAME
        loguru_logger.add(
            log_path,
            level="DEBUG",
            rotation=opts.rotation,
            retention=opts.retention,
            encoding="utf-8",
            format=FILE_FORMAT,
        )

    # The file sink records debug events even when the console does not.
    threshold = logging.DEBUG if opts.debug or opts.file_logging else logging.getLevelName(level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _forward_to_loguru,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        cache_logger_on_first_use=False,
    )

    _State.configured = True
    _State.log_path = log_path
    return log_path


def get_logger(*initial_values: object, **initial_kw: object) -> BoundLogger:
    if not _State.configured:
        configure_logging(LoggingOptions(file_logging=False))
    return cast(BoundLogger, structlog.get_logger(*initial_values, **initial_kw))


def log_file_path() -> Path | None:
    return _State.log_path


__all__ = ["LoggingOptions", "configure_logging", "get_logger", "log_file_path"]
