"""Shared utility helpers for the policy exporter."""

from .logging import LoggingOptions, configure_logging, get_logger, log_file_path
from .progress import (
    ProgressCallback,
    ProgressTracker,
    ProgressUpdate,
    log_progress,
)
from .sanitize import sanitize_filename, sanitize_log_message

__all__ = [
    "LoggingOptions",
    "configure_logging",
    "get_logger",
    "log_file_path",
    "sanitize_filename",
    "sanitize_log_message",
    "ProgressUpdate",
    "ProgressTracker",
    "ProgressCallback",
    "log_progress",
]
