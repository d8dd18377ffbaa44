"""Command line entry points."""

from .export import apply_overrides, build_parser, main, run_export

__all__ = ["apply_overrides", "build_parser", "main", "run_export"]
