"""Export Intune policies and their resolved assignments."""

from __future__ import annotations

from intune_policy_export.cli.export import main

__version__ = "0.1.0"

__all__ = ["main", "__version__"]
