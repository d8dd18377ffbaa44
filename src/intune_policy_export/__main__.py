"""
Entry point for running intune_policy_export as a module.

This file enables:
- `python -m intune_policy_export`
- `uv run python -m intune_policy_export`
"""

from __future__ import annotations

import sys

from intune_policy_export import main

if __name__ == "__main__":
    sys.exit(main())
