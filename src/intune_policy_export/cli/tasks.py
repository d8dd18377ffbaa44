"""Console-script shortcuts for the development workflow.

Extra command line arguments are passed through to the underlying tool.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _module(name: str, *args: str) -> None:
    command = [sys.executable, "-m", name, *args, *sys.argv[1:]]
    raise SystemExit(subprocess.run(command, cwd=PROJECT_ROOT, check=False).returncode)


def lint() -> None:
    _module("ruff", "check", "src", "tests")


def fmt() -> None:
    _module("ruff", "format", "src", "tests")


def typecheck() -> None:
    _module("mypy", "src")


def tests() -> None:
    _module("pytest")
