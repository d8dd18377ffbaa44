from __future__ import annotations

from pathlib import Path

from intune_policy_export.utils import (
    LoggingOptions,
    configure_logging,
    get_logger,
    log_file_path,
)


def test_file_sink_receives_structured_events(tmp_path: Path) -> None:
    log_path = tmp_path / "export.log"

    configured = configure_logging(LoggingOptions(log_path=log_path))
    get_logger("tests").info("Listed policies", category="Compliance", count=2)

    assert configured == log_path
    assert log_file_path() == log_path
    content = log_path.read_text(encoding="utf-8")
    assert "Listed policies" in content
    assert "'category': 'Compliance'" in content

    configure_logging(LoggingOptions(file_logging=False))


def test_console_only_logging_has_no_file(tmp_path: Path) -> None:
    assert configure_logging(LoggingOptions(file_logging=False, debug=True)) is None
    assert log_file_path() is None
