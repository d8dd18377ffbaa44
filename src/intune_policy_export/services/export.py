from __future__ import annotations

import csv
import io
import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from intune_policy_export.data import SUMMARY_COLUMNS, PolicyRecord, SummaryRow
from intune_policy_export.utils import get_logger, sanitize_filename


logger = get_logger(__name__)

RUN_DIRECTORY_PREFIX = "PolicyExport"
SUMMARY_JSON_NAME = "PolicySummary.json"
SUMMARY_CSV_NAME = "PolicySummary.csv"

# Most filesystems cap a file name at 255 bytes; leave room for "_<id>.json".
MAX_STEM_BYTES = 200
MAX_ID_SUFFIX_BYTES = 40


def run_directory_name(timestamp: datetime) -> str:
    return f"{RUN_DIRECTORY_PREFIX}_{timestamp:%Y%m%d_%H%M%S}"


def _encodable(value: str) -> str:
    """Replace lone surrogates, which have no UTF-8 encoding, with ``?``."""

    return value.encode("utf-8", "replace").decode("utf-8")


def _truncate_utf8(value: str, limit: int) -> str:
    return value.encode("utf-8")[: max(limit, 0)].decode("utf-8", "ignore")


def _write_atomic(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` through a temporary sibling file.

    Lone surrogates are written as ``\\uXXXX`` escapes, which JSON readers
    decode back to the original string.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=".tmp-", suffix=".part", dir=path.parent)
    try:
        with os.fdopen(
            fd, "w", encoding="utf-8", errors="backslashreplace", newline=""
        ) as handle:
            handle.write(text)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


class ExportWriter:
    """Write per-policy documents and the aggregate summaries for one run."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir
        self._used_names: dict[Path, set[str]] = {}

    @classmethod
    def for_run(cls, root: Path, *, timestamp: datetime | None = None) -> "ExportWriter":
        """Create a writer targeting ``<root>/PolicyExport_<timestamp>``."""

        moment = timestamp or datetime.now()
        output_dir = root / run_directory_name(moment)
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Export directory ready", path=str(output_dir))
        return cls(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def policy_path(self, record: PolicyRecord) -> Path:
        """Choose a unique file path for a policy within its category folder.

        A name that collides with an earlier policy of the same run, or that
        is too long for the filesystem, gets the policy id appended; an overly
        long name is shortened first.
        """

        directory = self._output_dir / str(record.category)
        used = self._used_names.setdefault(directory, set())
        policy_id = sanitize_filename(_encodable(record.id))
        suffix = "_" + _truncate_utf8(policy_id, MAX_ID_SUFFIX_BYTES)
        stem = sanitize_filename(_encodable(record.display_name)) or policy_id
        if len(stem.encode("utf-8")) > MAX_STEM_BYTES:
            stem = _truncate_utf8(stem, MAX_STEM_BYTES - len(suffix.encode("utf-8"))) + suffix
        if stem.lower() in used:
            stem = f"{stem}{suffix}"
        used.add(stem.lower())
        return directory / f"{stem}.json"

    def write_policy(self, record: PolicyRecord) -> Path:
        path = self.policy_path(record)
        _write_atomic(path, self._dump_json(record.to_export()))
        logger.debug("Wrote policy document", path=str(path), policy_id=record.id)
        return path

    def write_summary_json(self, rows: Iterable[SummaryRow]) -> Path:
        path = self._output_dir / SUMMARY_JSON_NAME
        payload = [row.to_export() for row in rows]
        _write_atomic(path, self._dump_json(payload))
        logger.info("Exported summary JSON", path=str(path), count=len(payload))
        return path

    def write_summary_csv(self, rows: Iterable[SummaryRow]) -> Path:
        path = self._output_dir / SUMMARY_CSV_NAME
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=list(SUMMARY_COLUMNS))
        writer.writeheader()
        count = 0
        for row in rows:
            writer.writerow(row.to_export())
            count += 1
        _write_atomic(path, buffer.getvalue())
        logger.info("Exported summary CSV", path=str(path), count=count)
        return path

    @staticmethod
    def _dump_json(payload: Any) -> str:
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


__all__ = [
    "ExportWriter",
    "RUN_DIRECTORY_PREFIX",
    "SUMMARY_CSV_NAME",
    "SUMMARY_JSON_NAME",
    "run_directory_name",
]
