from __future__ import annotations

import re
from typing import Final

# Characters Windows forbids in file names; also covers the POSIX separator.
_RESERVED_IN_FILENAMES: Final = re.compile(r'[\\/:*?"<>|]')
_CONTROL_CHARACTERS: Final = re.compile(r"[\x00-\x08\x0b-\x1f]")


def sanitize_filename(value: str, *, replacement: str = "_") -> str:
    return _RESERVED_IN_FILENAMES.sub(replacement, value)


def sanitize_log_message(value: str) -> str:
    """Collapse carriage returns to newlines and drop other control characters."""

    return _CONTROL_CHARACTERS.sub("", re.sub(r"\r\n?", "\n", value))


__all__ = ["sanitize_filename", "sanitize_log_message"]
