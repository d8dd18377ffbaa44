from __future__ import annotations

from pathlib import Path

import msal

from intune_policy_export.config.settings import cache_dir
from intune_policy_export.utils import get_logger


DEFAULT_CACHE_FILENAME = "token_cache.bin"

logger = get_logger(__name__)


def _load(path: Path) -> msal.SerializableTokenCache:
    cache = msal.SerializableTokenCache()
    if not path.is_file():
        return cache
    try:
        cache.deserialize(path.read_text(encoding="utf-8"))
    except ValueError:
        logger.warning("Ignoring corrupt token cache", path=str(path))
        return msal.SerializableTokenCache()
    return cache


class TokenCacheManager:
    """File-backed MSAL token cache so repeated exports sign in silently."""

    def __init__(self, cache_path: Path | None = None) -> None:
        self.path = cache_path or cache_dir() / DEFAULT_CACHE_FILENAME
        self.cache = _load(self.path)

    def save(self) -> None:
        if not self.cache.has_state_changed:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.cache.serialize(), encoding="utf-8")
        self.cache.has_state_changed = False
        logger.debug("Token cache written", path=str(self.path))


__all__ = ["TokenCacheManager", "DEFAULT_CACHE_FILENAME"]
