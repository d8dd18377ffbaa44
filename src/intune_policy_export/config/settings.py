from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "IntunePolicyExport"
ENV_PREFIX = "INTUNE_EXPORT_"
ENV_FILE_NAME = "settings.env"
TOKEN_CACHE_NAME = "token_cache.bin"
DEFAULT_OUTPUT_DIR_NAME = "IntunePolicyExports"
DEFAULT_TENANT = "organizations"
LOGIN_HOST = "https://login.microsoftonline.com"

DEFAULT_GRAPH_SCOPES: tuple[str, ...] = (
    "https://graph.microsoft.com/DeviceManagementConfiguration.Read.All",
    "https://graph.microsoft.com/Group.Read.All",
)


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    return _ensure(Path(user_config_dir(APP_NAME, roaming=True)))


def cache_dir() -> Path:
    return _ensure(Path(user_cache_dir(APP_NAME)))


def log_dir() -> Path:
    return _ensure(cache_dir() / "logs")


def _unique(scopes: Iterable[str]) -> Iterator[str]:
    seen: set[str] = set()
    for scope in scopes:
        if scope and scope not in seen:
            seen.add(scope)
            yield scope


@dataclass(slots=True)
class Settings:
    """Where to sign in and where to write the export.

    The app registration is a public client ("Mobile and desktop
    applications"), so there is no secret to configure.
    """

    tenant_id: str | None = None
    client_id: str | None = None
    authority: str | None = None
    graph_scopes: list[str] = field(default_factory=lambda: list(DEFAULT_GRAPH_SCOPES))
    token_cache_path: Path = field(default_factory=lambda: cache_dir() / TOKEN_CACHE_NAME)
    output_root: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_OUTPUT_DIR_NAME)

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id)

    def configured_scopes(self) -> Iterable[str]:
        """Configured scopes in order, followed by any missing read defaults."""
        return _unique([*self.graph_scopes, *DEFAULT_GRAPH_SCOPES])

    def derive_authority(self) -> str:
        return self.authority or f"{LOGIN_HOST}/{self.tenant_id or DEFAULT_TENANT}"


class SettingsManager:
    """Build `Settings` from ``INTUNE_EXPORT_*`` environment variables.

    Values in the env file (``settings.env`` in the user config directory
    unless another file is given) fill in variables the process environment
    does not already define.
    """

    def __init__(self, env_file: Path | None = None) -> None:
        self.env_file = env_file if env_file is not None else config_dir() / ENV_FILE_NAME

    def load(self) -> Settings:
        if self.env_file.is_file():
            load_dotenv(self.env_file, override=False)

        settings = Settings(
            tenant_id=self._value("TENANT_ID"),
            client_id=self._value("CLIENT_ID"),
            authority=self._value("AUTHORITY"),
        )
        if scopes := self._value("SCOPES"):
            parsed = [scope.strip() for scope in scopes.split(";") if scope.strip()]
            if parsed:
                settings.graph_scopes = parsed
        if cache_path := self._value("TOKEN_CACHE_PATH"):
            settings.token_cache_path = Path(cache_path).expanduser()
        if output_dir := self._value("OUTPUT_DIR"):
            settings.output_root = Path(output_dir).expanduser()
        return settings

    @staticmethod
    def _value(name: str) -> str | None:
        return os.environ.get(f"{ENV_PREFIX}{name}") or None


__all__ = [
    "DEFAULT_GRAPH_SCOPES",
    "ENV_PREFIX",
    "Settings",
    "SettingsManager",
    "cache_dir",
    "config_dir",
    "log_dir",
]
