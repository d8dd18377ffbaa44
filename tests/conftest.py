from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from intune_policy_export.config import ENV_PREFIX
from intune_policy_export.config import settings as settings_module
from intune_policy_export.graph import GraphClientFactory

from tests.factories import make_client_factory
from tests.stubs import FakeGraphClientFactory


_SETTINGS_VARIABLES = (
    "TENANT_ID",
    "CLIENT_ID",
    "AUTHORITY",
    "SCOPES",
    "TOKEN_CACHE_PATH",
    "OUTPUT_DIR",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep platform directories and INTUNE_EXPORT_* variables out of tests."""

    monkeypatch.setattr(
        settings_module,
        "user_cache_dir",
        lambda *_args, **_kwargs: str(tmp_path / "cache"),
    )
    monkeypatch.setattr(
        settings_module,
        "user_config_dir",
        lambda *_args, **_kwargs: str(tmp_path / "config"),
    )
    for name in _SETTINGS_VARIABLES:
        # setenv first so variables loaded from env files are removed on teardown.
        monkeypatch.setenv(f"{ENV_PREFIX}{name}", "")
        monkeypatch.delenv(f"{ENV_PREFIX}{name}")


@pytest_asyncio.fixture
async def graph_factory() -> AsyncIterator[GraphClientFactory]:
    """Real Graph client factory; pair with ``respx_mock`` to stub the wire."""

    factory = make_client_factory()
    try:
        yield factory
    finally:
        await factory.close()


@pytest.fixture
def fake_graph() -> FakeGraphClientFactory:
    return FakeGraphClientFactory()


@pytest.fixture
def export_root(tmp_path: Path) -> Path:
    return tmp_path / "exports"
