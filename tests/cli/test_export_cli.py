from __future__ import annotations

from pathlib import Path

import httpx
import msal
import pytest
import respx

from intune_policy_export.cli import export as export_cli
from intune_policy_export.data import PolicyCategory
from intune_policy_export.graph.errors import PermissionError as GraphPermissionError
from intune_policy_export.services import ExportReport, PolicyWriteFailure
from intune_policy_export.utils import LoggingOptions, configure_logging, log_file_path

from tests.factories import GRAPH_HOST, graph_path, make_policy, make_settings
from tests.stubs import StubPublicClientApplication


def _argv(tmp_path: Path, *extra: str) -> list[str]:
    return ["--env-file", str(tmp_path / "missing.env"), "--no-log-file", *extra]


def test_parser_collects_repeated_categories() -> None:
    args = export_cli.build_parser().parse_args(
        ["--category", "Compliance", "--category", "SettingsCatalog", "--debug"],
    )

    assert args.category == ["Compliance", "SettingsCatalog"]
    assert args.debug


def test_parser_rejects_unknown_category() -> None:
    with pytest.raises(SystemExit):
        export_cli.build_parser().parse_args(["--category", "Apps"])


def test_overrides_replace_loaded_settings(tmp_path: Path) -> None:
    args = export_cli.build_parser().parse_args(
        ["--client-id", "cli-client", "--tenant-id", "fabrikam.com", "--output-dir", str(tmp_path)],
    )

    settings = export_cli.apply_overrides(make_settings(), args)

    assert settings.client_id == "cli-client"
    assert settings.tenant_id == "fabrikam.com"
    assert settings.output_root == tmp_path


def test_missing_client_id_is_fatal(tmp_path: Path) -> None:
    assert export_cli.main(_argv(tmp_path)) == export_cli.EXIT_FATAL


@pytest.mark.parametrize(
    ("write_failures", "expected"),
    [
        ([], export_cli.EXIT_OK),
        (
            [
                PolicyWriteFailure(
                    category=PolicyCategory.COMPLIANCE,
                    policy_id="cp-1",
                    policy_name="Windows compliance",
                    error=OSError("disk full"),
                )
            ],
            export_cli.EXIT_WRITE_FAILURES,
        ),
    ],
)
def test_exit_code_reflects_write_failures(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    write_failures: list[PolicyWriteFailure],
    expected: int,
) -> None:
    captured: dict[str, object] = {}

    async def _fake_run_export(settings, *, categories=None, auth_manager=None):
        captured["settings"] = settings
        captured["categories"] = categories
        return ExportReport(output_dir=tmp_path, write_failures=list(write_failures))

    monkeypatch.setattr(export_cli, "run_export", _fake_run_export)

    code = export_cli.main(
        _argv(tmp_path, "--client-id", "cli-client", "--category", "Compliance"),
    )

    assert code == expected
    assert captured["categories"] == [PolicyCategory.COMPLIANCE]


def test_run_summary_names_the_log_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _fake_run_export(settings, *, categories=None, auth_manager=None):
        return ExportReport(output_dir=tmp_path)

    monkeypatch.setattr(export_cli, "run_export", _fake_run_export)
    argv = ["--env-file", str(tmp_path / "missing.env"), "--client-id", "cli-client"]

    try:
        assert export_cli.main(argv) == export_cli.EXIT_OK
        log_path = log_file_path()
        assert log_path == tmp_path / "cache" / "logs" / "intune-policy-export.log"
        content = log_path.read_text(encoding="utf-8")
    finally:
        configure_logging(LoggingOptions(file_logging=False))

    assert "Summary written" in content
    assert f"'log_file': '{log_path}'" in content


def test_graph_errors_are_fatal(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _fake_run_export(settings, *, categories=None, auth_manager=None):
        raise GraphPermissionError("Access denied")

    monkeypatch.setattr(export_cli, "run_export", _fake_run_export)

    assert export_cli.main(_argv(tmp_path, "--client-id", "cli-client")) == export_cli.EXIT_FATAL


@pytest.mark.asyncio
async def test_run_export_signs_in_and_writes_outputs(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    respx_mock: respx.Router,
) -> None:
    token_result = {
        "access_token": "header.payload.signature",
        "expires_in": 3600,
        "id_token_claims": {"preferred_username": "admin@contoso.com"},
    }
    stub = StubPublicClientApplication(
        client_id="",
        authority="",
        accounts=[{"username": "admin@contoso.com"}],
        silent_results=[dict(token_result) for _ in range(5)],
    )
    monkeypatch.setattr(msal, "PublicClientApplication", lambda **_kwargs: stub)
    respx_mock.get(
        host=GRAPH_HOST, path=graph_path("/deviceManagement/deviceCompliancePolicies")
    ).mock(return_value=httpx.Response(200, json={"value": [make_policy("cp-1", "Strict")]}))
    respx_mock.get(
        host=GRAPH_HOST,
        path=graph_path("/deviceManagement/deviceCompliancePolicies/cp-1/assignments"),
    ).mock(return_value=httpx.Response(200, json={"value": []}))
    settings = make_settings(
        token_cache_path=tmp_path / "tokens.bin",
        output_root=tmp_path / "exports",
    )

    report = await export_cli.run_export(settings, categories=[PolicyCategory.COMPLIANCE])

    assert report.policy_count == 1
    assert report.output_dir.parent == tmp_path / "exports"
    assert (report.output_dir / "Compliance" / "Strict.json").exists()
    assert respx_mock.calls.last.request.headers["Authorization"] == (
        "Bearer header.payload.signature"
    )
