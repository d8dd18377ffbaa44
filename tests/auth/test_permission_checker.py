from __future__ import annotations

import base64
import json

from intune_policy_export.auth import PermissionChecker


def _token(claims: dict[str, object]) -> str:
    payload = base64.urlsafe_b64encode(json.dumps(claims).encode("utf-8")).rstrip(b"=")
    return f"header.{payload.decode('utf-8')}.signature"


def test_read_scopes_present() -> None:
    checker = PermissionChecker()

    token = _token({"scp": "DeviceManagementConfiguration.Read.All Group.Read.All"})

    assert checker.missing_scopes(token) == []


def test_read_write_satisfies_read() -> None:
    checker = PermissionChecker(
        ["https://graph.microsoft.com/DeviceManagementConfiguration.Read.All"],
    )

    token = _token({"scp": "DeviceManagementConfiguration.ReadWrite.All"})

    assert checker.missing_scopes(token) == []


def test_application_roles_are_considered() -> None:
    checker = PermissionChecker()

    token = _token({"roles": ["Group.Read.All"]})

    assert checker.missing_scopes(token) == ["DeviceManagementConfiguration.Read.All"]


def test_opaque_token_reports_everything_missing() -> None:
    checker = PermissionChecker()

    assert checker.missing_scopes("opaque-token") == [
        "DeviceManagementConfiguration.Read.All",
        "Group.Read.All",
    ]
