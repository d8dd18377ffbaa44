"""Export Intune policies and their assignments to JSON and CSV.

Usage:
    intune-policy-export [--client-id ID] [--tenant-id TENANT] [--output-dir DIR]
                         [--category DeviceConfiguration ...] [--debug]
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Sequence

from intune_policy_export.auth import AuthManager
from intune_policy_export.bootstrap import build_export_runner
from intune_policy_export.config import Settings, SettingsManager
from intune_policy_export.data import PolicyCategory
from intune_policy_export.graph import GraphAPIError, GraphClientConfig, GraphClientFactory
from intune_policy_export.services import ExportReport
from intune_policy_export.utils import (
    LoggingOptions,
    configure_logging,
    get_logger,
    log_file_path,
    log_progress,
    sanitize_log_message,
)


EXIT_OK = 0
EXIT_FATAL = 1
EXIT_WRITE_FAILURES = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intune-policy-export",
        description=__doc__.splitlines()[0] if __doc__ else None,
    )
    parser.add_argument("--tenant-id", help="Tenant id or domain to sign in to.")
    parser.add_argument("--client-id", help="Public client application id.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Root directory; each run writes a timestamped folder below it.",
    )
    parser.add_argument(
        "--category",
        action="append",
        choices=[category.value for category in PolicyCategory],
        help="Restrict the export to a category (repeatable).",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Settings file with INTUNE_EXPORT_* variables.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose console logging.")
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Only log to the console.",
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.tenant_id:
        settings.tenant_id = args.tenant_id
    if args.client_id:
        settings.client_id = args.client_id
    if args.output_dir:
        settings.output_root = args.output_dir.expanduser()
    return settings


async def run_export(
    settings: Settings,
    *,
    categories: Sequence[PolicyCategory] | None = None,
    auth_manager: AuthManager | None = None,
) -> ExportReport:
    logger = get_logger(__name__)
    auth = auth_manager or AuthManager()
    auth.configure(settings)
    scopes = list(settings.configured_scopes())
    await auth.sign_in(scopes)

    user = auth.current_user()
    logger.info("Signed in", user=user.username if user else None)
    missing = auth.missing_scopes()
    if missing:
        logger.warning("Token is missing read permissions", missing=missing)

    factory = GraphClientFactory(auth.token_provider(), GraphClientConfig(scopes=scopes))
    try:
        runner = build_export_runner(
            factory,
            settings.output_root,
            categories=categories,
            progress=log_progress,
        )
        return await runner.run()
    finally:
        await factory.close()


def _log_report(report: ExportReport) -> None:
    logger = get_logger(__name__)
    for category, count in report.category_counts().items():
        logger.info("Exported category", category=category, policies=count)
    for failure in report.assignment_failures:
        logger.warning(
            "Policy exported without assignments",
            category=str(failure.category),
            policy_id=failure.policy_id,
        )
    for write_failure in report.write_failures:
        logger.error(
            "Policy document missing",
            category=str(write_failure.category),
            policy_id=write_failure.policy_id,
            error=sanitize_log_message(str(write_failure.error)),
        )
    log_path = log_file_path()
    logger.info(
        "Summary written",
        json=str(report.summary_json),
        csv=str(report.summary_csv),
        policies=report.policy_count,
        active=report.active_count,
        log_file=str(log_path) if log_path else None,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(LoggingOptions(debug=args.debug, file_logging=not args.no_log_file))
    logger = get_logger(__name__)

    settings = apply_overrides(SettingsManager(args.env_file).load(), args)
    if not settings.is_configured:
        logger.error(
            "No client id configured; pass --client-id or set INTUNE_EXPORT_CLIENT_ID",
        )
        return EXIT_FATAL

    categories = [PolicyCategory(value) for value in args.category] if args.category else None
    try:
        report = asyncio.run(run_export(settings, categories=categories))
    except GraphAPIError as exc:
        logger.error(
            "Export aborted",
            error=sanitize_log_message(str(exc)),
            category=exc.category.value,
            url=exc.request_url,
            suggestion=exc.recovery_suggestion,
            required_permissions=exc.required_permissions,
        )
        return EXIT_FATAL
    except OSError:
        logger.exception("Export aborted", output_root=str(settings.output_root))
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.warning("Export interrupted by user")
        return EXIT_FATAL

    _log_report(report)
    return EXIT_OK if report.succeeded else EXIT_WRITE_FAILURES


__all__ = ["build_parser", "apply_overrides", "run_export", "main"]
