from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from intune_policy_export.data import PolicyCategory, SummaryRow
from intune_policy_export.services.assignments import (
    AssignmentFetchFailure,
    AssignmentSource,
)
from intune_policy_export.services.export import ExportWriter
from intune_policy_export.services.policies import (
    PolicyListingService,
    build_policy_record,
)
from intune_policy_export.utils import ProgressCallback, ProgressTracker, get_logger


logger = get_logger(__name__)


@dataclass(slots=True)
class PolicyWriteFailure:
    category: PolicyCategory
    policy_id: str
    policy_name: str
    error: Exception


@dataclass(slots=True)
class ExportReport:
    output_dir: Path
    rows: list[SummaryRow] = field(default_factory=list)
    policy_files: list[Path] = field(default_factory=list)
    assignment_failures: list[AssignmentFetchFailure] = field(default_factory=list)
    write_failures: list[PolicyWriteFailure] = field(default_factory=list)
    summary_json: Path | None = None
    summary_csv: Path | None = None

    @property
    def policy_count(self) -> int:
        return len(self.rows)

    @property
    def active_count(self) -> int:
        return sum(1 for row in self.rows if row.is_active)

    def category_counts(self) -> dict[str, int]:
        counts = Counter(str(row.category) for row in self.rows)
        return {str(category): counts.get(str(category), 0) for category in PolicyCategory}

    @property
    def succeeded(self) -> bool:
        return not self.write_failures


class ExportRunner:
    """Enumerate policies per category and write every export artifact.

    Categories are processed in fixed order and policies in listing order, so
    summary rows follow category-then-discovery order. A failed assignment
    fetch or policy write is recorded on the report and the run carries on.
    """

    def __init__(
        self,
        policies: PolicyListingService,
        sources: Mapping[PolicyCategory, AssignmentSource],
        writer: ExportWriter,
        *,
        categories: Iterable[PolicyCategory] | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self._policies = policies
        self._sources = sources
        self._writer = writer
        self._categories = PolicyCategory.ordered(categories)
        self._progress = progress

    async def run(self) -> ExportReport:
        report = ExportReport(output_dir=self._writer.output_dir)
        unsubscribers = [
            self._sources[category].failures.subscribe(report.assignment_failures.append)
            for category in self._categories
        ]
        try:
            for category in self._categories:
                await self._export_category(category, report)
        finally:
            for unsubscribe in unsubscribers:
                unsubscribe()

        report.summary_json = self._writer.write_summary_json(report.rows)
        report.summary_csv = self._writer.write_summary_csv(report.rows)
        logger.info(
            "Policy export finished",
            output_dir=str(report.output_dir),
            policies=report.policy_count,
            active=report.active_count,
            assignment_failures=len(report.assignment_failures),
            write_failures=len(report.write_failures),
        )
        return report

    async def _export_category(
        self,
        category: PolicyCategory,
        report: ExportReport,
    ) -> None:
        source = self._sources[category]
        policies = await self._policies.list_policies(category)
        tracker = ProgressTracker(self._progress)
        tracker.start(total=len(policies), current=category.value)

        for policy in policies:
            assignments = await source.collect(policy.id)
            record = build_policy_record(category, policy, assignments)
            try:
                path = self._writer.write_policy(record)
            except (OSError, ValueError) as exc:
                logger.exception(
                    "Failed to write policy document",
                    category=category.value,
                    policy_id=record.id,
                    policy_name=record.display_name,
                )
                report.write_failures.append(
                    PolicyWriteFailure(
                        category=category,
                        policy_id=record.id,
                        policy_name=record.display_name,
                        error=exc,
                    ),
                )
                tracker.failed(current=record.display_name)
            else:
                report.policy_files.append(path)
                tracker.succeeded(current=record.display_name)
            report.rows.append(SummaryRow.from_policy(record))

        tracker.finish()


__all__ = ["ExportReport", "ExportRunner", "PolicyWriteFailure"]
