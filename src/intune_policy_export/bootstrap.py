from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable

from intune_policy_export.data import PolicyCategory
from intune_policy_export.graph.client import GraphClientFactory
from intune_policy_export.services import (
    AssignmentFilterResolver,
    ExportRunner,
    ExportWriter,
    GroupNameCache,
    GroupNameResolver,
    PolicyListingService,
    TargetDescriptor,
    build_assignment_sources,
)
from intune_policy_export.utils import ProgressCallback, get_logger


logger = get_logger(__name__)


def build_export_runner(
    client_factory: GraphClientFactory,
    output_root: Path,
    *,
    categories: Iterable[PolicyCategory] | None = None,
    progress: ProgressCallback | None = None,
    timestamp: datetime | None = None,
) -> ExportRunner:
    """Wire the services for one export run.

    The group cache is created here so its lifetime matches the run; every
    category's assignment source resolves groups through it.
    """

    group_cache = GroupNameCache()
    descriptor = TargetDescriptor(
        GroupNameResolver(client_factory, group_cache),
        AssignmentFilterResolver(client_factory),
    )
    sources = build_assignment_sources(client_factory, descriptor)
    writer = ExportWriter.for_run(output_root, timestamp=timestamp)
    logger.debug("Export services initialised", output_dir=str(writer.output_dir))
    return ExportRunner(
        PolicyListingService(client_factory),
        sources,
        writer,
        categories=categories,
        progress=progress,
    )


__all__ = ["build_export_runner"]
