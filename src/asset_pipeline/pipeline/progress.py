"""Read-only progress views over the manifest."""

from __future__ import annotations

import math

from asset_pipeline.pipeline.manifest import ManifestStore
from asset_pipeline.pipeline.models import (
    AssetStatus,
    Manifest,
    ProgressView,
    StatusReport,
)
from asset_pipeline.pipeline.selector import first_pending_asset

NO_NEXT_ASSET = "none"


class ProgressReporter:
    """Aggregates asset counters from one manifest read."""

    def __init__(self, store: ManifestStore) -> None:
        self.store = store

    def aggregate(self) -> ProgressView:
        return compute_progress(self.store.load())

    def status_report(self) -> StatusReport:
        manifest = self.store.load()
        upcoming = first_pending_asset(manifest)
        return StatusReport(
            progress=compute_progress(manifest),
            next_asset=(
                f"{upcoming.asset.name} ({upcoming.region_id})"
                if upcoming is not None
                else NO_NEXT_ASSET
            ),
        )


def compute_progress(manifest: Manifest) -> ProgressView:
    """Count assets by status in a single pass."""

    total = completed = in_progress = failed = 0
    for _, _, asset in manifest.iter_assets():
        total += 1
        if asset.status == AssetStatus.COMPLETED:
            completed += 1
        elif asset.status == AssetStatus.IN_PROGRESS:
            in_progress += 1
        elif asset.status == AssetStatus.FAILED:
            failed += 1
    return ProgressView(
        total=total,
        completed=completed,
        in_progress=in_progress,
        failed=failed,
        pending=total - completed - in_progress - failed,
        percent=_percent(completed, total),
    )


def render_progress_lines(report: StatusReport) -> list[str]:
    progress = report.progress
    return [
        f"Assets: {progress.completed}/{progress.total} completed ({progress.percent}%)",
        f"  pending={progress.pending} in_progress={progress.in_progress} "
        f"failed={progress.failed}",
        f"Next asset: {report.next_asset}",
    ]


def _percent(part: int, total: int) -> int:
    if total == 0:
        return 0
    # Half rounds up, not to even.
    return math.floor(part / total * 100 + 0.5)
