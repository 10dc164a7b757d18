"""Domain models for the asset manifest and pipeline results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_POLY_BUDGET = "1000-5000 tris"


class AssetStatus(str, Enum):
    """Durable asset lifecycle states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class AssetType(str, Enum):
    """Asset kinds used for poly budgets and output layout."""

    HERO = "hero"
    PROP = "prop"
    ENVIRONMENT = "environment"
    FOLIAGE = "foliage"


@dataclass(slots=True)
class Asset:
    """One generation task inside a region."""

    id: str
    name: str
    description: str
    type: AssetType
    status: AssetStatus
    started_at: int | None = None
    completed_at: int | None = None
    failed_at: int | None = None
    output_path: str | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Region:
    """Thematic group of assets sharing a palette."""

    theme: str
    palette: list[str]
    assets: list[Asset]
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ArtDirection:
    """Advisory art direction, only used to build the authoring brief."""

    style: str = ""
    poly_budget: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def budget_for(self, asset_type: AssetType) -> str:
        return self.poly_budget.get(asset_type.value) or DEFAULT_POLY_BUDGET


@dataclass(slots=True)
class Manifest:
    """Root persisted document. Region order is the queue order."""

    regions: dict[str, Region]
    art_direction: ArtDirection | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def iter_assets(self) -> Iterator[tuple[str, Region, Asset]]:
        """Yield ``(region_id, region, asset)`` in persisted order."""

        for region_id, region in self.regions.items():
            for asset in region.assets:
                yield region_id, region, asset

    def find_asset(self, asset_id: str) -> NextAsset | None:
        for region_id, region, asset in self.iter_assets():
            if asset.id == asset_id:
                return NextAsset(region_id=region_id, region=region, asset=asset)
        return None


@dataclass(slots=True)
class NextAsset:
    """Selected asset together with its owning region."""

    region_id: str
    region: Region
    asset: Asset


@dataclass(slots=True)
class PipelineResult:
    """Outcome of one ``select_and_run`` invocation."""

    success: bool
    asset_id: str | None = None
    output_path: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"success": self.success}
        if self.asset_id is not None:
            payload["assetId"] = self.asset_id
        if self.output_path is not None:
            payload["outputPath"] = self.output_path
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class ProgressView:
    """Aggregate counters over all manifest assets."""

    total: int
    completed: int
    in_progress: int
    failed: int
    pending: int
    percent: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "in_progress": self.in_progress,
            "failed": self.failed,
            "pending": self.pending,
            "percent": self.percent,
        }


@dataclass(slots=True)
class StatusReport:
    """Progress plus a descriptor of the next eligible asset."""

    progress: ProgressView
    next_asset: str
