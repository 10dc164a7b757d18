"""Per-asset generation lifecycle against the remote authoring tool."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from asset_pipeline.common import epoch_ms, utc_now
from asset_pipeline.config import Settings
from asset_pipeline.pipeline.bridge import ToolBridge, ToolError
from asset_pipeline.pipeline.geometry import GeometryError, build_authoring_brief
from asset_pipeline.pipeline.manifest import ManifestError, ManifestStore
from asset_pipeline.pipeline.models import (
    AssetStatus,
    NextAsset,
    PipelineResult,
    ProgressView,
)
from asset_pipeline.pipeline.progress import ProgressReporter
from asset_pipeline.pipeline.recipes import build_generation_recipe
from asset_pipeline.pipeline.render import (
    EXPORT_EXTENSION,
    SCENE_RESET_SCRIPT,
    render_export_script,
    render_recipe_script,
)
from asset_pipeline.pipeline.selector import TaskSelector

logger = logging.getLogger(__name__)

NO_PENDING_ASSETS = "no_pending_assets"


@dataclass(slots=True)
class OutputLocation:
    """Where one asset is exported."""

    relative_path: str
    export_path: str


class PipelineOrchestrator:
    """Selects one pending asset per call and drives it to completed or failed.

    Not safe to run concurrently with itself against the same manifest.
    """

    def __init__(
        self,
        *,
        store: ManifestStore,
        bridge: ToolBridge,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.bridge = bridge
        self.settings = settings
        self.selector = TaskSelector(store)
        self.reporter = ProgressReporter(store)
        self._clock = clock

    def select_and_run(self) -> PipelineResult:
        """Generate the next pending asset.

        Per-asset failures are recorded in the manifest and returned; only
        manifest errors propagate.
        """

        self._reclaim_stale_assets()
        selected = self.selector.get_next_pending_asset()
        if selected is None:
            logger.info("No pending assets in manifest")
            return PipelineResult(success=False, error=NO_PENDING_ASSETS)

        asset = selected.asset
        logger.info(
            "Starting asset generation: asset_id=%s region=%s name=%s",
            asset.id,
            selected.region_id,
            asset.name,
        )
        self.store.update_asset_status(
            asset.id,
            AssetStatus.IN_PROGRESS,
            {"startedAt": self._now_ms()},
        )

        try:
            location = self._generate(selected)
        except ToolError as error:
            return self._fail(asset.id, str(error), transient=error.transient)
        except GeometryError as error:
            return self._fail(asset.id, str(error))
        except ManifestError:
            raise
        except Exception as error:  # noqa: BLE001
            logger.exception("Unexpected error while generating %s", asset.id)
            return self._fail(asset.id, str(error) or type(error).__name__)

        self.store.update_asset_status(
            asset.id,
            AssetStatus.COMPLETED,
            {"completedAt": self._now_ms(), "outputPath": location.relative_path},
        )
        logger.info(
            "Asset generation complete: asset_id=%s output=%s",
            asset.id,
            location.export_path,
        )
        return PipelineResult(
            success=True,
            asset_id=asset.id,
            output_path=location.relative_path,
        )

    def query_progress(self) -> ProgressView:
        return self.reporter.aggregate()

    def output_location(self, selected: NextAsset) -> OutputLocation:
        """Relative manifest path and absolute export path for ``selected``."""

        category_root = self.settings.pipeline.category_root_for(selected.asset.type)
        relative_path = (
            f"{category_root}/{selected.region_id}/{selected.asset.id}.{EXPORT_EXTENSION}"
        )
        export_path = str(self.settings.pipeline.assets_root.absolute() / relative_path)
        return OutputLocation(
            relative_path=relative_path,
            export_path=export_path.replace("\\", "/"),
        )

    def _generate(self, selected: NextAsset) -> OutputLocation:
        asset = selected.asset
        manifest = self.store.load()
        logger.debug(
            "Authoring brief for %s:\n%s",
            asset.id,
            build_authoring_brief(asset, selected.region, selected.region_id, manifest),
        )
        recipe = build_generation_recipe(asset, selected.region, selected.region_id, manifest)
        generation_script = render_recipe_script(recipe)
        location = self.output_location(selected)
        tool = self.settings.tool

        self._call_tool("scene_reset", {"code": SCENE_RESET_SCRIPT}, tool.reset_timeout_seconds)
        self._call_tool(
            "geometry_generation",
            {"code": generation_script},
            tool.generate_timeout_seconds,
        )
        self._call_tool(
            "export",
            {"code": render_export_script(location.export_path)},
            tool.export_timeout_seconds,
        )
        return location

    def _call_tool(self, step: str, params: Mapping[str, Any], timeout_seconds: float) -> None:
        tool = self.settings.tool
        result = self.bridge.invoke(tool.server_name, tool.method, params, timeout_seconds)
        logger.debug("Step %s finished: result_len=%d", step, len(str(result or "")))

    def _fail(self, asset_id: str, message: str, *, transient: bool = False) -> PipelineResult:
        # Transient failures are still terminal; retry is an external decision.
        logger.error(
            "Asset generation failed: asset_id=%s transient=%s error=%s",
            asset_id,
            transient,
            message,
        )
        self.store.update_asset_status(
            asset_id,
            AssetStatus.FAILED,
            {"failedAt": self._now_ms(), "error": message},
        )
        return PipelineResult(success=False, asset_id=asset_id, error=message)

    def _reclaim_stale_assets(self) -> None:
        stale_seconds = self.settings.pipeline.stale_in_progress_seconds
        if stale_seconds <= 0:
            return
        self.store.reclaim_stale_in_progress(
            stale_after=timedelta(seconds=stale_seconds),
            now=self._clock(),
        )

    def _now_ms(self) -> int:
        return epoch_ms(self._clock())
