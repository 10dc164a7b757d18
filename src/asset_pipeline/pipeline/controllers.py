"""Controllers for pipeline CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from asset_pipeline.config import Settings
from asset_pipeline.pipeline.bridge import DryRunToolBridge, HttpToolBridge, ToolBridge
from asset_pipeline.pipeline.geometry import build_authoring_brief, classify_asset
from asset_pipeline.pipeline.manifest import ManifestStore
from asset_pipeline.pipeline.models import NextAsset, PipelineResult
from asset_pipeline.pipeline.orchestrator import PipelineOrchestrator
from asset_pipeline.pipeline.progress import ProgressReporter, render_progress_lines
from asset_pipeline.pipeline.recipes import build_generation_recipe
from asset_pipeline.pipeline.render import render_recipe_script


@dataclass(slots=True)
class PipelineRunCommand:
    """CLI input for generating queued assets."""

    manifest_path: Path | None
    assets_root: Path | None
    max_assets: int = 1
    dry_run: bool = False
    script_dir: Path | None = None


@dataclass(slots=True)
class PipelineProgressCommand:
    """CLI input for progress and status views."""

    manifest_path: Path | None
    output_format: str = "table"


@dataclass(slots=True)
class PipelineAssetCommand:
    """CLI input for single-asset inspection and recovery."""

    manifest_path: Path | None
    asset_id: str


class PipelineCliController:
    """Coordinates pipeline runs, progress views, and asset inspection."""

    def run(self, command: PipelineRunCommand) -> list[str]:
        settings = Settings.from_env(
            manifest_path=command.manifest_path,
            assets_root=command.assets_root,
        )
        settings.validate()
        store = ManifestStore(settings.pipeline.manifest_path)
        lines: list[str] = []
        with _bridge(settings, dry_run=command.dry_run, script_dir=command.script_dir) as bridge:
            orchestrator = PipelineOrchestrator(store=store, bridge=bridge, settings=settings)
            for _ in range(command.max_assets):
                result = orchestrator.select_and_run()
                lines.append(_result_line(result))
                if result.asset_id is None:
                    break
            lines.extend(render_progress_lines(ProgressReporter(store).status_report()))
        return lines

    def progress(self, command: PipelineProgressCommand) -> list[str]:
        reporter = _reporter(command.manifest_path)
        if command.output_format == "json":
            return [json.dumps(reporter.aggregate().to_dict(), sort_keys=True)]
        return render_progress_lines(reporter.status_report())

    def status(self, command: PipelineProgressCommand) -> list[str]:
        report = _reporter(command.manifest_path).status_report()
        if command.output_format == "json":
            payload = {**report.progress.to_dict(), "nextAsset": report.next_asset}
            return [json.dumps(payload, sort_keys=True)]
        return render_progress_lines(report)

    def brief(self, command: PipelineAssetCommand) -> list[str]:
        store, found = _find_asset(command)
        manifest = store.load()
        category = classify_asset(found.asset.id)
        brief = build_authoring_brief(found.asset, found.region, found.region_id, manifest)
        return [
            f"Asset: {found.asset.id} region={found.region_id} "
            f"status={found.asset.status.value} category={category.value}",
            "",
            *brief.splitlines(),
        ]

    def script(self, command: PipelineAssetCommand) -> list[str]:
        store, found = _find_asset(command)
        recipe = build_generation_recipe(
            found.asset,
            found.region,
            found.region_id,
            store.load(),
        )
        return render_recipe_script(recipe).splitlines()

    def retry(self, command: PipelineAssetCommand) -> list[str]:
        store = ManifestStore(_settings(command.manifest_path).pipeline.manifest_path)
        if not store.reset_asset(command.asset_id):
            raise LookupError(f"Asset not found: {command.asset_id}")
        return [f"Asset reset to pending: {command.asset_id}"]


def _settings(manifest_path: Path | None) -> Settings:
    return Settings.from_env(manifest_path=manifest_path)


def _reporter(manifest_path: Path | None) -> ProgressReporter:
    return ProgressReporter(ManifestStore(_settings(manifest_path).pipeline.manifest_path))


def _find_asset(command: PipelineAssetCommand) -> tuple[ManifestStore, NextAsset]:
    store = ManifestStore(_settings(command.manifest_path).pipeline.manifest_path)
    found = store.load().find_asset(command.asset_id)
    if found is None:
        raise LookupError(f"Asset not found: {command.asset_id}")
    return store, found


@contextmanager
def _bridge(
    settings: Settings,
    *,
    dry_run: bool,
    script_dir: Path | None,
) -> Iterator[ToolBridge]:
    if dry_run:
        yield DryRunToolBridge(script_dir=script_dir)
        return
    with HttpToolBridge(
        gateway_url=settings.tool.gateway_url,
        connect_timeout_seconds=settings.tool.connect_timeout_seconds,
    ) as bridge:
        yield bridge


def _result_line(result: PipelineResult) -> str:
    if result.success:
        return f"Generated: asset_id={result.asset_id} output={result.output_path}"
    if result.asset_id is None:
        return f"Nothing to do: {result.error}"
    return f"Failed: asset_id={result.asset_id} error={result.error}"
