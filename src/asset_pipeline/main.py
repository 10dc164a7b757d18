"""CLI entrypoint for asset-pipeline."""

from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from asset_pipeline import __version__
from asset_pipeline.pipeline.controllers import (
    PipelineAssetCommand,
    PipelineCliController,
    PipelineProgressCommand,
    PipelineRunCommand,
)
from asset_pipeline.pipeline.manifest import ManifestError

click.rich_click.USE_MARKDOWN = True
PIPELINE_CONTROLLER = PipelineCliController()
_CommandT = TypeVar("_CommandT")

_MANIFEST_OPTION = click.option(
    "--manifest-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Asset manifest JSON path.",
)
_FORMAT_OPTION = click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Output format.",
)


@click.group()
@click.version_option(version=__version__, prog_name="asset-pipeline")
def asset_pipeline() -> None:
    """Asset generation pipeline CLI."""


@asset_pipeline.command("run")
@_MANIFEST_OPTION
@click.option(
    "--assets-root",
    type=click.Path(path_type=Path),
    default=None,
    help="Root directory for exported assets.",
)
@click.option(
    "--max-assets",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Stop after generating this many assets.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Record tool calls instead of contacting the tool gateway.",
)
@click.option(
    "--script-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="With --dry-run, write submitted scripts to this directory.",
)
def run(
    manifest_path: Path | None,
    assets_root: Path | None,
    max_assets: int,
    dry_run: bool,
    script_dir: Path | None,
) -> None:
    """Generate the next pending asset(s) from the manifest."""

    _emit_lines(
        _invoke(
            PIPELINE_CONTROLLER.run,
            PipelineRunCommand(
                manifest_path=manifest_path,
                assets_root=assets_root,
                max_assets=max_assets,
                dry_run=dry_run,
                script_dir=script_dir,
            ),
        ),
    )


@asset_pipeline.command("progress")
@_MANIFEST_OPTION
@_FORMAT_OPTION
def progress(manifest_path: Path | None, output_format: str) -> None:
    """Show completion counters for all assets."""

    _emit_lines(
        _invoke(
            PIPELINE_CONTROLLER.progress,
            PipelineProgressCommand(manifest_path=manifest_path, output_format=output_format),
        ),
    )


@asset_pipeline.command("status")
@_MANIFEST_OPTION
@_FORMAT_OPTION
def status(manifest_path: Path | None, output_format: str) -> None:
    """Show progress and the next asset in the queue."""

    _emit_lines(
        _invoke(
            PIPELINE_CONTROLLER.status,
            PipelineProgressCommand(manifest_path=manifest_path, output_format=output_format),
        ),
    )


@asset_pipeline.command("brief")
@_MANIFEST_OPTION
@click.argument("asset_id")
def brief(manifest_path: Path | None, asset_id: str) -> None:
    """Print the authoring brief for one asset."""

    _emit_lines(
        _invoke(
            PIPELINE_CONTROLLER.brief,
            PipelineAssetCommand(manifest_path=manifest_path, asset_id=asset_id),
        ),
    )


@asset_pipeline.command("script")
@_MANIFEST_OPTION
@click.argument("asset_id")
def script(manifest_path: Path | None, asset_id: str) -> None:
    """Print the generation script for one asset without running it."""

    _emit_lines(
        _invoke(
            PIPELINE_CONTROLLER.script,
            PipelineAssetCommand(manifest_path=manifest_path, asset_id=asset_id),
        ),
    )


@asset_pipeline.command("retry")
@_MANIFEST_OPTION
@click.argument("asset_id")
def retry(manifest_path: Path | None, asset_id: str) -> None:
    """Reset a failed or stuck asset back to pending."""

    _emit_lines(
        _invoke(
            PIPELINE_CONTROLLER.retry,
            PipelineAssetCommand(manifest_path=manifest_path, asset_id=asset_id),
        ),
    )


def _invoke(handler: Callable[[_CommandT], list[str]], command: _CommandT) -> list[str]:
    try:
        return handler(command)
    except (ManifestError, LookupError, ValueError) as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    asset_pipeline()
