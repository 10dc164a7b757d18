from __future__ import annotations

import json
from pathlib import Path

import allure

from asset_pipeline.pipeline.manifest import ManifestStore
from asset_pipeline.pipeline.models import AssetStatus, Manifest
from asset_pipeline.pipeline.progress import (
    ProgressReporter,
    compute_progress,
    render_progress_lines,
)

pytestmark = [
    allure.epic("Asset Pipeline"),
    allure.feature("Progress Reporting"),
]


def test_aggregate_counts_every_status(manifest_path: Path) -> None:
    view = ProgressReporter(ManifestStore(manifest_path)).aggregate()

    assert view.to_dict() == {
        "total": 4,
        "completed": 1,
        "in_progress": 0,
        "failed": 1,
        "pending": 2,
        "percent": 25,
    }


def test_empty_manifest_reports_zero_percent() -> None:
    view = compute_progress(Manifest(regions={}))

    assert view.total == 0
    assert view.percent == 0


def test_percent_rounds_half_up(tmp_path: Path) -> None:
    statuses = ["completed"] + ["pending"] * 7
    path = tmp_path / "manifest.json"
    path.write_text(
        json.dumps(
            {
                "regions": {
                    "r": {
                        "theme": "",
                        "palette": [],
                        "assets": [
                            {
                                "id": f"a{index}",
                                "name": "A",
                                "description": "",
                                "type": "prop",
                                "status": status,
                            }
                            for index, status in enumerate(statuses)
                        ],
                    },
                },
            },
        ),
        "utf-8",
    )

    # 1/8 = 12.5%
    assert ProgressReporter(ManifestStore(path)).aggregate().percent == 13


def test_status_report_names_next_asset(manifest_path: Path) -> None:
    report = ProgressReporter(ManifestStore(manifest_path)).status_report()

    assert report.next_asset == "Mossy Rock 01 (forest)"
    assert render_progress_lines(report) == [
        "Assets: 1/4 completed (25%)",
        "  pending=2 in_progress=0 failed=1",
        "Next asset: Mossy Rock 01 (forest)",
    ]


def test_status_report_without_pending_assets(manifest_path: Path) -> None:
    store = ManifestStore(manifest_path)
    for asset_id in ("mossy_rock_01", "void_altar"):
        store.update_asset_status(asset_id, AssetStatus.COMPLETED)

    report = ProgressReporter(store).status_report()

    assert report.next_asset == "none"
    assert report.progress.percent == 75
