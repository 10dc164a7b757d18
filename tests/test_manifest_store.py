from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import allure
import pytest

from asset_pipeline.common import epoch_ms
from asset_pipeline.pipeline.manifest import (
    ManifestError,
    ManifestStore,
    merge_asset_fields,
    parse_manifest,
)
from asset_pipeline.pipeline.models import Asset, AssetStatus, AssetType

pytestmark = [
    allure.epic("Asset Pipeline"),
    allure.feature("Manifest Store"),
]


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload, indent=2), "utf-8")
    return path


def _asset_json(path: Path, asset_id: str) -> dict:
    payload = json.loads(path.read_text("utf-8"))
    for region in payload["regions"].values():
        for asset in region["assets"]:
            if asset["id"] == asset_id:
                return asset
    raise KeyError(asset_id)


def test_load_keeps_region_and_asset_order(manifest_path: Path) -> None:
    manifest = ManifestStore(manifest_path).load()

    assert list(manifest.regions) == ["forest", "ruins"]
    assert [asset.id for _, _, asset in manifest.iter_assets()] == [
        "oak_01",
        "mossy_rock_01",
        "supply_crate",
        "void_altar",
    ]
    assert manifest.art_direction is not None
    assert manifest.art_direction.budget_for(AssetType.HERO) == "5000-10000 tris"
    assert manifest.art_direction.budget_for(AssetType.PROP) == "1000-5000 tris"


def test_update_unknown_asset_leaves_file_untouched(manifest_path: Path) -> None:
    before = manifest_path.read_bytes()

    updated = ManifestStore(manifest_path).update_asset_status("missing", AssetStatus.FAILED)

    assert updated is False
    assert manifest_path.read_bytes() == before


def test_update_sets_status_and_merges_fields(manifest_path: Path) -> None:
    store = ManifestStore(manifest_path)
    others = ("oak_01", "supply_crate", "void_altar")
    before = {asset_id: _asset_json(manifest_path, asset_id) for asset_id in others}

    assert store.update_asset_status(
        "mossy_rock_01",
        AssetStatus.COMPLETED,
        {"completedAt": 1700000000000, "outputPath": "Meshes/forest/mossy_rock_01.fbx"},
    )

    raw = _asset_json(manifest_path, "mossy_rock_01")
    assert raw["status"] == "completed"
    assert raw["completedAt"] == 1700000000000
    assert raw["outputPath"] == "Meshes/forest/mossy_rock_01.fbx"
    assert list(store.load().regions) == ["forest", "ruins"]
    assert {asset_id: _asset_json(manifest_path, asset_id) for asset_id in others} == before


def test_update_accepts_status_value_string(manifest_path: Path) -> None:
    store = ManifestStore(manifest_path)

    assert store.update_asset_status("void_altar", "completed")

    assert _asset_json(manifest_path, "void_altar")["status"] == "completed"


def test_update_rejects_unknown_status_without_writing(manifest_path: Path) -> None:
    before = manifest_path.read_bytes()

    with pytest.raises(ValueError, match="queued"):
        ManifestStore(manifest_path).update_asset_status("void_altar", "queued")

    assert manifest_path.read_bytes() == before


@pytest.mark.parametrize("value", ["2026-03-01T10:00:00Z", 1.5, True])
def test_load_rejects_non_epoch_timestamps(tmp_path: Path, value: object) -> None:
    path = _write(
        tmp_path / "manifest.json",
        {
            "regions": {
                "r": {
                    "assets": [
                        {
                            "id": "stuck",
                            "name": "Stuck",
                            "description": "",
                            "type": "prop",
                            "status": "in_progress",
                            "startedAt": value,
                        },
                    ],
                },
            },
        },
    )

    with pytest.raises(ManifestError, match="startedAt must be epoch milliseconds"):
        ManifestStore(path).load()


def test_update_without_extra_fields_only_changes_status(manifest_path: Path) -> None:
    store = ManifestStore(manifest_path)

    store.update_asset_status("void_altar", AssetStatus.IN_PROGRESS)

    raw = _asset_json(manifest_path, "void_altar")
    assert raw["status"] == "in_progress"
    assert set(raw) == {"id", "name", "description", "type", "status"}


def test_unknown_keys_survive_a_rewrite(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "manifest.json",
        {
            "version": 3,
            "regions": {
                "coast": {
                    "theme": "Windy cliffs",
                    "palette": ["#112233"],
                    "ambience": "gulls",
                    "assets": [
                        {
                            "id": "barrel_01",
                            "name": "Barrel",
                            "description": "Salted fish barrel",
                            "type": "prop",
                            "status": "pending",
                            "tags": ["dock"],
                        },
                    ],
                },
            },
        },
    )

    ManifestStore(path).update_asset_status("barrel_01", AssetStatus.IN_PROGRESS, {"note": "x"})

    payload = json.loads(path.read_text("utf-8"))
    assert payload["version"] == 3
    assert payload["regions"]["coast"]["ambience"] == "gulls"
    asset = payload["regions"]["coast"]["assets"][0]
    assert asset["tags"] == ["dock"]
    assert asset["note"] == "x"
    assert "artDirection" not in payload


def test_save_writes_no_temporary_leftovers(manifest_path: Path) -> None:
    store = ManifestStore(manifest_path)

    store.update_asset_status("void_altar", AssetStatus.FAILED, {"error": "boom"})

    assert sorted(p.name for p in manifest_path.parent.iterdir()) == ["asset-manifest.json"]
    assert manifest_path.read_text("utf-8").endswith("}\n")


def test_merge_asset_fields_rejects_identity_keys() -> None:
    asset = Asset(
        id="crate",
        name="Crate",
        description="",
        type=AssetType.PROP,
        status=AssetStatus.PENDING,
    )

    with pytest.raises(ValueError, match="cannot be merged"):
        merge_asset_fields(asset, {"id": "other"})


def test_load_missing_file_raises_manifest_error(tmp_path: Path) -> None:
    with pytest.raises(ManifestError, match="Cannot read manifest"):
        ManifestStore(tmp_path / "absent.json").load()


def test_load_invalid_json_raises_manifest_error(tmp_path: Path) -> None:
    path = tmp_path / "manifest.json"
    path.write_text("{not json", "utf-8")

    with pytest.raises(ManifestError, match="not valid JSON"):
        ManifestStore(path).load()


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([], "root must be a JSON object"),
        ({"regions": []}, "regions must be an object"),
        ({"regions": {"a": {"assets": [{"id": "x"}]}}}, "missing fields"),
        (
            {
                "regions": {
                    "a": {
                        "assets": [
                            {
                                "id": "x",
                                "name": "X",
                                "description": "",
                                "type": "prop",
                                "status": "queued",
                            },
                        ],
                    },
                },
            },
            "unknown status",
        ),
        (
            {
                "regions": {
                    "a": {
                        "assets": [
                            {
                                "id": "x",
                                "name": "X",
                                "description": "",
                                "type": "vehicle",
                                "status": "pending",
                            },
                        ],
                    },
                },
            },
            "unknown type",
        ),
    ],
)
def test_parse_manifest_rejects_malformed_documents(payload: object, message: str) -> None:
    with pytest.raises(ManifestError, match=message):
        parse_manifest(payload)


def test_parse_manifest_rejects_duplicate_ids() -> None:
    asset = {"id": "x", "name": "X", "description": "", "type": "prop", "status": "pending"}

    with pytest.raises(ManifestError, match="Duplicate asset id"):
        parse_manifest({"regions": {"a": {"assets": [asset]}, "b": {"assets": [asset]}}})


def test_reclaim_returns_only_stale_in_progress_assets(tmp_path: Path) -> None:
    now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    base = {"name": "N", "description": "", "type": "prop"}
    path = _write(
        tmp_path / "manifest.json",
        {
            "regions": {
                "r": {
                    "theme": "",
                    "palette": [],
                    "assets": [
                        {
                            **base,
                            "id": "old",
                            "status": "in_progress",
                            "startedAt": epoch_ms(now - timedelta(minutes=30)),
                        },
                        {
                            **base,
                            "id": "fresh",
                            "status": "in_progress",
                            "startedAt": epoch_ms(now - timedelta(seconds=5)),
                        },
                        {**base, "id": "no_start", "status": "in_progress"},
                        {**base, "id": "done", "status": "completed"},
                    ],
                },
            },
        },
    )
    store = ManifestStore(path)

    reclaimed = store.reclaim_stale_in_progress(stale_after=timedelta(minutes=10), now=now)

    assert reclaimed == ["old", "no_start"]
    statuses = {asset.id: asset.status for _, _, asset in store.load().iter_assets()}
    assert statuses == {
        "old": AssetStatus.PENDING,
        "fresh": AssetStatus.IN_PROGRESS,
        "no_start": AssetStatus.PENDING,
        "done": AssetStatus.COMPLETED,
    }
    assert _asset_json(path, "old")["reclaimedAt"] == epoch_ms(now)


def test_reclaim_without_stale_assets_does_not_write(manifest_path: Path) -> None:
    before = manifest_path.read_bytes()

    reclaimed = ManifestStore(manifest_path).reclaim_stale_in_progress(
        stale_after=timedelta(minutes=1),
    )

    assert reclaimed == []
    assert manifest_path.read_bytes() == before


def test_reset_asset_requeues_failed_asset(manifest_path: Path) -> None:
    store = ManifestStore(manifest_path)
    store.update_asset_status(
        "supply_crate",
        AssetStatus.FAILED,
        {"failedAt": 1700000000000, "error": "Export timed out"},
    )

    assert store.reset_asset("supply_crate") is True

    raw = _asset_json(manifest_path, "supply_crate")
    assert raw["status"] == "pending"
    assert "error" not in raw
    assert "failedAt" not in raw


def test_reset_asset_refuses_completed_asset(manifest_path: Path) -> None:
    with pytest.raises(ValueError, match="Only failed or in_progress"):
        ManifestStore(manifest_path).reset_asset("oak_01")


def test_reset_asset_unknown_id_returns_false(manifest_path: Path) -> None:
    assert ManifestStore(manifest_path).reset_asset("missing") is False
