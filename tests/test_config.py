from __future__ import annotations

from pathlib import Path

import allure
import pytest

from asset_pipeline.config import PipelineSettings, Settings, ToolSettings
from asset_pipeline.pipeline.models import AssetType

pytestmark = [
    allure.epic("Asset Pipeline"),
    allure.feature("Configuration"),
]


def test_from_env_defaults(monkeypatch) -> None:
    for name in (
        "ASSET_PIPELINE_MANIFEST_PATH",
        "ASSET_PIPELINE_ASSETS_ROOT",
        "ASSET_PIPELINE_CATEGORY_ROOTS",
        "ASSET_PIPELINE_GENERATE_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.pipeline.manifest_path == Path("Assets/asset-manifest.json")
    assert settings.pipeline.assets_root == Path("Assets")
    assert settings.pipeline.category_roots == {}
    assert settings.tool.generate_timeout_seconds == 60.0
    settings.validate()


def test_explicit_paths_override_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ASSET_PIPELINE_MANIFEST_PATH", "/ignored/manifest.json")

    settings = Settings.from_env(manifest_path=tmp_path / "m.json", assets_root=tmp_path)

    assert settings.pipeline.manifest_path == tmp_path / "m.json"
    assert settings.pipeline.assets_root == tmp_path


def test_from_env_reads_tool_settings(monkeypatch) -> None:
    monkeypatch.setenv("ASSET_PIPELINE_GATEWAY_URL", "https://tools.example.com/mcp")
    monkeypatch.setenv("ASSET_PIPELINE_TOOL_SERVER", "blender-2")
    monkeypatch.setenv("ASSET_PIPELINE_EXPORT_TIMEOUT_SECONDS", "45.5")

    tool = Settings.from_env().tool

    assert tool.gateway_url == "https://tools.example.com/mcp"
    assert tool.server_name == "blender-2"
    assert tool.export_timeout_seconds == 45.5


def test_category_roots_are_parsed_per_asset_type(monkeypatch) -> None:
    monkeypatch.setenv("ASSET_PIPELINE_CATEGORY_ROOTS", "hero|Heroes/, foliage|Foliage")

    pipeline = Settings.from_env().pipeline

    assert pipeline.category_roots == {"hero": "Heroes", "foliage": "Foliage"}
    assert pipeline.category_root_for(AssetType.HERO) == "Heroes"
    assert pipeline.category_root_for(AssetType.PROP) == "Meshes"


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("hero", "Expected format"),
        ("vehicle|Vehicles", "asset type"),
        ("hero|", "empty"),
    ],
)
def test_category_roots_reject_bad_entries(monkeypatch, raw: str, message: str) -> None:
    monkeypatch.setenv("ASSET_PIPELINE_CATEGORY_ROOTS", raw)

    with pytest.raises(ValueError, match=message):
        Settings.from_env()


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        (
            Settings(pipeline=PipelineSettings(stale_in_progress_seconds=-1)),
            "STALE_IN_PROGRESS",
        ),
        (Settings(pipeline=PipelineSettings(category_root=" ")), "CATEGORY_ROOT"),
        (Settings(tool=ToolSettings(generate_timeout_seconds=0)), "GENERATE_TIMEOUT"),
        (Settings(tool=ToolSettings(method="")), "must not be empty"),
        (Settings(tool=ToolSettings(gateway_url="ftp://host/mcp")), "Invalid tool gateway URL"),
    ],
)
def test_validate_rejects_unusable_values(settings: Settings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        settings.validate()
