"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from asset_pipeline.pipeline.bridge import ToolCall, ToolError


def _asset(asset_id: str, *, status: str = "pending", asset_type: str = "prop") -> dict:
    return {
        "id": asset_id,
        "name": asset_id.replace("_", " ").title(),
        "description": f"Description of {asset_id}",
        "type": asset_type,
        "status": status,
    }


class ScriptedToolBridge:
    """Records calls and raises ``ToolError`` on the configured call number."""

    def __init__(self, *, fail_on_call: int | None = None, message: str = "boom") -> None:
        self.fail_on_call = fail_on_call
        self.message = message
        self.calls: list[ToolCall] = []

    def invoke(
        self,
        server_name: str,
        method: str,
        params: Mapping[str, Any],
        timeout_seconds: float,
    ) -> str:
        self.calls.append(
            ToolCall(
                server_name=server_name,
                method=method,
                params=dict(params),
                timeout_seconds=timeout_seconds,
            ),
        )
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise ToolError(self.message)
        return "ok"


@pytest.fixture()
def sample_manifest() -> dict[str, Any]:
    """Two regions; the first pending asset is ``mossy_rock_01`` in ``forest``."""

    return {
        "artDirection": {
            "style": "painterly low-poly",
            "polyBudget": {"hero": "5000-10000 tris", "foliage": "500-2000 tris"},
        },
        "regions": {
            "forest": {
                "theme": "Ancient misty woodland",
                "palette": ["#2E4A2E", "#5C4033", "#C8E6C9", "#101010"],
                "assets": [
                    _asset("oak_01", status="completed", asset_type="foliage"),
                    _asset("mossy_rock_01", asset_type="environment"),
                    _asset("supply_crate", status="failed"),
                ],
            },
            "ruins": {
                "theme": "Collapsed temple",
                "palette": ["#777777"],
                "assets": [
                    _asset("void_altar", asset_type="hero"),
                ],
            },
        },
    }


@pytest.fixture()
def manifest_path(tmp_path: Path, sample_manifest: dict[str, Any]) -> Path:
    path = tmp_path / "Assets" / "asset-manifest.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(sample_manifest, indent=2), "utf-8")
    return path


@pytest.fixture()
def scripted_bridge():
    """Factory for bridges that fail on a chosen call."""

    def _make(*, fail_on_call: int | None = None, message: str = "boom") -> ScriptedToolBridge:
        return ScriptedToolBridge(fail_on_call=fail_on_call, message=message)

    return _make
