"""Runtime configuration for the asset pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from asset_pipeline.pipeline.models import AssetType


@dataclass(slots=True)
class PipelineSettings:
    """Manifest location and output layout."""

    manifest_path: Path = Path("Assets/asset-manifest.json")
    assets_root: Path = Path("Assets")
    category_root: str = "Meshes"
    category_roots: dict[str, str] = field(default_factory=dict)
    stale_in_progress_seconds: int = 0

    def category_root_for(self, asset_type: AssetType) -> str:
        """Output directory (relative to ``assets_root``) for one asset type."""

        return self.category_roots.get(asset_type.value, self.category_root)


@dataclass(slots=True)
class ToolSettings:
    """Remote authoring tool endpoint and per-step timeouts."""

    gateway_url: str = "http://127.0.0.1:3100/mcp"
    server_name: str = "blender"
    method: str = "execute_blender_code"
    connect_timeout_seconds: float = 10.0
    reset_timeout_seconds: float = 15.0
    generate_timeout_seconds: float = 60.0
    export_timeout_seconds: float = 30.0


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    tool: ToolSettings = field(default_factory=ToolSettings)

    @classmethod
    def from_env(
        cls,
        manifest_path: Path | None = None,
        assets_root: Path | None = None,
    ) -> Settings:
        """Load settings from environment with defaults for a local workspace."""

        return cls(
            pipeline=PipelineSettings(
                manifest_path=manifest_path
                or Path(os.getenv("ASSET_PIPELINE_MANIFEST_PATH", "Assets/asset-manifest.json")),
                assets_root=assets_root or Path(os.getenv("ASSET_PIPELINE_ASSETS_ROOT", "Assets")),
                category_root=os.getenv("ASSET_PIPELINE_CATEGORY_ROOT", "Meshes"),
                category_roots=_collect_category_roots(),
                stale_in_progress_seconds=int(
                    os.getenv("ASSET_PIPELINE_STALE_IN_PROGRESS_SECONDS", "0"),
                ),
            ),
            tool=ToolSettings(
                gateway_url=os.getenv("ASSET_PIPELINE_GATEWAY_URL", "http://127.0.0.1:3100/mcp"),
                server_name=os.getenv("ASSET_PIPELINE_TOOL_SERVER", "blender"),
                method=os.getenv("ASSET_PIPELINE_TOOL_METHOD", "execute_blender_code"),
                connect_timeout_seconds=float(
                    os.getenv("ASSET_PIPELINE_CONNECT_TIMEOUT_SECONDS", "10"),
                ),
                reset_timeout_seconds=float(
                    os.getenv("ASSET_PIPELINE_RESET_TIMEOUT_SECONDS", "15"),
                ),
                generate_timeout_seconds=float(
                    os.getenv("ASSET_PIPELINE_GENERATE_TIMEOUT_SECONDS", "60"),
                ),
                export_timeout_seconds=float(
                    os.getenv("ASSET_PIPELINE_EXPORT_TIMEOUT_SECONDS", "30"),
                ),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for unusable values."""

        if self.pipeline.stale_in_progress_seconds < 0:
            raise ValueError("ASSET_PIPELINE_STALE_IN_PROGRESS_SECONDS must be >= 0.")
        if not self.pipeline.category_root.strip():
            raise ValueError("ASSET_PIPELINE_CATEGORY_ROOT must not be empty.")
        timeouts = {
            "ASSET_PIPELINE_CONNECT_TIMEOUT_SECONDS": self.tool.connect_timeout_seconds,
            "ASSET_PIPELINE_RESET_TIMEOUT_SECONDS": self.tool.reset_timeout_seconds,
            "ASSET_PIPELINE_GENERATE_TIMEOUT_SECONDS": self.tool.generate_timeout_seconds,
            "ASSET_PIPELINE_EXPORT_TIMEOUT_SECONDS": self.tool.export_timeout_seconds,
        }
        for name, value in timeouts.items():
            if value <= 0:
                raise ValueError(f"{name} must be > 0.")
        if not self.tool.server_name.strip() or not self.tool.method.strip():
            raise ValueError("Tool server name and method must not be empty.")
        _validate_gateway_url(self.tool.gateway_url)


def _collect_category_roots() -> dict[str, str]:
    raw = os.getenv("ASSET_PIPELINE_CATEGORY_ROOTS", "").strip()
    if not raw:
        return {}

    known_types = {asset_type.value for asset_type in AssetType}
    roots: dict[str, str] = {}
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        if "|" not in token:
            raise ValueError(
                "Invalid ASSET_PIPELINE_CATEGORY_ROOTS entry: "
                f"{token!r}. Expected format '<asset_type>|<directory>'.",
            )
        asset_type, directory = (value.strip() for value in token.split("|", 1))
        if asset_type not in known_types:
            raise ValueError(
                f"Invalid ASSET_PIPELINE_CATEGORY_ROOTS asset type: {asset_type!r}. "
                f"Use one of {sorted(known_types)}.",
            )
        if not directory:
            raise ValueError(
                f"Invalid ASSET_PIPELINE_CATEGORY_ROOTS directory for {asset_type!r}: empty",
            )
        roots[asset_type] = directory.strip("/")
    return roots


def _validate_gateway_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid tool gateway URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )
