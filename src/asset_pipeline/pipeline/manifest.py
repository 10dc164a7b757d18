"""Durable JSON store for the asset manifest."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Mapping
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from asset_pipeline.common import epoch_ms, utc_now
from asset_pipeline.pipeline.models import (
    ArtDirection,
    Asset,
    AssetStatus,
    AssetType,
    Manifest,
    Region,
)

logger = logging.getLogger(__name__)

# Document key -> Asset attribute for the optional lifecycle fields.
_ASSET_OPTIONAL_FIELDS: dict[str, str] = {
    "startedAt": "started_at",
    "completedAt": "completed_at",
    "failedAt": "failed_at",
    "outputPath": "output_path",
    "error": "error",
}
_TIMESTAMP_KEYS = frozenset({"startedAt", "completedAt", "failedAt"})
_ASSET_REQUIRED_KEYS = ("id", "name", "description", "type", "status")
_REGION_KEYS = ("theme", "palette", "assets")
_ART_DIRECTION_KEYS = ("style", "polyBudget")
_MANIFEST_KEYS = ("artDirection", "regions")


class ManifestError(Exception):
    """Manifest could not be read, parsed, or written."""


class ManifestStore:
    """Load/save facade over one manifest JSON document.

    The whole file is the unit of write. Mutations inside one process are
    serialized by a lock; separate processes writing the same file are not
    coordinated, so only one pipeline instance may run against a manifest.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.RLock()

    def load(self) -> Manifest:
        """Read and validate the manifest document."""

        try:
            text = self.path.read_text("utf-8")
        except OSError as error:
            raise ManifestError(f"Cannot read manifest {self.path}: {error}") from error
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as error:
            raise ManifestError(f"Manifest {self.path} is not valid JSON: {error}") from error
        return parse_manifest(raw)

    def save(self, manifest: Manifest) -> None:
        """Replace the persisted document with ``manifest``."""

        payload = dumps_manifest(manifest)
        with self._lock:
            _atomic_write_text(self.path, payload)

    def update_asset_status(
        self,
        asset_id: str,
        status: AssetStatus | str,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> bool:
        """Set status and merge document fields into one asset.

        Returns ``False`` without touching the file when ``asset_id`` is unknown.
        Raises ``ValueError`` for a status outside ``AssetStatus``.
        """

        status = AssetStatus(status)
        with self._lock:
            manifest = self.load()
            found = manifest.find_asset(asset_id)
            if found is None:
                return False
            found.asset.status = status
            merge_asset_fields(found.asset, extra_fields or {})
            self.save(manifest)
            return True

    def reclaim_stale_in_progress(
        self,
        *,
        stale_after: timedelta,
        now: datetime | None = None,
    ) -> list[str]:
        """Return long-running ``in_progress`` assets to ``pending``."""

        current = now or utc_now()
        cutoff_ms = epoch_ms(current - stale_after)
        with self._lock:
            manifest = self.load()
            reclaimed: list[str] = []
            for _, _, asset in manifest.iter_assets():
                if asset.status != AssetStatus.IN_PROGRESS:
                    continue
                if asset.started_at is not None and asset.started_at > cutoff_ms:
                    continue
                asset.status = AssetStatus.PENDING
                asset.extra["reclaimedAt"] = epoch_ms(current)
                reclaimed.append(asset.id)
            if reclaimed:
                self.save(manifest)
                logger.warning("Reclaimed stale in-progress assets: %s", ", ".join(reclaimed))
            return reclaimed

    def reset_asset(self, asset_id: str) -> bool:
        """Put a failed or stuck asset back into the queue."""

        with self._lock:
            manifest = self.load()
            found = manifest.find_asset(asset_id)
            if found is None:
                return False
            asset = found.asset
            if asset.status not in {AssetStatus.FAILED, AssetStatus.IN_PROGRESS}:
                raise ValueError(
                    f"Only failed or in_progress assets can be reset: "
                    f"{asset_id!r} is {asset.status.value}",
                )
            asset.status = AssetStatus.PENDING
            asset.error = None
            asset.failed_at = None
            asset.started_at = None
            self.save(manifest)
            return True


def merge_asset_fields(asset: Asset, fields: Mapping[str, Any]) -> None:
    """Merge document-keyed fields into ``asset``; unknown keys go to ``extra``."""

    for key, value in fields.items():
        attribute = _ASSET_OPTIONAL_FIELDS.get(key)
        if attribute is not None:
            setattr(asset, attribute, value)
        elif key in _ASSET_REQUIRED_KEYS:
            raise ValueError(f"Field {key!r} cannot be merged as an extra field")
        else:
            asset.extra[key] = value


def parse_manifest(raw: object) -> Manifest:
    """Validate a decoded JSON document and build the manifest model."""

    if not isinstance(raw, dict):
        raise ManifestError("Manifest root must be a JSON object")
    raw_regions = raw.get("regions")
    if not isinstance(raw_regions, dict):
        raise ManifestError("manifest.regions must be an object")

    art_direction = None
    if raw.get("artDirection") is not None:
        art_direction = _parse_art_direction(raw["artDirection"])

    regions: dict[str, Region] = {}
    seen_ids: set[str] = set()
    for region_id, raw_region in raw_regions.items():
        region = _parse_region(region_id, raw_region)
        for asset in region.assets:
            if asset.id in seen_ids:
                raise ManifestError(f"Duplicate asset id in manifest: {asset.id!r}")
            seen_ids.add(asset.id)
        regions[region_id] = region

    return Manifest(
        regions=regions,
        art_direction=art_direction,
        extra={key: value for key, value in raw.items() if key not in _MANIFEST_KEYS},
    )


def manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    """Serialize the manifest with a fixed key order."""

    payload: dict[str, Any] = {}
    if manifest.art_direction is not None:
        art = manifest.art_direction
        payload["artDirection"] = {
            "style": art.style,
            "polyBudget": dict(art.poly_budget),
            **art.extra,
        }
    payload["regions"] = {
        region_id: {
            "theme": region.theme,
            "palette": list(region.palette),
            "assets": [asset_to_dict(asset) for asset in region.assets],
            **region.extra,
        }
        for region_id, region in manifest.regions.items()
    }
    payload.update(manifest.extra)
    return payload


def asset_to_dict(asset: Asset) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": asset.id,
        "name": asset.name,
        "description": asset.description,
        "type": asset.type.value,
        "status": asset.status.value,
    }
    for key, attribute in _ASSET_OPTIONAL_FIELDS.items():
        value = getattr(asset, attribute)
        if value is not None:
            payload[key] = value
    payload.update(asset.extra)
    return payload


def dumps_manifest(manifest: Manifest) -> str:
    """Deterministic JSON text for ``manifest``."""

    return json.dumps(manifest_to_dict(manifest), ensure_ascii=False, indent=2) + "\n"


def _parse_art_direction(raw: object) -> ArtDirection:
    if not isinstance(raw, dict):
        raise ManifestError("manifest.artDirection must be an object")
    style = raw.get("style", "")
    poly_budget = raw.get("polyBudget", {})
    if not isinstance(style, str):
        raise ManifestError("artDirection.style must be a string")
    if not isinstance(poly_budget, dict) or not all(
        isinstance(value, str) for value in poly_budget.values()
    ):
        raise ManifestError("artDirection.polyBudget must map asset types to strings")
    return ArtDirection(
        style=style,
        poly_budget=dict(poly_budget),
        extra={key: value for key, value in raw.items() if key not in _ART_DIRECTION_KEYS},
    )


def _parse_region(region_id: str, raw: object) -> Region:
    if not isinstance(raw, dict):
        raise ManifestError(f"Region {region_id!r} must be an object")
    theme = raw.get("theme", "")
    palette = raw.get("palette", [])
    raw_assets = raw.get("assets", [])
    if not isinstance(theme, str):
        raise ManifestError(f"regions.{region_id}.theme must be a string")
    if not isinstance(palette, list) or not all(isinstance(color, str) for color in palette):
        raise ManifestError(f"regions.{region_id}.palette must be an array of strings")
    if not isinstance(raw_assets, list):
        raise ManifestError(f"regions.{region_id}.assets must be an array")
    return Region(
        theme=theme,
        palette=list(palette),
        assets=[_parse_asset(region_id, item) for item in raw_assets],
        extra={key: value for key, value in raw.items() if key not in _REGION_KEYS},
    )


def _parse_asset(region_id: str, raw: object) -> Asset:
    if not isinstance(raw, dict):
        raise ManifestError(f"regions.{region_id}.assets entry must be an object")
    missing = [key for key in _ASSET_REQUIRED_KEYS if key not in raw]
    if missing:
        raise ManifestError(
            f"Asset in region {region_id!r} is missing fields: {', '.join(missing)}",
        )
    asset_id = raw["id"]
    if not isinstance(asset_id, str) or not asset_id.strip():
        raise ManifestError(f"Asset id in region {region_id!r} must be a non-empty string")
    for key in ("name", "description"):
        if not isinstance(raw[key], str):
            raise ManifestError(f"Asset {asset_id!r}: {key} must be a string")
    try:
        asset_type = AssetType(raw["type"])
    except ValueError as error:
        raise ManifestError(f"Asset {asset_id!r}: unknown type {raw['type']!r}") from error
    try:
        status = AssetStatus(raw["status"])
    except ValueError as error:
        raise ManifestError(f"Asset {asset_id!r}: unknown status {raw['status']!r}") from error

    asset = Asset(
        id=asset_id,
        name=raw["name"],
        description=raw["description"],
        type=asset_type,
        status=status,
    )
    for key, attribute in _ASSET_OPTIONAL_FIELDS.items():
        value = raw.get(key)
        if value is not None and key in _TIMESTAMP_KEYS and not _is_epoch_ms(value):
            raise ManifestError(
                f"Asset {asset_id!r}: {key} must be epoch milliseconds, got {value!r}",
            )
        setattr(asset, attribute, value)
    known = set(_ASSET_REQUIRED_KEYS) | set(_ASSET_OPTIONAL_FIELDS)
    asset.extra = {key: value for key, value in raw.items() if key not in known}
    return asset


def _is_epoch_ms(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _atomic_write_text(path: Path, text: str) -> None:
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_path, path)
    except OSError as error:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise ManifestError(f"Cannot write manifest {path}: {error}") from error
