"""FIFO selection of the next asset to generate."""

from __future__ import annotations

from asset_pipeline.pipeline.manifest import ManifestStore
from asset_pipeline.pipeline.models import AssetStatus, Manifest, NextAsset


class TaskSelector:
    """Picks the first pending asset in region-then-asset persisted order."""

    def __init__(self, store: ManifestStore) -> None:
        self.store = store

    def get_next_pending_asset(self) -> NextAsset | None:
        return first_pending_asset(self.store.load())


def first_pending_asset(manifest: Manifest) -> NextAsset | None:
    """Return the first pending asset of ``manifest`` or ``None``."""

    for region_id, region, asset in manifest.iter_assets():
        if asset.status == AssetStatus.PENDING:
            return NextAsset(region_id=region_id, region=region, asset=asset)
    return None
