"""Bridge that records calls instead of reaching the authoring tool."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from asset_pipeline.pipeline.bridge.base import ToolCall

logger = logging.getLogger(__name__)

DRY_RUN_RESULT = "dry-run"


class DryRunToolBridge:
    """Record every call and optionally dump submitted scripts to disk."""

    def __init__(self, *, script_dir: Path | None = None) -> None:
        self.script_dir = script_dir
        self.calls: list[ToolCall] = []

    def invoke(
        self,
        server_name: str,
        method: str,
        params: Mapping[str, Any],
        timeout_seconds: float,
    ) -> str:
        call = ToolCall(
            server_name=server_name,
            method=method,
            params=dict(params),
            timeout_seconds=timeout_seconds,
        )
        self.calls.append(call)
        code = call.params.get("code")
        if self.script_dir is not None and isinstance(code, str):
            self.script_dir.mkdir(parents=True, exist_ok=True)
            script_path = self.script_dir / f"{len(self.calls):03d}_{method}.py"
            script_path.write_text(code, "utf-8")
            logger.info("Dry run: wrote %s", script_path)
        return DRY_RUN_RESULT
