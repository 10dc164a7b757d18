"""Tool bridge implementations for the remote authoring tool."""

from asset_pipeline.pipeline.bridge.base import ToolBridge, ToolCall, ToolError
from asset_pipeline.pipeline.bridge.dry_run import DryRunToolBridge
from asset_pipeline.pipeline.bridge.http_bridge import HttpToolBridge

__all__ = [
    "DryRunToolBridge",
    "HttpToolBridge",
    "ToolBridge",
    "ToolCall",
    "ToolError",
]
