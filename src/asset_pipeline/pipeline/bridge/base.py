"""Tool bridge interface for remote authoring calls."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


class ToolError(RuntimeError):
    """Remote tool call failed or timed out."""

    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


@dataclass(slots=True)
class ToolCall:
    """One recorded tool invocation."""

    server_name: str
    method: str
    params: dict[str, Any] = field(default_factory=dict)
    timeout_seconds: float = 0.0


class ToolBridge(Protocol):
    """Protocol implemented by tool bridges."""

    def invoke(
        self,
        server_name: str,
        method: str,
        params: Mapping[str, Any],
        timeout_seconds: float,
    ) -> object:
        """Run one remote method and return its opaque result.

        Raises ``ToolError`` on transport failure, timeout, or a tool-side error.
        """
