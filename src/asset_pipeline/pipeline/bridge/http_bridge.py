"""HTTP bridge to an MCP tool gateway speaking JSON-RPC ``tools/call``."""

from __future__ import annotations

import itertools
import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from asset_pipeline.pipeline.bridge.base import ToolError

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0


class HttpToolBridge:
    """Post ``tools/call`` requests to ``<gateway_url>/<server_name>``."""

    def __init__(
        self,
        *,
        gateway_url: str,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.gateway_url = gateway_url.rstrip("/")
        self._connect_timeout = connect_timeout_seconds
        self._ids = itertools.count(1)
        self._client = httpx.Client(
            headers=headers or {},
            transport=transport or httpx.HTTPTransport(retries=0),
        )

    def invoke(
        self,
        server_name: str,
        method: str,
        params: Mapping[str, Any],
        timeout_seconds: float,
    ) -> str:
        label = f"{server_name}.{method}"
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "tools/call",
            "params": {"name": method, "arguments": dict(params)},
        }
        timeout = httpx.Timeout(
            timeout_seconds,
            connect=min(self._connect_timeout, timeout_seconds),
        )
        try:
            response = self._client.post(
                f"{self.gateway_url}/{server_name}",
                json=payload,
                timeout=timeout,
            )
        except httpx.TimeoutException as error:
            raise ToolError(
                f"{label} timed out after {timeout_seconds:g}s",
                transient=True,
            ) from error
        except httpx.HTTPError as error:
            raise ToolError(f"{label} transport error: {error}", transient=True) from error

        if not response.is_success:
            raise ToolError(
                f"{label} failed: HTTP {response.status_code}",
                transient=response.status_code >= 500,
            )
        try:
            body = response.json()
        except ValueError as error:
            raise ToolError(f"{label} returned invalid JSON") from error
        if not isinstance(body, dict):
            raise ToolError(f"{label} returned a non-object response")

        rpc_error = body.get("error")
        if rpc_error is not None:
            message = rpc_error.get("message") if isinstance(rpc_error, dict) else rpc_error
            raise ToolError(f"{label} failed: {message}")

        result = body.get("result")
        text = _result_text(result)
        if isinstance(result, dict) and result.get("isError"):
            raise ToolError(f"{label} failed: {text or 'tool reported an error'}")
        logger.debug("%s returned %d chars (request %d)", label, len(text), request_id)
        return text

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpToolBridge:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _result_text(result: object) -> str:
    if result is None:
        return ""
    if isinstance(result, str):
        return result
    if isinstance(result, dict) and isinstance(result.get("content"), list):
        parts = [
            item["text"]
            for item in result["content"]
            if isinstance(item, dict) and isinstance(item.get("text"), str)
        ]
        return "\n".join(parts)
    return json.dumps(result, ensure_ascii=False)
