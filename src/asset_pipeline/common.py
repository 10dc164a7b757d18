"""Common time helpers."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC timestamp."""

    return datetime.now(tz=UTC)


def epoch_ms(value: datetime) -> int:
    """Milliseconds since the epoch, the timestamp format stored in manifests."""

    return int(value.timestamp() * 1000)
