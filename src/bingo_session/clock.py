from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], str]


def utc_now_iso() -> str:
    """Return the current UTC time as ISO 8601 with milliseconds and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def fixed_clock(timestamp: str) -> Clock:
    """Clock that always returns ``timestamp``; used for reproducible sessions."""

    def _clock() -> str:
        return timestamp

    return _clock
