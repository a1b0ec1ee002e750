#!/usr/bin/env python3
"""Human-readable sizes and relative times for command output."""

from __future__ import annotations

from datetime import datetime, timezone


def format_size(size: int) -> str:
    """Format a byte count, e.g. 512 B, 1.5 KiB, 3.0 MiB."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit and exp < 2:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMG'[exp]}iB"


def _compact(seconds: float) -> str:
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h"
    return f"{int(seconds // 86400)}d"


def format_age(when: datetime, now: datetime | None = None) -> str:
    """Format how long ago a timestamp was, e.g. '5m ago'."""
    now = now or datetime.now(timezone.utc)
    return f"{_compact(max((now - when).total_seconds(), 0))} ago"


def format_time_until(when: datetime, now: datetime | None = None) -> str:
    """Format time remaining until a timestamp, or 'expired'."""
    now = now or datetime.now(timezone.utc)
    remaining = (when - now).total_seconds()
    if remaining < 0:
        return "expired"
    return _compact(remaining)
