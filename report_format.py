"""Display helpers for line reports and wait estimates."""

from __future__ import annotations

import datetime as dt
from typing import Dict, Optional

from wait_estimator import EstimationResult

STATUS_GLYPHS: Dict[str, str] = {
    "regular": "👤",
    "trusted": "⭐",
    "expert": "👑",
}

EXPERT_LEVEL = 5
TRUSTED_LEVEL = 3


def status_glyph(status: Optional[str]) -> str:
    return STATUS_GLYPHS.get((status or "").lower(), STATUS_GLYPHS["regular"])


def status_for_level(level: int) -> str:
    """Reporter status for a per-venue expertise level (0-5)."""
    if level >= EXPERT_LEVEL:
        return "expert"
    if level >= TRUSTED_LEVEL:
        return "trusted"
    return "regular"


def format_time_ago(timestamp: dt.datetime, now: Optional[dt.datetime] = None) -> str:
    """Return a short relative description such as ``5 minutes ago``."""
    now = now or dt.datetime.now(dt.timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=dt.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)

    diff_minutes = int((now - timestamp).total_seconds() // 60)
    if diff_minutes < 1:
        return "just now"
    if diff_minutes == 1:
        return "1 minute ago"
    if diff_minutes < 60:
        return f"{diff_minutes} minutes ago"

    diff_hours = diff_minutes // 60
    if diff_hours == 1:
        return "1 hour ago"
    if diff_hours < 24:
        return f"{diff_hours} hours ago"

    diff_days = diff_hours // 24
    if diff_days == 1:
        return "1 day ago"
    return f"{diff_days} days ago"


def format_report_line(
    reporter_name: str,
    status: Optional[str],
    minutes: int,
    timestamp: dt.datetime,
    now: Optional[dt.datetime] = None,
) -> str:
    glyph = status_glyph(status)
    time_ago = format_time_ago(timestamp, now)
    return f"{glyph} {reporter_name} reported {minutes} minutes {time_ago}"


def format_estimate(result: EstimationResult) -> str:
    if result.minutes > 0:
        return f"{result.category} (~{result.minutes} min)"
    return result.category
