"""Utility helpers for the reelsync engine."""

from __future__ import annotations

import re
import time
import unicodedata
from datetime import date, datetime, timezone
from typing import Any


def slugify(value: str) -> str:
    """Return a URL-friendly slug."""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value)
    value = value.strip("-")
    value = re.sub(r"-+", "-", value)
    return value.lower()


def now_epoch() -> int:
    """Current time as whole epoch seconds."""

    return int(time.time())


def to_epoch(value: Any) -> int | None:
    """Convert an ISO date or datetime string into epoch seconds.

    Trakt returns ``released`` as ``YYYY-MM-DD`` and ``first_aired`` as a full
    ISO timestamp with a ``Z`` suffix; TMDB air dates are plain dates. Values
    that cannot be parsed yield ``None``.
    """

    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def format_runtime(minutes: Any) -> dict[str, Any]:
    """Split a runtime in minutes into display-ready parts."""

    try:
        total = int(minutes or 0)
    except (TypeError, ValueError):
        total = 0
    total = max(total, 0)
    hours, remainder = divmod(total, 60)

    full_parts: list[str] = []
    short_parts: list[str] = []
    if hours:
        full_parts.append(f"{hours} hour" if hours == 1 else f"{hours} hours")
        short_parts.append(f"{hours}h")
    if remainder or not hours:
        full_parts.append(
            f"{remainder} minute" if remainder == 1 else f"{remainder} minutes"
        )
        short_parts.append(f"{remainder}min")

    return {
        "full": " ".join(full_parts),
        "short": " ".join(short_parts),
        "hours": hours,
        "minutes": remainder,
    }
