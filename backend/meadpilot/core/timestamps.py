from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_datetime(value: object) -> datetime:
    """Normalise a stored timestamp to an aware datetime.

    Accepts datetimes, ISO strings, ``{"seconds": ...}`` mappings as written by
    document stores, and epoch numbers. Anything else (including a pending
    server timestamp) reads as "now".
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict) and isinstance(value.get("seconds"), (int, float)):
        return datetime.fromtimestamp(value["seconds"], tz=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return utcnow()
