# storefront/utils/clock.py
from datetime import datetime, timezone


def ensure_utc(value: datetime | None) -> datetime | None:
    """sqlite hands back naive datetimes, treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
