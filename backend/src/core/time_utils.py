"""
Time helpers
All persisted timestamps are naive UTC.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current UTC time without tzinfo, matching the DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an incoming timestamp; naive values are taken as UTC already"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
