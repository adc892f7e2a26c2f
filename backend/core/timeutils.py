"""UTC helpers.

Timestamps are stored as naive ``DateTime`` values that are always UTC.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize an incoming timestamp to naive UTC.

    Values with an offset are converted; naive values are assumed to be UTC.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
