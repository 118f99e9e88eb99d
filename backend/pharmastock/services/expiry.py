"""
Expiry classification for batches.

All comparisons are on calendar dates: datetimes are truncated to their date so
the hour of day can never flip a result. A missing expiry date means the batch
does not expire. "today" is a parameter so callers and tests can pin it.
"""
from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, datetime, str, None]


def to_date(value: DateLike) -> Optional[date]:
    """Coerce a date, datetime or ISO string ("2025-06-01", "2025-06-01T10:00") to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def days_until_expiry(expiry_date: DateLike, today: Optional[date] = None) -> Optional[int]:
    """Whole days from today to expiry; negative once expired, None without expiry."""
    expiry = to_date(expiry_date)
    if expiry is None:
        return None
    today = to_date(today) or date.today()
    return (expiry - today).days


def is_expired(expiry_date: DateLike, today: Optional[date] = None) -> bool:
    """True iff the expiry date is strictly before today."""
    expiry = to_date(expiry_date)
    if expiry is None:
        return False
    today = to_date(today) or date.today()
    return expiry < today


def is_expiring_within_days(expiry_date: DateLike, days: int, today: Optional[date] = None) -> bool:
    """
    True iff the batch expires today or within the next `days` days.

    Already-expired batches are excluded, so this never overlaps with
    is_expired() for a past date.
    """
    remaining = days_until_expiry(expiry_date, today)
    if remaining is None:
        return False
    return 0 <= remaining <= days
