from datetime import date, datetime, timedelta

import pytest

from pharmastock.services.expiry import days_until_expiry, is_expired, is_expiring_within_days

TODAY = date(2025, 3, 15)


def test_missing_expiry_never_expires() -> None:
    assert is_expired(None, TODAY) is False
    assert is_expired("", TODAY) is False
    for days in (0, 1, 30, 10_000):
        assert is_expiring_within_days(None, days, TODAY) is False
    assert days_until_expiry(None, TODAY) is None


def test_is_expired_compares_calendar_dates() -> None:
    assert is_expired(TODAY - timedelta(days=1), TODAY) is True
    assert is_expired(TODAY, TODAY) is False
    assert is_expired(TODAY + timedelta(days=1), TODAY) is False


def test_time_of_day_is_ignored() -> None:
    assert is_expired(datetime(2025, 3, 15, 0, 0), TODAY) is False
    assert is_expired(datetime(2025, 3, 15, 23, 59), TODAY) is False
    assert is_expired(datetime(2025, 3, 14, 23, 59), TODAY) is True
    assert is_expired(TODAY, datetime(2025, 3, 15, 23, 59)) is False


def test_iso_strings_are_accepted() -> None:
    assert is_expired("2025-03-14", TODAY) is True
    assert is_expired("2025-03-15T08:30:00", TODAY) is False
    assert days_until_expiry("2025-04-14", TODAY) == 30


def test_expiring_window_is_inclusive() -> None:
    assert is_expiring_within_days(TODAY, 0, TODAY) is True
    assert is_expiring_within_days(TODAY + timedelta(days=30), 30, TODAY) is True
    assert is_expiring_within_days(TODAY + timedelta(days=31), 30, TODAY) is False


def test_expired_batch_is_not_expiring_soon() -> None:
    yesterday = TODAY - timedelta(days=1)
    assert is_expired(yesterday, TODAY) is True
    assert is_expiring_within_days(yesterday, 30, TODAY) is False


@pytest.mark.parametrize("offset", [-400, -31, -1, 0, 1, 7, 29, 30, 31, 365])
@pytest.mark.parametrize("days", [0, 1, 30, 90])
def test_expired_and_expiring_are_mutually_exclusive(offset: int, days: int) -> None:
    expiry = TODAY + timedelta(days=offset)
    assert not (is_expired(expiry, TODAY) and is_expiring_within_days(expiry, days, TODAY))
