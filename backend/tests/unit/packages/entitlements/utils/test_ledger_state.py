"""
Unit tests for derived invoice state functions.
"""

from datetime import datetime, timedelta, timezone

from packages.entitlements.utils.ledger_state import (
    add_years,
    compute_is_active,
    default_end_at,
    is_expired,
    is_paid_in_full,
    was_active,
)

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)
PAST = NOW - timedelta(days=1)
FUTURE = NOW + timedelta(days=1)


class TestAddYears:
    def test_plain_year(self):
        start = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
        assert add_years(start) == datetime(2027, 3, 1, 9, 30, tzinfo=timezone.utc)

    def test_leap_day_lands_on_feb_28(self):
        start = datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert add_years(start) == datetime(2025, 2, 28, tzinfo=timezone.utc)

    def test_leap_day_to_leap_year(self):
        start = datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert add_years(start, 4) == datetime(2028, 2, 29, tzinfo=timezone.utc)


class TestDefaultEndAt:
    def test_explicit_end_wins(self):
        assert default_end_at(NOW, FUTURE) == FUTURE

    def test_no_start_no_end(self):
        assert default_end_at(None, None) is None

    def test_start_only_adds_duration(self):
        assert default_end_at(NOW, None) == add_years(NOW, 1)
        assert default_end_at(NOW, None, years=2) == add_years(NOW, 2)

    def test_naive_start_is_treated_as_utc(self):
        naive = datetime(2026, 1, 1)
        assert default_end_at(naive, None) == datetime(2027, 1, 1, tzinfo=timezone.utc)


class TestPredicates:
    def test_is_expired(self):
        assert is_expired(PAST, NOW)
        assert not is_expired(FUTURE, NOW)
        assert not is_expired(None, NOW)

    def test_paid_in_full_needs_both_amounts(self):
        """A missing amount_due is never paid in full, even at zero paid."""
        assert not is_paid_in_full(0, None)
        assert not is_paid_in_full(None, 0)
        assert is_paid_in_full(0, 0)
        assert is_paid_in_full(8000, 8000)
        assert is_paid_in_full(9000, 8000)
        assert not is_paid_in_full(7999, 8000)

    def test_expired_is_never_active(self):
        assert not compute_is_active(PAST, True, 8000, 8000, NOW)

    def test_active_when_forced_or_paid(self):
        assert compute_is_active(FUTURE, True, 0, 8000, NOW)
        assert compute_is_active(FUTURE, False, 8000, 8000, NOW)
        assert compute_is_active(None, False, 8000, 8000, NOW)
        assert not compute_is_active(FUTURE, False, 100, 8000, NOW)

    def test_was_active(self):
        assert was_active(PAST, PAST, True, 0, None, NOW)
        assert was_active(PAST, PAST, False, 8000, 8000, NOW)
        assert not was_active(PAST, PAST, False, 100, 8000, NOW)
        assert not was_active(None, None, False, 8000, 8000, NOW)
