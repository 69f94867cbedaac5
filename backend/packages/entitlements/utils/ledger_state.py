"""
Derived invoice state.

Pure functions shared by the save path (which persists is_active) and the
domain model (which reports states). None of them touch the database.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes and convert aware ones."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def add_years(moment: datetime, years: int = 1) -> datetime:
    """Calendar-year addition. Feb 29 lands on Feb 28 in non-leap years."""
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        return moment.replace(year=moment.year + years, day=28)


def default_end_at(
    start_at: Optional[datetime],
    end_at: Optional[datetime],
    years: int = 1,
) -> Optional[datetime]:
    """An explicit end always wins; otherwise a started period runs for `years`."""
    if end_at is not None or start_at is None:
        return end_at
    return add_years(as_utc(start_at), years)


def is_expired(end_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if end_at is None:
        return False
    return as_utc(end_at) < (as_utc(now) or utcnow())


def is_paid_in_full(
    amount_paid_cents: Optional[int], amount_due_cents: Optional[int]
) -> bool:
    # Missing amounts never count as paid, even for zero-cost invoices
    if amount_paid_cents is None or amount_due_cents is None:
        return False
    return amount_paid_cents >= amount_due_cents


def compute_is_active(
    end_at: Optional[datetime],
    force_active: bool,
    amount_paid_cents: Optional[int],
    amount_due_cents: Optional[int],
    now: Optional[datetime] = None,
) -> bool:
    if is_expired(end_at, now):
        return False
    return bool(force_active) or is_paid_in_full(amount_paid_cents, amount_due_cents)


def was_active(
    start_at: Optional[datetime],
    end_at: Optional[datetime],
    force_active: bool,
    amount_paid_cents: Optional[int],
    amount_due_cents: Optional[int],
    now: Optional[datetime] = None,
) -> bool:
    """True for a period that ran its course while in good standing."""
    if is_expired(end_at, now) and force_active:
        return True
    return start_at is not None and is_paid_in_full(
        amount_paid_cents, amount_due_cents
    )
