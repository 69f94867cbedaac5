"""Minor-unit (cents) conversions for user-facing invoice amounts."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from common.core.exceptions import ValidationError


def display_amount(cents: Optional[int]) -> Union[int, float]:
    """
    Convert minor units to a display value.

    Whole amounts come back as ints (8000 -> 80), anything with a
    fractional part keeps it (8050 -> 80.5). Missing amounts display as 0.
    """
    amount = (cents or 0) / 100.0
    return amount if amount % 1 != 0 else round(amount)


def amount_to_cents(value: Union[str, int, float, Decimal, None]) -> Optional[int]:
    """
    Parse a major-unit amount ("80.50", 80.5, 80) into minor units.

    Blank input returns None so callers can leave amount_due unset.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
