"""Shared utility functions."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from clipvault.shared.exceptions import ValidationException

CENT = Decimal("0.01")
# numeric(12, 2) columns hold at most ten integer digits.
MONEY_MAX_DIGITS = 12


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize a monetary value to two decimal places.

    Values that are not finite or too large to quantize raise ValidationException.
    """
    try:
        amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValidationException(f"Invalid amount: {value}") from exc
    if not amount.is_finite():
        raise ValidationException(f"Invalid amount: {value}")
    return amount
