"""Rounding helpers. Money rounds to cents, hours to thousandths.

Both are idempotent: rounding an already-rounded value is a no-op.
"""

from decimal import ROUND_HALF_UP, Decimal


def _round(value: float, places: str) -> float:
    # Decimal(str(...)) rounds the printed value, so 2.675 -> 2.68 as written.
    return float(Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


def round_money(value: float) -> float:
    """Round a money amount to 2 decimal places."""
    return _round(value, "0.01") + 0.0


def round_hours(value: float) -> float:
    """Round an hour value to 3 decimal places."""
    return _round(value, "0.001") + 0.0
