"""
rounding.py — Money rounding used by every calculator.

round_rupee() rounds half UP to the nearest rupee (2.5 → 3, -2.5 → -2).
Python's built-in round() is half-to-even and must NOT be used for rupee amounts.

The float is converted through its shortest repr, so 157.5 stays exactly 157.5
and is not perturbed by binary noise before the half-up decision.

Non-finite values (nan, ±inf) are returned unchanged: calculators never raise on
numeric input.
"""
from __future__ import annotations

import math
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

_ONE = Decimal("1")
_PAISE = Decimal("0.01")


def round_rupee(amount: float) -> float:
    """Nearest rupee, ties towards +infinity."""
    if not math.isfinite(amount):
        return amount
    # floor(x + 0.5) on the exact decimal value
    return float((Decimal(repr(amount)) + Decimal("0.5")).quantize(_ONE, rounding=ROUND_FLOOR))


def round_paise(amount: float) -> float:
    """Nearest paisa (2 dp), ties away from zero."""
    if not math.isfinite(amount):
        return amount
    return float(Decimal(repr(amount)).quantize(_PAISE, rounding=ROUND_HALF_UP))


__all__ = ["round_rupee", "round_paise"]
