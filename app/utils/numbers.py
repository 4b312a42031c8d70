"""Decimal helpers shared by providers and the merge engine."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Optional

TWO_PLACES = Decimal("0.01")


def to_decimal(value: object) -> Optional[Decimal]:
    """
    Convert a loosely typed upstream value to Decimal.

    None, booleans, NaN, infinities and unparseable strings become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None
    return None


def quantize(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES)


def display(value: Optional[Decimal]) -> Optional[float]:
    """Round to 2 places for presentation; None passes through."""
    if value is None:
        return None
    return float(quantize(value))


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole × 100, defined as 0 when whole is 0."""
    if whole == 0:
        return Decimal("0")
    return part / whole * Decimal("100")
