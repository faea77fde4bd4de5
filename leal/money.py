"""Monetary rounding helpers."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal


def round_to_two_decimals(value: float) -> float:
    """Round to two decimals, halves away from zero."""
    if not math.isfinite(value):
        return value
    scaled = Decimal(value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(scaled) / 100