# backend/erp/money.py
"""Rounding helpers shared by checkout, ledgers and reports."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest unit, halves going up (82.5 -> 83, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def round_amount(value: float, places: int = 2) -> float:
    """Trim float noise from money arithmetic (0.1 + 0.2 -> 0.3)."""
    rounded = round(value, places)
    if float(rounded).is_integer():
        return int(rounded)
    return rounded


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def percent_change(current: float, previous: float) -> int | None:
    """Whole-percent change from previous to current; None without a baseline."""
    if not previous:
        return None
    return round_half_up((current - previous) / previous * 100)


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0
    return round_amount(part / whole * 100)
