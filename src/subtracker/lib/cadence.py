"""Cadence and amount validation for a merchant group.

A group is a recurring charge when its date spacing has a monthly or
yearly median, most individual gaps sit inside that window, and every
amount lies close to the group median.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .config import DetectorConfig
from .transactions import Transaction


@dataclass(frozen=True)
class CadenceResult:
    """Output for a group that passed validation."""

    cadence: str
    amount: float  # median, rounded to cents
    transactions: tuple[Transaction, ...]  # sorted by date ascending
    gaps: tuple[int, ...]


def median(values: list[float]) -> float:
    if not values:
        return 0.0
    s = sorted(values)
    mid = len(s) // 2
    if len(s) % 2 == 0:
        return (s[mid - 1] + s[mid]) / 2
    return s[mid]


def round_cents(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def day_gaps(dates: list[date]) -> list[int]:
    """Whole-day gaps between consecutive dates (expects ascending order)."""
    return [(b - a).days for a, b in zip(dates, dates[1:])]


def classify_cadence(gaps: list[int], config: DetectorConfig) -> str | None:
    """Cadence whose window contains the median gap, or None."""
    if len(gaps) < 2:
        return None
    m = median(gaps)
    for cadence in config.cadences:
        lo, hi = config.window(cadence)
        if lo <= m <= hi:
            return cadence
    return None


def passes_spacing(gaps: list[int], cadence: str, config: DetectorConfig) -> bool:
    """Most gaps must fall inside the cadence window; one late charge is tolerated."""
    if len(gaps) < 2:
        return False
    lo, hi = config.window(cadence)
    in_range = sum(1 for g in gaps if lo <= g <= hi)
    # round() strips float noise such as 100 * 0.66 = 66.00000000000001
    required = max(config.min_in_range_gaps, math.ceil(round(len(gaps) * config.spacing_ratio, 9)))
    return in_range >= required


def amounts_consistent(amounts: list[float], config: DetectorConfig) -> bool:
    """Every amount within max(tolerance_abs, tolerance_pct * median) of the median."""
    if not amounts:
        return False
    anchor = median([abs(a) for a in amounts])
    tolerance = max(config.tolerance_abs, config.tolerance_pct * anchor)
    return all(abs(abs(a) - anchor) <= tolerance + 1e-9 for a in amounts)


def validate_group(
    transactions: list[Transaction], config: DetectorConfig
) -> CadenceResult | None:
    """Validate a merchant group. Returns None when it is not a recurring charge."""
    if len(transactions) < config.min_occurrences:
        return None

    ordered = sorted(transactions, key=lambda t: t.date)
    gaps = day_gaps([t.date for t in ordered])

    cadence = classify_cadence(gaps, config)
    if cadence is None:
        return None
    if not passes_spacing(gaps, cadence, config):
        return None

    amounts = [abs(t.amount) for t in ordered]
    if not amounts_consistent(amounts, config):
        return None

    return CadenceResult(
        cadence=cadence,
        amount=round_cents(median(amounts)),
        transactions=tuple(ordered),
        gaps=tuple(gaps),
    )
