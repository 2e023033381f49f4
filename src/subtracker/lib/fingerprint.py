"""Subscription fingerprinting for idempotent upserts.

Generates stable SHA-256 based ids so that re-running detection over
overlapping transaction history yields the same id for the same charge.
"""

from __future__ import annotations

import hashlib
from decimal import ROUND_HALF_UP, Decimal

ID_LENGTH = 16


def to_cents(amount: float) -> int:
    """Round a currency amount to integer cents (half away from zero)."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def fingerprint(normalized_key: str, cadence: str, amount: float) -> str:
    """Full SHA-256 hex digest of (normalized_key, cadence, amount in cents)."""
    parts = f"{normalized_key}|{cadence}|{to_cents(amount)}"
    return hashlib.sha256(parts.encode("utf-8")).hexdigest()


def subscription_id(normalized_key: str, cadence: str, amount: float) -> str:
    """Short stable subscription id.

    Args:
        normalized_key: Merchant grouping key (e.g., "NETFLIX COM")
        cadence: Cadence class (e.g., "monthly")
        amount: Representative per-charge amount (e.g., 15.99)

    Returns:
        First 16 hex characters of the fingerprint
    """
    return fingerprint(normalized_key, cadence, amount)[:ID_LENGTH]
