"""Candidate subscription record — the detector's output and the store's row."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

STATUSES = ("suggested", "confirmed", "ignored")
CADENCES = ("monthly", "yearly", "weekly")

# Charges per year for each cadence
PERIODS_PER_YEAR = {"monthly": 12, "yearly": 1, "weekly": 52}


def annual_cost_for(amount: float, cadence: str) -> float:
    """Annualized cost, computed in decimal so 15.99 monthly is exactly 191.88."""
    return float(Decimal(str(amount)) * PERIODS_PER_YEAR[cadence])


@dataclass(frozen=True)
class CandidateSubscription:
    id: str
    name: str
    normalized_key: str
    amount: float
    cadence: str
    last_seen_date: str  # YYYY-MM-DD
    occurrence_count: int
    confidence: str  # high | med | low
    needs_review: bool
    category: str | None = None
    status: str = "suggested"
    score: float | None = None
    reasons: tuple[str, ...] = field(default_factory=tuple)
    updated_at: str | None = None  # set by the store

    @property
    def annual_cost(self) -> float:
        return annual_cost_for(self.amount, self.cadence)

    @property
    def monthly_cost(self) -> float:
        if self.cadence == "monthly":
            return self.amount
        return self.annual_cost / 12

    def with_changes(self, **changes: Any) -> "CandidateSubscription":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "normalizedKey": self.normalized_key,
            "amount": self.amount,
            "cadence": self.cadence,
            "annualCost": self.annual_cost,
            "lastSeenDate": self.last_seen_date,
            "occurrenceCount": self.occurrence_count,
            "confidence": self.confidence,
            "needsReview": self.needs_review,
            "category": self.category,
            "status": self.status,
            "score": self.score,
            "reasons": list(self.reasons),
            "updatedAt": self.updated_at,
        }

