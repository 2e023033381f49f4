"""Insights over confirmed subscriptions: totals, category clusters, cash flow.

Only confirmed subscriptions count toward spend. Yearly charges are
spread evenly across months in the cash-flow timeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .subscription import STATUSES, CandidateSubscription

DEFAULT_CATEGORY = "Other"
MIN_MONTHS = 3
MAX_MONTHS = 24
MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _cents(value: float) -> float:
    return round(value * 100) / 100


def _confirmed(subs: list[CandidateSubscription]) -> list[CandidateSubscription]:
    return [s for s in subs if s.status == "confirmed"]


@dataclass
class Totals:
    monthly: float
    annual: float
    by_status: dict[str, int]

    def to_dict(self) -> dict:
        return {"monthly": self.monthly, "annual": self.annual, "byStatus": self.by_status}


def totals(subs: list[CandidateSubscription]) -> Totals:
    by_status = {status: 0 for status in STATUSES}
    for s in subs:
        by_status[s.status] = by_status.get(s.status, 0) + 1
    confirmed = _confirmed(subs)
    return Totals(
        monthly=_cents(sum(s.monthly_cost for s in confirmed)),
        annual=_cents(sum(s.annual_cost for s in confirmed)),
        by_status=by_status,
    )


@dataclass
class Cluster:
    category: str
    total_annual: float = 0.0
    merchants: list[CandidateSubscription] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.merchants)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "totalAnnual": self.total_annual,
            "count": self.count,
            "merchants": [
                {
                    "id": m.id,
                    "label": m.name,
                    "annualCost": m.annual_cost,
                    "cadence": m.cadence,
                    "amount": m.amount,
                    "confidence": m.confidence,
                    "needsReview": m.needs_review,
                }
                for m in self.merchants
            ],
        }


@dataclass
class InfrastructureMap:
    total_annual: float
    clusters: list[Cluster]

    def to_dict(self) -> dict:
        return {
            "totalAnnual": self.total_annual,
            "clusters": [c.to_dict() for c in self.clusters],
        }


def infrastructure_map(subs: list[CandidateSubscription]) -> InfrastructureMap:
    """Group confirmed subscriptions into category clusters."""
    by_category: dict[str, Cluster] = {}
    for s in _confirmed(subs):
        category = s.category or DEFAULT_CATEGORY
        cluster = by_category.setdefault(category, Cluster(category=category))
        cluster.total_annual += s.annual_cost
        cluster.merchants.append(s)

    clusters = []
    for cluster in by_category.values():
        cluster.total_annual = _cents(cluster.total_annual)
        cluster.merchants.sort(key=lambda m: (-m.annual_cost, m.id))
        clusters.append(cluster)
    clusters.sort(key=lambda c: (-c.total_annual, c.category))

    return InfrastructureMap(
        total_annual=_cents(sum(c.total_annual for c in clusters)),
        clusters=clusters,
    )


@dataclass
class CashflowPoint:
    key: str  # YYYY-MM
    label: str  # "Jan"
    year: int
    month: int  # 1-12
    total: float = 0.0
    by_category: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "year": self.year,
            "month": self.month,
            "total": self.total,
            "byCategory": self.by_category,
        }


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def cashflow_timeline(
    subs: list[CandidateSubscription], months: int = 6, today: date | None = None
) -> list[CashflowPoint]:
    """Projected monthly subscription spend for the months ending at `today`.

    Args:
        subs: Stored subscriptions; only confirmed ones contribute
        months: Number of months, clamped to 3..24
        today: Reference date (defaults to the current date)
    """
    months = min(MAX_MONTHS, max(MIN_MONTHS, months))
    today = today or date.today()

    points = []
    for i in range(months):
        year, month = _shift_month(today.year, today.month, i - (months - 1))
        points.append(
            CashflowPoint(
                key=f"{year}-{month:02d}",
                label=MONTH_LABELS[month - 1],
                year=year,
                month=month,
            )
        )

    for s in _confirmed(subs):
        category = s.category or DEFAULT_CATEGORY
        contribution = s.monthly_cost
        for p in points:
            p.total += contribution
            p.by_category[category] = p.by_category.get(category, 0.0) + contribution

    for p in points:
        p.total = _cents(p.total)
        p.by_category = {k: _cents(v) for k, v in p.by_category.items()}

    return points
