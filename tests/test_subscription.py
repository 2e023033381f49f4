"""Tests for the subscription record model."""

from subtracker.lib.subscription import CandidateSubscription


def _sub(**overrides):
    fields = dict(
        id="abc123",
        name="Netflix",
        normalized_key="NETFLIX COM",
        amount=15.99,
        cadence="monthly",
        last_seen_date="2024-04-04",
        occurrence_count=4,
        confidence="high",
        needs_review=False,
    )
    fields.update(overrides)
    return CandidateSubscription(**fields)


def test_annual_cost_is_exact():
    assert _sub().annual_cost == 191.88
    assert _sub(amount=119.0, cadence="yearly").annual_cost == 119.0
    assert _sub(amount=5.0, cadence="weekly").annual_cost == 260.0


def test_monthly_cost_spreads_yearly():
    assert _sub().monthly_cost == 15.99
    assert _sub(amount=120.0, cadence="yearly").monthly_cost == 10.0


def test_to_dict_uses_camel_case():
    data = _sub(category="Media", reasons=("rule:netflix",)).to_dict()
    assert data["normalizedKey"] == "NETFLIX COM"
    assert data["annualCost"] == 191.88
    assert data["lastSeenDate"] == "2024-04-04"
    assert data["occurrenceCount"] == 4
    assert data["needsReview"] is False
    assert data["reasons"] == ["rule:netflix"]
    assert data["status"] == "suggested"


def test_with_changes_leaves_original():
    sub = _sub()
    confirmed = sub.with_changes(status="confirmed")
    assert confirmed.status == "confirmed"
    assert sub.status == "suggested"

