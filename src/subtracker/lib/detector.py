"""Subscription detector — turns a transaction list into subscription candidates.

Pipeline: exclusion filter → merchant normalization → grouping →
cadence/amount validation → confidence scoring → rules → record builder.

The detector is a pure function of its arguments: no I/O, no shared
state, and no exceptions for bad input. Malformed records are skipped and
groups that do not look recurring are dropped.

Usage:
    candidates = detect(transactions)
    store.upsert_many(candidates)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .cadence import CadenceResult, validate_group
from .config import DetectorConfig
from .fingerprint import subscription_id
from .normalizer import is_excluded, is_outgoing, normalize_merchant
from .rules import RuleEngine, RuleResult
from .scoring import additive_score, classify
from .subscription import CandidateSubscription
from .transactions import Transaction, parse_records

logger = logging.getLogger(__name__)


@dataclass
class MerchantGroup:
    """Transactions sharing a normalized merchant key."""

    key: str
    transactions: list[Transaction] = field(default_factory=list)
    name_counts: dict[str, int] = field(default_factory=dict)  # first-seen order

    def add(self, txn: Transaction) -> None:
        self.transactions.append(txn)
        label = txn.label
        self.name_counts[label] = self.name_counts.get(label, 0) + 1

    @property
    def display_name(self) -> str:
        """Most frequent raw label; ties go to the one seen first."""
        if not self.name_counts:
            return self.key
        return max(self.name_counts, key=self.name_counts.__getitem__)


def filter_purchases(transactions: list[Transaction]) -> list[Transaction]:
    """Keep outgoing purchases whose names match no exclusion pattern."""
    kept = []
    for txn in transactions:
        if not is_outgoing(txn.amount):
            continue
        if is_excluded(txn.name) or is_excluded(txn.merchant_name):
            continue
        kept.append(txn)
    return kept


def group_transactions(
    transactions: list[Transaction], config: DetectorConfig
) -> dict[str, MerchantGroup]:
    groups: dict[str, MerchantGroup] = {}
    for txn in transactions:
        key = normalize_merchant(txn.label)
        if len(key) < config.min_key_length:
            continue
        if is_excluded(key):
            continue
        group = groups.get(key)
        if group is None:
            group = groups[key] = MerchantGroup(key=key)
        group.add(txn)
    return groups


def apply_rules(
    candidate: CandidateSubscription, rules: RuleEngine | None = None
) -> RuleResult:
    """Run the rules engine over a candidate's name as a separate pass."""
    engine = rules if rules is not None else RuleEngine.default()
    return engine.apply(candidate.name)


def build_candidate(
    group: MerchantGroup,
    result: CadenceResult,
    score: float,
    rule_result: RuleResult,
    config: DetectorConfig,
) -> CandidateSubscription:
    confidence = classify(score, len(result.transactions), rule_result.category, config)
    return CandidateSubscription(
        id=subscription_id(group.key, result.cadence, result.amount),
        name=rule_result.canonical_name or group.display_name,
        normalized_key=group.key,
        amount=result.amount,
        cadence=result.cadence,
        last_seen_date=result.transactions[-1].date.isoformat(),
        occurrence_count=len(result.transactions),
        confidence=confidence.label,
        needs_review=confidence.needs_review,
        category=rule_result.category,
        status=rule_result.status or "suggested",
        score=score,
        reasons=tuple(rule_result.reasons),
    )


def detect(
    transactions: Iterable[Any] | None,
    config: DetectorConfig | None = None,
    rules: RuleEngine | None = None,
) -> list[CandidateSubscription]:
    """Detect recurring subscriptions in a list of transactions.

    Args:
        transactions: Transaction objects or raw mappings with name,
            merchantName, amount and date keys
        config: Detector tuning; defaults to DetectorConfig()
        rules: Rule engine for rename/category/ignore; defaults to the
            built-in rules. Pass RuleEngine([]) to disable.

    Returns:
        Candidates sorted by annual cost (highest first), then id
    """
    config = config or DetectorConfig()
    rules = rules if rules is not None else RuleEngine.default()

    parsed = parse_records(transactions)
    purchases = filter_purchases(parsed)
    groups = group_transactions(purchases, config)
    logger.debug(
        "Detecting over %d transaction(s): %d purchase(s) in %d group(s)",
        len(parsed), len(purchases), len(groups),
    )

    candidates: list[CandidateSubscription] = []
    for key, group in groups.items():
        result = validate_group(group.transactions, config)
        if result is None:
            logger.debug("Group %r (%d txns) is not recurring", key, len(group.transactions))
            continue

        amounts = [abs(t.amount) for t in result.transactions]
        score = additive_score(result.cadence, amounts, len(amounts), config)
        if score < config.min_score:
            logger.debug("Group %r scored %.2f, below %.2f", key, score, config.min_score)
            continue

        rule_result = rules.apply(group.display_name)
        candidates.append(build_candidate(group, result, score, rule_result, config))

    candidates.sort(key=lambda c: (-c.annual_cost, c.id))
    return candidates
