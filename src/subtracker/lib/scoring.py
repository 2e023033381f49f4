"""Confidence scoring for validated groups.

Two strategies are supported:

- additive (default): cadence resolved +0.5, stable amounts +0.3,
  five or more occurrences +0.2. The numeric score also gates which
  groups are surfaced at all (`DetectorConfig.min_score`).
- occurrence: five or more occurrences is high, four is med, else low;
  any label drops to low when no category is known.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import DetectorConfig

CADENCE_WEIGHT = 0.5
STABILITY_WEIGHT = 0.3
OCCURRENCE_WEIGHT = 0.2
MANY_OCCURRENCES = 5

HIGH = "high"
MED = "med"
LOW = "low"


@dataclass(frozen=True)
class Confidence:
    label: str
    needs_review: bool


def amount_stable(amounts: list[float], threshold: float) -> bool:
    """Mean absolute deviation relative to the mean is below threshold."""
    if not amounts:
        return False
    avg = sum(amounts) / len(amounts)
    deviation = sum(abs(a - avg) for a in amounts) / len(amounts)
    return deviation / max(1.0, avg) < threshold


def additive_score(
    cadence: str | None, amounts: list[float], occurrences: int, config: DetectorConfig
) -> float:
    score = 0.0
    if cadence:
        score += CADENCE_WEIGHT
    if amount_stable(amounts, config.stability_threshold):
        score += STABILITY_WEIGHT
    if occurrences >= MANY_OCCURRENCES:
        score += OCCURRENCE_WEIGHT
    return round(min(1.0, max(0.0, score)), 2)


def label_for_score(score: float) -> str:
    if score >= 0.8:
        return HIGH
    if score >= 0.5:
        return MED
    return LOW


def label_for_occurrences(occurrences: int, category: str | None) -> str:
    if category is None:
        return LOW
    if occurrences >= 5:
        return HIGH
    if occurrences >= 4:
        return MED
    return LOW


def classify(
    score: float, occurrences: int, category: str | None, config: DetectorConfig
) -> Confidence:
    """Turn a score (or occurrence count, per strategy) into a label and review flag."""
    if config.scoring == "occurrence":
        label = label_for_occurrences(occurrences, category)
    else:
        label = label_for_score(score)
    return Confidence(label=label, needs_review=label != HIGH or category is None)
