"""Tests for confidence scoring."""

from subtracker.lib.config import DetectorConfig
from subtracker.lib.scoring import (
    additive_score,
    amount_stable,
    classify,
    label_for_occurrences,
    label_for_score,
)

CONFIG = DetectorConfig()


def test_amount_stable():
    assert amount_stable([10.0, 10.0, 10.0], 0.15)
    assert amount_stable([0.5, 0.6, 0.5], 0.15)
    assert not amount_stable([1.0, 3.0, 2.0], 0.15)
    assert not amount_stable([], 0.15)


def test_additive_score():
    assert additive_score("monthly", [10.0] * 3, 3, CONFIG) == 0.8
    assert additive_score("monthly", [10.0] * 5, 5, CONFIG) == 1.0
    assert additive_score(None, [10.0] * 5, 5, CONFIG) == 0.5
    assert additive_score("yearly", [1.0, 3.0, 2.0], 3, CONFIG) == 0.5
    assert additive_score(None, [1.0, 3.0, 2.0], 3, CONFIG) == 0.0


def test_label_for_score():
    assert label_for_score(1.0) == "high"
    assert label_for_score(0.8) == "high"
    assert label_for_score(0.79) == "med"
    assert label_for_score(0.5) == "med"
    assert label_for_score(0.49) == "low"


def test_needs_review_without_category():
    result = classify(0.8, 3, None, CONFIG)
    assert result.label == "high"
    assert result.needs_review

    result = classify(0.8, 3, "Media", CONFIG)
    assert result.label == "high"
    assert not result.needs_review


def test_needs_review_when_not_high():
    assert classify(0.5, 3, "Media", CONFIG).needs_review


def test_occurrence_strategy():
    config = DetectorConfig(scoring="occurrence")
    assert classify(1.0, 5, "Media", config).label == "high"
    assert classify(1.0, 4, "Media", config).label == "med"
    assert classify(1.0, 3, "Media", config).label == "low"

    downgraded = classify(1.0, 6, None, config)
    assert downgraded.label == "low"
    assert downgraded.needs_review


def test_label_for_occurrences():
    assert label_for_occurrences(5, "SaaS") == "high"
    assert label_for_occurrences(5, None) == "low"
