"""Detector configuration — tuning knobs loaded from YAML.

Example config.yaml:

    detector:
      min_occurrences: 3
      tolerance_pct: 0.05
      min_score: 0.6
      scoring: additive
      enable_weekly: false
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

SCORING_STRATEGIES = ("additive", "occurrence")


@dataclass(frozen=True)
class DetectorConfig:
    min_occurrences: int = 3
    min_key_length: int = 2

    # Inclusive day windows for the median gap
    monthly_min_days: int = 25
    monthly_max_days: int = 35
    yearly_min_days: int = 350
    yearly_max_days: int = 380
    weekly_min_days: int = 6
    weekly_max_days: int = 8
    enable_weekly: bool = False

    # Spacing guard: gaps in window >= max(min_in_range_gaps, ceil(n * spacing_ratio))
    min_in_range_gaps: int = 2
    spacing_ratio: float = 0.66

    # Amount tolerance around the median
    tolerance_abs: float = 2.0
    tolerance_pct: float = 0.06

    # Scoring
    scoring: str = "additive"
    stability_threshold: float = 0.15
    min_score: float = 0.6

    def __post_init__(self) -> None:
        if self.scoring not in SCORING_STRATEGIES:
            raise ValueError(
                f"Unknown scoring strategy {self.scoring!r}, "
                f"expected one of {', '.join(SCORING_STRATEGIES)}"
            )
        if self.min_occurrences < 3:
            raise ValueError("min_occurrences must be at least 3")

    @classmethod
    def from_dict(cls, data: dict) -> "DetectorConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown detector option(s): {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def load(cls, path: Path) -> "DetectorConfig":
        """Load from a YAML file's `detector:` section. Missing file → defaults."""
        if not path.exists():
            return cls()
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("detector", {}) or {})

    def window(self, cadence: str) -> tuple[int, int]:
        """Inclusive (min, max) day range for a cadence."""
        if cadence == "monthly":
            return self.monthly_min_days, self.monthly_max_days
        if cadence == "yearly":
            return self.yearly_min_days, self.yearly_max_days
        if cadence == "weekly":
            return self.weekly_min_days, self.weekly_max_days
        raise ValueError(f"Unknown cadence: {cadence}")

    @property
    def cadences(self) -> tuple[str, ...]:
        if self.enable_weekly:
            return ("monthly", "yearly", "weekly")
        return ("monthly", "yearly")
