"""Tests for detector configuration."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
import yaml

from subtracker.lib.config import DetectorConfig


def test_defaults():
    config = DetectorConfig()
    assert config.min_occurrences == 3
    assert config.window("monthly") == (25, 35)
    assert config.window("yearly") == (350, 380)
    assert config.cadences == ("monthly", "yearly")
    assert config.min_score == 0.6


def test_missing_file_gives_defaults():
    with TemporaryDirectory() as tmp:
        assert DetectorConfig.load(Path(tmp) / "config.yaml") == DetectorConfig()


def test_load_yaml():
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yaml"
        with open(path, "w") as f:
            yaml.dump({"detector": {"tolerance_pct": 0.05, "enable_weekly": True}}, f)
        config = DetectorConfig.load(path)
        assert config.tolerance_pct == 0.05
        assert config.cadences == ("monthly", "yearly", "weekly")
        assert config.window("weekly") == (6, 8)


def test_unknown_option_rejected():
    with pytest.raises(ValueError):
        DetectorConfig.from_dict({"min_scroe": 0.5})


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        DetectorConfig(scoring="bayesian")
    with pytest.raises(ValueError):
        DetectorConfig(min_occurrences=2)
    with pytest.raises(ValueError):
        DetectorConfig().window("daily")
