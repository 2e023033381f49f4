"""Project layout — where config, rules, profiles and the store live.

    <root>/.subtracker/
        config.yaml            detector tuning
        rules.yaml             user subscription rules
        csv_profiles/*.yaml    bank CSV column mappings
        subscriptions.sqlite   subscription records
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import DetectorConfig
from .rules import RuleEngine
from .store import SubscriptionStore

STATE_DIR = ".subtracker"


def find_project_root(start: Path | None = None) -> Path:
    """Nearest directory (cwd upwards) holding a .subtracker/ dir, else cwd."""
    cwd = start or Path.cwd()
    for parent in [cwd, *cwd.parents]:
        if (parent / STATE_DIR).is_dir():
            return parent
    return cwd


@dataclass(frozen=True)
class Project:
    root: Path

    @classmethod
    def discover(cls, root: str | None = None) -> "Project":
        return cls(Path(root) if root else find_project_root())

    @property
    def state_dir(self) -> Path:
        return self.root / STATE_DIR

    @property
    def config_path(self) -> Path:
        return self.state_dir / "config.yaml"

    @property
    def rules_path(self) -> Path:
        return self.state_dir / "rules.yaml"

    @property
    def db_path(self) -> Path:
        return self.state_dir / "subscriptions.sqlite"

    def profile_path(self, name: str) -> Path:
        return self.state_dir / "csv_profiles" / f"{name}.yaml"

    def load_config(self) -> DetectorConfig:
        return DetectorConfig.load(self.config_path)

    def load_rules(self) -> RuleEngine:
        return RuleEngine.load(self.rules_path)

    def open_store(self) -> SubscriptionStore:
        return SubscriptionStore(self.db_path)
