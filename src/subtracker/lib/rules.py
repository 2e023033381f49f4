"""Rules engine — merchant renaming, categorization and ignoring.

Rules are data: an ordered list of regex patterns with actions, built in
(DEFAULT_RULES) or loaded from a YAML file. They run against the raw
merchant string after statistical detection and never touch its math.

rules.yaml:

    rules:
      - id: media-crave
        pattern: '\\bCRAVE\\b'
        rename: Crave
        category: Media
      - id: ignore-rent
        pattern: '\\bRENT\\b'
        ignore: true
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

CATEGORIES = [
    "SaaS",
    "Media",
    "Utilities",
    "Finance",
    "Health",
    "Home",
    "Travel",
    "Other",
]

DEFAULT_RULES: list[dict] = [
    # Rails / transfers / deposits
    {"id": "ignore-ach", "pattern": r"\bACH\b", "ignore": True},
    {"id": "ignore-transfer", "pattern": r"\bTRANSFER\b|\bXFER\b", "ignore": True},
    {"id": "ignore-deposit", "pattern": r"\bDEPOSIT\b|\bDIRECT\s*DEP(OSIT)?\b", "ignore": True},
    {"id": "ignore-payroll", "pattern": r"\bPAYROLL\b|\bGUSTO\b", "ignore": True},
    {"id": "ignore-loan", "pattern": r"\bLOAN\b|\bMORTGAGE\b", "ignore": True},
    {"id": "ignore-interest", "pattern": r"\bINTEREST\b", "ignore": True},
    {"id": "ignore-refund", "pattern": r"\bREFUND\b|\bREVERS(AL)?\b|\bCHARGEBACK\b", "ignore": True},
    {"id": "ignore-auto-payment", "pattern": r"\bAUTOMATIC\s+PAYMENT\b|\bTHANK\b", "ignore": True},
    # Media
    {"id": "media-netflix", "pattern": r"\bNETFLIX\b", "category": "Media", "rename": "Netflix"},
    {"id": "media-spotify", "pattern": r"\bSPOTIFY\b", "category": "Media", "rename": "Spotify"},
    {"id": "media-youtube", "pattern": r"\bYOUTUBE\b", "category": "Media", "rename": "YouTube"},
    {
        "id": "media-apple",
        "pattern": r"\bAPPLE\b.*\bMUSIC\b|\bAPPLE\s+TV\b",
        "category": "Media",
        "rename": "Apple Media",
    },
    # SaaS
    {"id": "saas-adobe", "pattern": r"\bADOBE\b", "category": "SaaS", "rename": "Adobe"},
    {"id": "saas-notion", "pattern": r"\bNOTION\b", "category": "SaaS", "rename": "Notion"},
    {"id": "saas-figma", "pattern": r"\bFIGMA\b", "category": "SaaS", "rename": "Figma"},
    {"id": "saas-slack", "pattern": r"\bSLACK\b", "category": "SaaS", "rename": "Slack"},
    {
        "id": "saas-google",
        "pattern": r"\bGOOGLE\b.*\bWORKSPACE\b|\bGOOGLE\s+SERVICES\b",
        "category": "SaaS",
        "rename": "Google Workspace",
    },
    # Utilities
    {"id": "util-hydro", "pattern": r"\bHYDRO\b|\bELECTRIC\b", "category": "Utilities"},
    {
        "id": "util-internet",
        "pattern": r"\bROGERS\b|\bBELL\b|\bTELUS\b|\bINTERNET\b|\bFIBRE\b",
        "category": "Utilities",
    },
    # Finance
    {"id": "fin-stripe", "pattern": r"\bSTRIPE\b", "category": "Finance", "rename": "Stripe"},
    {"id": "fin-square", "pattern": r"\bSQUARE\b", "category": "Finance", "rename": "Square"},
    # Travel
    {"id": "travel-uber", "pattern": r"\bUBER\b", "category": "Travel", "rename": "Uber"},
    {"id": "travel-lyft", "pattern": r"\bLYFT\b", "category": "Travel", "rename": "Lyft"},
    # Health
    {"id": "health-peloton", "pattern": r"\bPELOTON\b", "category": "Health", "rename": "Peloton"},
]


@dataclass
class SubscriptionRule:
    id: str
    pattern: str
    rename: str | None = None  # replacement template, may use \1 back-references
    category: str | None = None
    ignore: bool = False
    stop: bool = False
    builtin: bool = False
    _compiled: re.Pattern | None = None

    def compile(self) -> re.Pattern:
        """Compile the pattern and check the rename template against it.

        Raises re.error for a bad pattern, a bad escape in the template or
        a reference to a group the pattern does not have.
        """
        if self._compiled is None:
            compiled = re.compile(self.pattern, re.IGNORECASE)
            if self.rename is not None:
                try:
                    compiled.sub(self.rename, "")
                except IndexError as e:  # unknown named group
                    raise re.error(str(e)) from e
            self._compiled = compiled
        return self._compiled

    def match(self, raw_name: str) -> re.Match | None:
        return self.compile().search(raw_name)

    @classmethod
    def from_dict(cls, data: dict) -> "SubscriptionRule":
        return cls(
            id=str(data.get("id") or data["pattern"]),
            pattern=data["pattern"],
            rename=data.get("rename"),
            category=data.get("category"),
            ignore=bool(data.get("ignore", False)),
            stop=bool(data.get("stop", False)),
        )

    def to_dict(self) -> dict:
        data: dict = {"id": self.id, "pattern": self.pattern}
        if self.rename is not None:
            data["rename"] = self.rename
        if self.category is not None:
            data["category"] = self.category
        if self.ignore:
            data["ignore"] = True
        if self.stop:
            data["stop"] = True
        return data


@dataclass
class RuleResult:
    canonical_name: str
    category: str | None = None
    status: str | None = None  # "ignored" when a rule ignores the merchant
    reasons: list[str] = field(default_factory=list)

    @property
    def ignored(self) -> bool:
        return self.status == "ignored"


def _compile_rules(
    raw_rules: list[dict], source: str, builtin: bool = False
) -> list[SubscriptionRule]:
    rules = []
    for data in raw_rules:
        try:
            rule = SubscriptionRule.from_dict(data)
            rule.builtin = builtin
            rule.compile()
        except (KeyError, TypeError, re.error) as e:
            logger.warning("Skipping invalid rule %r from %s: %s", data, source, e)
            continue
        rules.append(rule)
    return rules


class RuleEngine:
    """Applies an ordered list of subscription rules."""

    def __init__(self, rules: list[SubscriptionRule] | None = None) -> None:
        self.rules: list[SubscriptionRule] = list(rules or [])
        self.path: Path | None = None

    @classmethod
    def default(cls) -> "RuleEngine":
        return cls(_compile_rules(DEFAULT_RULES, "built-in rules", builtin=True))

    @classmethod
    def load(cls, path: Path, include_defaults: bool = True) -> "RuleEngine":
        """Load rules from YAML. User rules run after the built-ins so they win."""
        engine = cls.default() if include_defaults else cls()
        engine.path = path
        if not path.exists():
            return engine
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        engine.rules.extend(_compile_rules(data.get("rules", []) or [], str(path)))
        return engine

    def apply(self, raw_name: str) -> RuleResult:
        """Run every rule in order against a raw merchant string.

        Each match records "rule:<id>". Renames and categories accumulate
        with the last match winning; an ignore rule stops evaluation.
        """
        result = RuleResult(canonical_name=raw_name.strip())

        for rule in self.rules:
            try:
                m = rule.match(raw_name)
            except (re.error, TypeError) as e:
                logger.warning("Skipping rule %s: %s", rule.id, e)
                continue
            if m is None:
                continue

            result.reasons.append(f"rule:{rule.id}")

            if rule.ignore:
                result.status = "ignored"
                result.reasons.append("ignored_by_rule")
                break

            if rule.rename is not None:
                try:
                    result.canonical_name = m.expand(rule.rename)
                except (re.error, IndexError) as e:
                    logger.warning("Rule %s has a bad rename %r: %s", rule.id, rule.rename, e)
            if rule.category is not None:
                result.category = rule.category
            if rule.stop:
                break

        return result

    def add_rule(
        self,
        pattern: str,
        rename: str | None = None,
        category: str | None = None,
        ignore: bool = False,
        rule_id: str | None = None,
    ) -> SubscriptionRule:
        """Add a user rule in memory (call save() to persist)."""
        rule = SubscriptionRule(
            id=rule_id or f"user-{len(self.user_rules()) + 1}",
            pattern=pattern,
            rename=rename,
            category=category,
            ignore=ignore,
        )
        rule.compile()  # raises re.error on a bad pattern or rename
        self.rules.append(rule)
        return rule

    def user_rules(self) -> list[SubscriptionRule]:
        return [r for r in self.rules if not r.builtin]

    def save(self, path: Path | None = None) -> None:
        """Persist the non-built-in rules back to YAML."""
        target = path or self.path
        if target is None:
            raise ValueError("No rules file to save to")
        target.parent.mkdir(parents=True, exist_ok=True)
        data = {"rules": [r.to_dict() for r in self.user_rules()]}
        with open(target, "w") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
