"""Merchant normalization and exclusion patterns.

Canonicalizes noisy bank descriptions into stable grouping keys and
filters out transactions that are not purchases (transfers, payroll,
refunds, loan payments and similar rails).
"""

from __future__ import annotations

import re

# Transfers, deposits and other non-subscription rails
EXCLUDE_PATTERNS: list[re.Pattern] = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"\bACH\b",
        r"\bWIRE\b",
        r"\bTRANSFER\b",
        r"\bXFER\b",
        r"\bDEPOSIT\b",
        r"\bDIRECT\s*DEP(OSIT)?\b",
        r"\bPAYROLL\b",
        r"\bGUSTO\b",
        r"\bVENMO\b",
        r"\bZELLE\b",
        r"\bCASH\s*APP\b",
        r"\bATM\b",
        r"\bREFUND\b",
        r"\bREVERS(AL)?\b",
        r"\bCHARGEBACK\b",
        r"\bINTEREST\b",
        r"\bLOAN\b",
        r"\bMORTGAGE\b",
        r"\bCREDIT\b",
        r"\bCD\b",
        r"\bCERTIFICATE\s+OF\s+DEPOSIT\b",
        r"\bAUTOMATIC\s+PAYMENT\b",  # card/loan autopay
    ]
]

_BULLETS = re.compile(r"[•·]")
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_LONG_NUMBERS = re.compile(r"\b\d{4,}\b")
_SUFFIXES = re.compile(r"\b(USA|US|CA|CANADA|INC|LLC|LTD|CORP)\b", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def normalize_merchant(raw: str | None) -> str:
    """Normalize a merchant/description string into a grouping key.

    Replaces punctuation and bullets with spaces, drops reference numbers
    of 4+ digits and corporate/geographic suffixes, collapses whitespace
    and uppercases. Empty or symbol-only input yields "".
    """
    if not raw:
        return ""
    s = _BULLETS.sub(" ", raw)
    s = _PUNCTUATION.sub(" ", s)
    s = _LONG_NUMBERS.sub(" ", s)
    s = _SUFFIXES.sub(" ", s)
    s = _WHITESPACE.sub(" ", s)
    return s.strip().upper()


def is_excluded(text: str | None) -> bool:
    """True if the text matches any non-purchase pattern."""
    if not text:
        return False
    return any(p.search(text) for p in EXCLUDE_PATTERNS)


def is_outgoing(amount: float) -> bool:
    # Aggregator convention: spend is positive, credits/refunds negative
    return amount > 0
