"""SQLite store for subscription records.

Merges fresh detection output with stored records by id. A user's
confirm/ignore decision is never overwritten by re-detection: only the
observational fields (last seen date, occurrence count) are refreshed.

Merges and patches run inside BEGIN IMMEDIATE transactions so a
detection run cannot interleave with a manual status change.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .subscription import CADENCES, STATUSES, CandidateSubscription

DECIDED_STATUSES = ("confirmed", "ignored")

PATCHABLE_FIELDS = ("name", "category", "status", "amount", "cadence", "normalized_key")

_COLUMNS = (
    "id",
    "name",
    "normalized_key",
    "amount",
    "cadence",
    "annual_cost",
    "last_seen_date",
    "occurrence_count",
    "confidence",
    "needs_review",
    "category",
    "status",
    "score",
    "reasons",
    "updated_at",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_row(sub: CandidateSubscription) -> tuple:
    return (
        sub.id,
        sub.name,
        sub.normalized_key,
        sub.amount,
        sub.cadence,
        sub.annual_cost,
        sub.last_seen_date,
        sub.occurrence_count,
        sub.confidence,
        int(sub.needs_review),
        sub.category,
        sub.status,
        sub.score,
        json.dumps(list(sub.reasons)),
        sub.updated_at,
    )


def _from_row(row: tuple) -> CandidateSubscription:
    data = dict(zip(_COLUMNS, row))
    return CandidateSubscription(
        id=data["id"],
        name=data["name"],
        normalized_key=data["normalized_key"],
        amount=data["amount"],
        cadence=data["cadence"],
        last_seen_date=data["last_seen_date"],
        occurrence_count=data["occurrence_count"],
        confidence=data["confidence"],
        needs_review=bool(data["needs_review"]),
        category=data["category"],
        status=data["status"],
        score=data["score"],
        reasons=tuple(json.loads(data["reasons"] or "[]")),
        updated_at=data["updated_at"],
    )


def merge(
    prev: CandidateSubscription | None, incoming: CandidateSubscription, now: str
) -> CandidateSubscription:
    """Merge a freshly detected candidate into the stored record (if any)."""
    if prev is None:
        return incoming.with_changes(updated_at=now)

    if prev.status in DECIDED_STATUSES:
        return prev.with_changes(
            last_seen_date=incoming.last_seen_date or prev.last_seen_date,
            occurrence_count=incoming.occurrence_count or prev.occurrence_count,
            updated_at=now,
        )

    return incoming.with_changes(
        category=prev.category if prev.category is not None else incoming.category,
        updated_at=now,
    )


class SubscriptionStore:
    """SQLite-backed subscription records with list/upsert/update semantics."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path), timeout=30)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS subscriptions (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                normalized_key TEXT NOT NULL,
                amount REAL NOT NULL,
                cadence TEXT NOT NULL,
                annual_cost REAL NOT NULL,
                last_seen_date TEXT,
                occurrence_count INTEGER NOT NULL,
                confidence TEXT NOT NULL,
                needs_review INTEGER NOT NULL,
                category TEXT,
                status TEXT NOT NULL DEFAULT 'suggested',
                score REAL,
                reasons TEXT,
                updated_at TEXT
            )
        """)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SubscriptionStore":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _select(self, where: str = "", params: tuple = ()) -> list[CandidateSubscription]:
        sql = f"SELECT {', '.join(_COLUMNS)} FROM subscriptions {where}"
        return [_from_row(row) for row in self._conn.execute(sql, params).fetchall()]

    def _write(self, sub: CandidateSubscription) -> None:
        placeholders = ", ".join("?" for _ in _COLUMNS)
        self._conn.execute(
            f"INSERT OR REPLACE INTO subscriptions ({', '.join(_COLUMNS)}) "
            f"VALUES ({placeholders})",
            _to_row(sub),
        )

    def get(self, sub_id: str) -> CandidateSubscription | None:
        rows = self._select("WHERE id = ?", (sub_id,))
        return rows[0] if rows else None

    def list(self, status: str | None = None) -> list[CandidateSubscription]:
        """All records, highest annual cost first."""
        if status is None:
            return self._select("ORDER BY annual_cost DESC, id")
        return self._select("WHERE status = ? ORDER BY annual_cost DESC, id", (status,))

    def upsert_many(
        self, candidates: list[CandidateSubscription]
    ) -> list[CandidateSubscription]:
        """Merge candidates into the store. Returns the full merged list."""
        now = _now()
        self._conn.execute("BEGIN IMMEDIATE")
        try:
            for incoming in candidates:
                merged = merge(self.get(incoming.id), incoming, now)
                self._write(merged)
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise
        return self.list()

    def update(self, sub_id: str, patch: dict[str, Any]) -> CandidateSubscription | None:
        """Apply a user patch (rename, categorize, confirm/ignore...).

        Returns the updated record, or None if the id is unknown.
        Raises ValueError for fields outside PATCHABLE_FIELDS or bad values.
        """
        unknown = set(patch) - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot patch field(s): {', '.join(sorted(unknown))}")
        if "status" in patch and patch["status"] not in STATUSES:
            raise ValueError(f"Invalid status: {patch['status']!r}")
        if "cadence" in patch and patch["cadence"] not in CADENCES:
            raise ValueError(f"Invalid cadence: {patch['cadence']!r}")
        if "amount" in patch:
            patch = {**patch, "amount": float(patch["amount"])}

        self._conn.execute("BEGIN IMMEDIATE")
        try:
            prev = self.get(sub_id)
            if prev is None:
                self._conn.rollback()
                return None
            updated = prev.with_changes(**patch, updated_at=_now())
            self._write(updated)
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise
        return updated
