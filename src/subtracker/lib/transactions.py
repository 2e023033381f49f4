"""Transactions — the raw feed records the detector consumes.

Parses loosely-typed records (JSON/JSONL feeds, bank CSV exports) into
`Transaction` objects. Malformed records are skipped, never fatal.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from io import StringIO
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transaction:
    """A single bank feed item. Positive amount = money leaving the account."""

    name: str
    amount: float
    date: date
    merchant_name: str | None = None

    @property
    def label(self) -> str:
        """Merchant name when the feed has one, else the description."""
        if self.merchant_name and self.merchant_name.strip():
            return self.merchant_name.strip()
        return self.name.strip()

    @classmethod
    def from_record(cls, record: Any) -> "Transaction | None":
        """Build a Transaction from a raw mapping. Returns None if malformed."""
        if isinstance(record, Transaction):
            record = {
                "name": record.name,
                "merchantName": record.merchant_name,
                "amount": record.amount,
                "date": record.date,
            }
        if not isinstance(record, Mapping):
            return None

        name = record.get("name")
        merchant = record.get("merchantName", record.get("merchant_name"))
        if not isinstance(name, str):
            name = ""
        if not isinstance(merchant, str):
            merchant = None
        if not name.strip() and not (merchant and merchant.strip()):
            return None

        amount = parse_amount(record.get("amount"))
        if amount is None:
            return None

        parsed_date = parse_date(record.get("date"))
        if parsed_date is None:
            return None

        return cls(name=name, amount=amount, date=parsed_date, merchant_name=merchant)


def parse_amount(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "").replace("$", "")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(amount) or math.isinf(amount):
        return None
    return amount


def parse_date(value: Any) -> date | None:
    """Parse an ISO date (or the date part of an ISO timestamp)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def parse_records(records: Iterable[Any] | None) -> list[Transaction]:
    """Parse raw records, skipping any that are malformed."""
    try:
        records = iter(records)
    except TypeError:
        if records is not None:
            logger.debug("Expected a list of transactions, got %s", type(records).__name__)
        return []

    transactions: list[Transaction] = []
    skipped = 0
    for record in records:
        txn = Transaction.from_record(record)
        if txn is None:
            skipped += 1
            continue
        transactions.append(txn)
    if skipped:
        logger.debug("Skipped %d malformed transaction record(s)", skipped)
    return transactions


def load_json(path: Path) -> list[Transaction]:
    """Load transactions from a JSON array file or a JSONL file."""
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("["):
        return parse_records(json.loads(stripped))

    records = []
    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError:
            logger.debug("%s:%d: not valid JSON, skipping", path.name, lineno)
    return parse_records(records)


@dataclass
class CSVProfile:
    """Column mapping for one bank's CSV export, loaded from YAML."""

    institution: str
    encoding: str
    delimiter: str
    skip_rows: int
    columns: dict[str, str]  # field -> column header name
    date_format: str
    amount_invert: bool

    @classmethod
    def load(cls, path: Path) -> "CSVProfile":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        csv_conf = data.get("csv", {}) or {}
        return cls(
            institution=data["institution"],
            encoding=csv_conf.get("encoding", "utf-8"),
            delimiter=csv_conf.get("delimiter", ","),
            skip_rows=csv_conf.get("skip_rows", 0),
            columns=data["columns"],
            date_format=data["date_format"],
            amount_invert=data.get("amount_invert", False),
        )


def load_csv(csv_path: Path, profile: CSVProfile) -> list[Transaction]:
    """Parse a bank CSV export using the given profile."""
    with open(csv_path, encoding=profile.encoding) as f:
        content = f.read()

    lines = content.splitlines()
    if profile.skip_rows > 0:
        lines = lines[profile.skip_rows :]

    reader = csv.DictReader(StringIO("\n".join(lines)), delimiter=profile.delimiter)

    transactions: list[Transaction] = []
    for row in reader:
        date_str = (row.get(profile.columns.get("date", ""), "") or "").strip()
        try:
            parsed_date = datetime.strptime(date_str, profile.date_format).date()
        except ValueError:
            continue

        amount = parse_amount(row.get(profile.columns.get("amount", ""), ""))
        if amount is None:
            continue
        if profile.amount_invert:
            amount = -amount

        name = (row.get(profile.columns.get("name", ""), "") or "").strip()
        merchant = (row.get(profile.columns.get("merchant_name", ""), "") or "").strip()
        if not name and not merchant:
            continue

        transactions.append(
            Transaction(
                name=name,
                amount=amount,
                date=parsed_date,
                merchant_name=merchant or None,
            )
        )

    return transactions
