"""Domain records for Digital Twin: transactions, chat messages, categories."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Literal, Mapping, TypedDict

from . import utils

CATEGORIES: tuple[str, ...] = (
    "Food",
    "Subscriptions",
    "Transport",
    "Fun",
    "Health",
    "Needs",
    "Wants",
    "Gambling",
    "High-Risk Investments",
    "Investment",
    "Pension",
    "Education",
    "Savings",
    "Travel",
)
DEFAULT_CATEGORY = "Food"
RISKY_CATEGORIES = frozenset({"Gambling", "High-Risk Investments"})


class InvalidTransaction(ValueError):
    """Raised when form input cannot become a transaction."""


class TransactionRecord(TypedDict, total=False):
    id: str
    amount: float
    category: str
    date: str
    timestamp: str


def coerce_amount(value: Any) -> float:
    """Read a stored amount, treating blanks and junk as zero."""

    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


@dataclass(frozen=True)
class Transaction:
    """One logged transaction. ``id`` is ``None`` until storage assigns one."""

    amount: float
    category: str
    date: str
    timestamp: str
    id: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, id: str | None = None) -> "Transaction":
        return cls(
            amount=coerce_amount(record.get("amount")),
            category=str(record.get("category") or DEFAULT_CATEGORY),
            date=str(record.get("date") or ""),
            timestamp=str(record.get("timestamp") or ""),
            id=id if id is not None else _optional_str(record.get("id")),
        )

    def to_record(self, *, include_id: bool = True) -> TransactionRecord:
        record: TransactionRecord = {
            "amount": self.amount,
            "category": self.category,
            "date": self.date,
            "timestamp": self.timestamp,
        }
        if include_id and self.id is not None:
            record["id"] = self.id
        return record

    def with_id(self, new_id: str) -> "Transaction":
        return replace(self, id=new_id)

    def merged(self, payload: "Transaction") -> "Transaction":
        """Return ``payload``'s fields under this transaction's id."""

        return replace(payload, id=self.id)


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def build_payload(
    amount: str | float | None,
    category: str,
    date: str | None = None,
    now: datetime | None = None,
) -> Transaction:
    """Validate form input and return an unsaved :class:`Transaction`."""

    if amount is None or (isinstance(amount, str) and not amount.strip()):
        value = 0.0
    else:
        try:
            value = float(amount)
        except (TypeError, ValueError) as exc:
            raise InvalidTransaction(f"Amount must be a number, got {amount!r}") from exc
        if not math.isfinite(value):
            raise InvalidTransaction(f"Amount must be finite, got {amount!r}")

    if category not in CATEGORIES:
        raise InvalidTransaction(f"Unknown category {category!r}")

    date_text = (date or "").strip() or utils.today_iso(now)
    parsed_date = utils.parse_date(date_text)
    if parsed_date is None:
        raise InvalidTransaction(f"Date must be YYYY-MM-DD, got {date_text!r}")

    return Transaction(
        amount=value,
        category=category,
        date=parsed_date.isoformat(),
        timestamp=utils.iso_timestamp(now),
    )


@dataclass(frozen=True)
class Source:
    title: str | None
    uri: str | None

    @property
    def label(self) -> str:
        return self.title or self.uri or ""


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["user", "assistant"]
    persona_name: str
    text: str
    sources: tuple[Source, ...] = field(default_factory=tuple)
