"""Shared utilities for the Digital Twin project."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable, Mapping

import pandas as pd


def ensure_dataframe(transactions: Iterable[Mapping] | pd.DataFrame) -> pd.DataFrame:
    """Ensure the input payload is normalised to a :class:`pandas.DataFrame`."""

    if isinstance(transactions, pd.DataFrame):
        return transactions.copy()

    return pd.DataFrame([_as_mapping(item) for item in transactions])


def _as_mapping(item: object) -> Mapping:
    to_record = getattr(item, "to_record", None)
    if callable(to_record):
        return to_record()
    return item  # type: ignore[return-value]


def format_currency(value: float, currency: str = "£") -> str:
    """Return a human-readable currency string."""

    return f"{currency}{value:,.2f}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today_iso(now: datetime | None = None) -> str:
    """Return today's date as ``YYYY-MM-DD`` (UTC, like ``toISOString``)."""

    moment = now or utc_now()
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date().isoformat()


def iso_timestamp(now: datetime | None = None) -> str:
    moment = now or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis(now: datetime | None = None) -> int:
    moment = now or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def parse_date(value: object) -> date | None:
    """Parse a ``YYYY-MM-DD`` calendar date, returning ``None`` for anything else."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None
