"""Aggregation and risk helpers for Digital Twin."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Literal, TypedDict

import numpy as np
import pandas as pd

from . import utils
from .models import RISKY_CATEGORIES, Transaction

RISK_WINDOW_DAYS = 30

RiskLabel = Literal["Low Risk", "Moderate Risk", "High Risk", "Extremely High Risk"]

# (exclusive lower bound in percent, label), checked top down
RISK_THRESHOLDS: tuple[tuple[float, RiskLabel], ...] = (
    (10.0, "Extremely High Risk"),
    (5.0, "High Risk"),
    (1.0, "Moderate Risk"),
)


class BreakdownEntry(TypedDict):
    name: str
    amount: float
    share: float


class RiskBadge(TypedDict):
    label: RiskLabel
    emoji: str
    gradient: str
    pulse: bool


class SummaryPayload(TypedDict):
    transaction_count: int
    total_amount: float
    recent_total: float
    risky_total: float
    risk_percentage: float
    risk_label: RiskLabel
    risk_badge: RiskBadge
    category_totals: list[BreakdownEntry]


_BADGES: dict[str, tuple[str, str]] = {
    "Low Risk": ("🙂", "linear-gradient(135deg,#60a5fa,#06b6d4)"),
    "Moderate Risk": ("😐", "linear-gradient(135deg,#f59e0b,#fb923c)"),
    "High Risk": ("😵", "linear-gradient(135deg,#ef4444,#b91c1c)"),
    "Extremely High Risk": ("😈", "linear-gradient(135deg,#ef4444,#b91c1c)"),
}


def _frame(transactions: Iterable[Transaction] | pd.DataFrame) -> pd.DataFrame:
    df = utils.ensure_dataframe(transactions)
    if df.empty:
        return pd.DataFrame(columns=["amount", "category", "date"])
    for column in ("amount", "category", "date"):
        if column not in df:
            df[column] = None
    amounts = pd.to_numeric(df["amount"], errors="coerce").astype(float)
    df["amount"] = amounts.where(np.isfinite(amounts), 0.0).fillna(0.0)
    df["posted_date"] = pd.to_datetime(df["date"].map(utils.parse_date), errors="coerce", utc=True)
    return df


def category_totals(transactions: Iterable[Transaction] | pd.DataFrame) -> list[BreakdownEntry]:
    """Sum amounts per category over all transactions, first-seen order."""

    df = _frame(transactions)
    if df.empty:
        return []
    totals = df.groupby("category", sort=False)["amount"].sum()
    overall = float(totals.sum())
    return [
        {
            "name": str(name),
            "amount": float(value),
            "share": float(value / overall) if overall else 0.0,
        }
        for name, value in totals.items()
    ]


def _recent(df: pd.DataFrame, now: datetime) -> pd.DataFrame:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = pd.Timestamp(now - timedelta(days=RISK_WINDOW_DAYS))
    # NaT compares False, so unparsable dates drop out here
    return df.loc[df["posted_date"] > cutoff]


def _risk_totals(df: pd.DataFrame, now: datetime) -> tuple[float, float]:
    """Return ``(recent_total, risky_total)`` over the trailing window."""

    if df.empty:
        return 0.0, 0.0
    recent = _recent(df, now)
    recent_total = float(recent["amount"].sum())
    risky_total = float(recent.loc[recent["category"].isin(RISKY_CATEGORIES), "amount"].sum())
    return recent_total, risky_total


def risk_percentage(
    transactions: Iterable[Transaction] | pd.DataFrame,
    now: datetime | None = None,
) -> float:
    """Share of risky-category spend over the trailing window, in percent."""

    recent_total, risky_total = _risk_totals(_frame(transactions), now or utils.utc_now())
    return risky_total / recent_total * 100.0 if recent_total else 0.0


def risk_label(percentage: float) -> RiskLabel:
    for bound, label in RISK_THRESHOLDS:
        if percentage > bound:
            return label
    return "Low Risk"


def risk_badge(label: RiskLabel) -> RiskBadge:
    emoji, gradient = _BADGES[label]
    return {
        "label": label,
        "emoji": emoji,
        "gradient": gradient,
        "pulse": label == "Extremely High Risk",
    }


def calculate_summary(
    transactions: Iterable[Transaction] | pd.DataFrame,
    now: datetime | None = None,
) -> SummaryPayload:
    """Compute the dashboard payload: totals, category split and risk."""

    now = now or utils.utc_now()
    df = _frame(transactions)

    recent_total, risky_total = _risk_totals(df, now)
    pct = risky_total / recent_total * 100.0 if recent_total else 0.0
    label = risk_label(pct)

    return {
        "transaction_count": int(len(df)),
        "total_amount": round(float(df["amount"].sum()) if not df.empty else 0.0, 2),
        "recent_total": round(recent_total, 2),
        "risky_total": round(risky_total, 2),
        "risk_percentage": round(pct, 2),
        "risk_label": label,
        "risk_badge": risk_badge(label),
        "category_totals": category_totals(df),
    }
