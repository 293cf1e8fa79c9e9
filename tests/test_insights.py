"""Category totals and the 30-day risk label."""

from __future__ import annotations

import pandas as pd
import pytest

from digital_twin import insights
from digital_twin.models import Transaction


def _tx(amount, category: str, day: str, tx_id: str | None = None) -> Transaction:
    return Transaction.from_record(
        {"amount": amount, "category": category, "date": day, "timestamp": "2026-10-18T00:00:00.000Z"},
        id=tx_id,
    )


def test_risk_label_is_low_when_no_risky_spend(now) -> None:
    txs = [_tx(40, "Food", "2026-10-15"), _tx(12, "Transport", "2026-10-16")]
    assert insights.risk_percentage(txs, now) == 0.0
    assert insights.risk_label(insights.risk_percentage(txs, now)) == "Low Risk"


def test_risk_label_empty_list_is_low(now) -> None:
    assert insights.risk_percentage([], now) == 0.0
    assert insights.calculate_summary([], now)["risk_label"] == "Low Risk"


@pytest.mark.parametrize(
    ("pct", "label"),
    [
        (0.0, "Low Risk"),
        (1.0, "Low Risk"),
        (1.01, "Moderate Risk"),
        (5.0, "Moderate Risk"),
        (5.5, "High Risk"),
        (10.0, "High Risk"),
        (10.01, "Extremely High Risk"),
        (100.0, "Extremely High Risk"),
    ],
)
def test_risk_label_thresholds_are_strict(pct: float, label: str) -> None:
    assert insights.risk_label(pct) == label


def test_risk_percentage_combines_gambling_and_high_risk(now) -> None:
    txs = [
        _tx(80, "Food", "2026-10-01"),
        _tx(12, "Gambling", "2026-10-02"),
        _tx(8, "High-Risk Investments", "2026-10-03"),
    ]
    assert insights.risk_percentage(txs, now) == pytest.approx(20.0)
    assert insights.risk_label(insights.risk_percentage(txs, now)) == "Extremely High Risk"


def test_exactly_ten_percent_is_high_not_extreme(now) -> None:
    txs = [_tx(90, "Food", "2026-10-10"), _tx(10, "Gambling", "2026-10-10")]
    summary = insights.calculate_summary(txs, now)
    assert summary["risk_percentage"] == 10.0
    assert summary["risk_label"] == "High Risk"


def test_transactions_outside_window_are_ignored(now) -> None:
    txs = [
        _tx(500, "Gambling", "2026-09-01"),
        _tx(100, "Food", "2026-10-17"),
    ]
    assert insights.risk_percentage(txs, now) == 0.0


def test_window_boundary_uses_midnight_dates(now) -> None:
    # now is 2026-10-18 12:00 UTC, so the cutoff is 2026-09-18 12:00 UTC
    excluded = [_tx(50, "Gambling", "2026-09-18"), _tx(50, "Food", "2026-10-18")]
    included = [_tx(50, "Gambling", "2026-09-19"), _tx(50, "Food", "2026-10-18")]
    assert insights.risk_percentage(excluded, now) == 0.0
    assert insights.risk_percentage(included, now) == pytest.approx(50.0)


def test_bad_amounts_count_as_zero_and_bad_dates_are_skipped(now) -> None:
    frame = pd.DataFrame(
        [
            {"amount": "abc", "category": "Gambling", "date": "2026-10-10"},
            {"amount": None, "category": "Gambling", "date": "2026-10-11"},
            {"amount": 30, "category": "Gambling", "date": "not a date"},
            {"amount": "97", "category": "Food", "date": "2026-10-12"},
            {"amount": 3, "category": "High-Risk Investments", "date": "2026-10-12"},
        ]
    )
    assert insights.risk_percentage(frame, now) == pytest.approx(3.0)


@pytest.mark.parametrize("day", ["now", "today", "2026", "10/12/2026", "Oct 12 2026", "2026-10-12T23:59"])
def test_only_calendar_dates_enter_the_window(day: str, now) -> None:
    txs = [_tx(40, "Gambling", day), _tx(60, "Food", "2026-10-12")]
    assert insights.risk_percentage(txs, now) == 0.0
    summary = insights.calculate_summary(txs, now)
    assert summary["recent_total"] == 60.0
    assert summary["risky_total"] == 0.0


def test_category_totals_keep_first_seen_order() -> None:
    txs = [
        _tx(10, "Food", "2026-10-01"),
        _tx(5, "Gambling", "2026-10-02"),
        _tx(2.5, "Food", "2026-10-03"),
    ]
    totals = insights.category_totals(txs)
    assert [entry["name"] for entry in totals] == ["Food", "Gambling"]
    assert totals[0]["amount"] == pytest.approx(12.5)
    assert totals[1]["share"] == pytest.approx(5 / 17.5)


def test_category_totals_include_old_transactions() -> None:
    txs = [_tx(10, "Travel", "2020-01-01")]
    assert insights.category_totals(txs) == [{"name": "Travel", "amount": 10.0, "share": 1.0}]


def test_calculate_summary_payload(now) -> None:
    txs = [
        _tx(95, "Food", "2026-10-10", "a"),
        _tx(3, "Gambling", "2026-10-11", "b"),
        _tx(200, "Savings", "2025-01-01", "c"),
    ]
    payload = insights.calculate_summary(txs, now)

    assert payload["transaction_count"] == 3
    assert payload["total_amount"] == 298.0
    assert payload["recent_total"] == 98.0
    assert payload["risky_total"] == 3.0
    assert payload["risk_label"] == "Moderate Risk"
    assert payload["risk_badge"] == {
        "label": "Moderate Risk",
        "emoji": "😐",
        "gradient": "linear-gradient(135deg,#f59e0b,#fb923c)",
        "pulse": False,
    }
    assert {entry["name"] for entry in payload["category_totals"]} == {"Food", "Gambling", "Savings"}


def test_only_extreme_badge_pulses() -> None:
    assert insights.risk_badge("Extremely High Risk")["pulse"] is True
    assert insights.risk_badge("High Risk")["pulse"] is False
