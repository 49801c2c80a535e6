"""Tests for period, quarter and dimension rollups.

The shared fixture spans four fiscal periods of 2025:
- 2025-01-31 (Fri)  -> 2025-M01
- 2025-02-01 (Sat)  -> 2025-M02
- 2025-02-28 (Fri)  -> 2025-M02
- 2025-03-10        -> 2025-M03
- 2025-03-29 (Sat)  -> 2025-M04
- 2025-04-02        -> 2025-M04
"""

import warnings

import pandas as pd
import pytest

from clearvue_core.exceptions import DataQualityError, EmptyAggregationWarning
from clearvue_core.sales.aggregate import (
    aggregate_by,
    aggregate_by_period,
    aggregate_by_product,
    aggregate_by_quarter,
    aggregate_by_quarter_region,
    aggregate_by_region,
    latest_period,
    summarize,
    to_records,
    top_n,
)
from clearvue_core.sales.api import get_rollup
from clearvue_core.sales.models import ROLLUP_MEASURES, RollupRecord


@pytest.fixture
def facts() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "record_id": [1, 2, 3, 4, 5, 6],
            "occurred_on": [
                "2025-01-31",
                "2025-02-01",
                "2025-02-28",
                "2025-03-29",
                "2025-04-02",
                "2025-03-10",
            ],
            "amount": [100.0, 50.0, 25.5, 200.0, "n/a", 10.0],
            "quantity": [1, 2, 1, 4, 3, None],
            "customer_id": ["C1", "C2", "C1", "C3", "C2", "C1"],
            "product_id": ["P1", "P2", "P1", "P3", "P2", "P2"],
            "region": ["R1", "R2", "R1", None, "R2", "R1"],
            "category": ["Drinks", "Food", "Drinks", "Food", "Food", "Drinks"],
        }
    )


class TestAggregateByPeriod:
    def test_periods_ascending(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_period(facts)
        assert out["fiscal_period"].tolist() == ["2025-M01", "2025-M02", "2025-M03", "2025-M04"]
        assert list(out.columns) == ["fiscal_period"] + ROLLUP_MEASURES

    def test_measures(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_period(facts).set_index("fiscal_period")
        assert out.loc["2025-M02", "total_revenue"] == pytest.approx(75.5)
        assert out.loc["2025-M02", "total_quantity"] == pytest.approx(3.0)
        assert out.loc["2025-M02", "transaction_count"] == 2
        assert out.loc["2025-M02", "average_transaction"] == pytest.approx(37.75)

    def test_non_numeric_amount_and_missing_quantity_count_as_zero(
        self, facts: pd.DataFrame
    ) -> None:
        out = aggregate_by_period(facts).set_index("fiscal_period")
        # "n/a" amount on 2025-04-02
        assert out.loc["2025-M04", "total_revenue"] == pytest.approx(200.0)
        assert out.loc["2025-M04", "transaction_count"] == 2
        assert out.loc["2025-M04", "average_transaction"] == pytest.approx(100.0)
        # missing quantity on 2025-03-10
        assert out.loc["2025-M03", "total_quantity"] == pytest.approx(0.0)

    def test_sum_across_periods_equals_single_group_total(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_period(facts)
        total = summarize(facts)
        assert out["total_revenue"].sum() == pytest.approx(total.total_revenue)
        assert out["total_quantity"].sum() == pytest.approx(total.total_quantity)
        assert out["transaction_count"].sum() == total.transaction_count
        assert total.total_revenue == pytest.approx(385.5)
        assert total.transaction_count == 6

    def test_period_range(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_period(facts, start="2025-M02", end=202503)
        assert out["fiscal_period"].tolist() == ["2025-M02", "2025-M03"]

    def test_invalid_dates_are_skipped_not_fatal(
        self, facts: pd.DataFrame, caplog: pytest.LogCaptureFixture
    ) -> None:
        bad = pd.concat(
            [facts, pd.DataFrame({"record_id": [7], "occurred_on": ["not a date"], "amount": [5]})],
            ignore_index=True,
        )
        with caplog.at_level("WARNING"):
            out = aggregate_by_period(bad)
        assert out["transaction_count"].sum() == 6
        assert "Skipping 1 of 7 facts" in caplog.text

    def test_sum_invariant_holds_with_invalid_dates(self, facts: pd.DataFrame) -> None:
        bad = pd.concat(
            [facts, pd.DataFrame({"record_id": [7], "occurred_on": [None], "amount": [5]})],
            ignore_index=True,
        )
        out = aggregate_by_period(bad)
        total = summarize(bad)
        assert total.transaction_count == out["transaction_count"].sum() == 6
        assert total.total_revenue == pytest.approx(out["total_revenue"].sum())
        assert total.total_revenue == pytest.approx(385.5)

    def test_trust_stored_period(self, facts: pd.DataFrame) -> None:
        facts = facts.assign(stored_period=["2025-M05", None, "garbage", None, None, 202501])
        out = aggregate_by_period(facts, trust_stored_period=True).set_index("fiscal_period")
        # row 1 moves to M05, row 6 to M01, row 3 falls back to its date (M02)
        assert out.loc["2025-M05", "total_revenue"] == pytest.approx(100.0)
        assert out.loc["2025-M01", "total_revenue"] == pytest.approx(10.0)
        assert out.loc["2025-M02", "total_revenue"] == pytest.approx(75.5)
        assert "2025-M03" not in out.index

    def test_stored_period_ignored_by_default(self, facts: pd.DataFrame) -> None:
        facts = facts.assign(stored_period="2030-M01")
        out = aggregate_by_period(facts)
        assert "2030-M01" not in out["fiscal_period"].tolist()

    def test_empty_input_warns_and_returns_empty_frame(self) -> None:
        with pytest.warns(EmptyAggregationWarning):
            out = aggregate_by_period([])
        assert out.empty
        assert list(out.columns) == ["fiscal_period"] + ROLLUP_MEASURES


class TestAggregateByQuarter:
    def test_quarters(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_quarter(facts)
        assert out["fiscal_quarter"].tolist() == ["2025-Q1", "2025-Q2"]
        assert out["total_revenue"].tolist() == pytest.approx([185.5, 200.0])
        assert out["transaction_count"].tolist() == [4, 2]

    def test_last_saturday_of_march_is_second_quarter(self) -> None:
        out = aggregate_by_quarter([{"occurred_on": "2025-03-29", "amount": 1.0}])
        assert out["fiscal_quarter"].tolist() == ["2025-Q2"]


class TestDimensionRollups:
    def test_region_with_unknown_and_customer_count(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_region(facts).set_index("region")
        assert out.index.tolist() == ["R1", "R2", "Unknown"]
        assert out.loc["R1", "total_revenue"] == pytest.approx(135.5)
        assert out.loc["R1", "customer_count"] == 1
        assert out.loc["Unknown", "total_revenue"] == pytest.approx(200.0)

    def test_product(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_product(facts).set_index("product_id")
        assert out.loc["P2", "total_revenue"] == pytest.approx(60.0)
        assert out.loc["P2", "transaction_count"] == 3

    def test_pass_through_column(self, facts: pd.DataFrame) -> None:
        out = aggregate_by(facts, "category").set_index("category")
        assert out.loc["Drinks", "total_revenue"] == pytest.approx(135.5)
        assert out.loc["Food", "total_revenue"] == pytest.approx(250.0)

    def test_unknown_column_raises(self, facts: pd.DataFrame) -> None:
        with pytest.raises(DataQualityError):
            aggregate_by(facts, "colour")

    def test_quarter_region_order(self, facts: pd.DataFrame) -> None:
        out = aggregate_by_quarter_region(facts)
        pairs = list(zip(out["fiscal_quarter"], out["region"]))
        assert pairs == [
            ("2025-Q1", "R1"),
            ("2025-Q1", "R2"),
            ("2025-Q2", "Unknown"),
            ("2025-Q2", "R2"),
        ]


class TestTopN:
    @pytest.fixture
    def tied(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "occurred_on": ["2025-01-10"] * 4,
                "amount": [100.0, 100.0, 50.0, 100.0],
                "product_id": ["PB", "PA", "PC", "PD"],
            }
        )

    def test_ties_break_by_key(self, tied: pd.DataFrame) -> None:
        out = top_n(aggregate_by_product(tied), 3)
        assert out["product_id"].tolist() == ["PA", "PB", "PD"]

    def test_repeated_calls_agree(self, tied: pd.DataFrame) -> None:
        first = get_rollup(tied, "product", n=2)
        second = get_rollup(tied.iloc[::-1], "product", n=2)
        pd.testing.assert_frame_equal(first, second)

    def test_negative_n_raises(self, facts: pd.DataFrame) -> None:
        with pytest.raises(ValueError):
            top_n(aggregate_by_product(facts), -1)


class TestGetRollup:
    def test_invalid_grain(self, facts: pd.DataFrame) -> None:
        with pytest.raises(ValueError, match="Invalid grain"):
            get_rollup(facts, grain="week")

    def test_customer_grain(self, facts: pd.DataFrame) -> None:
        out = get_rollup(facts, grain="customer", n=1)
        assert out["customer_id"].tolist() == ["C3"]

    def test_segment_grain(self, facts: pd.DataFrame) -> None:
        out = get_rollup(facts, grain="segment")
        assert set(out["segment"]) == {"Low Value"}


def test_latest_period(facts: pd.DataFrame) -> None:
    assert latest_period(facts).label == "2025-M04"
    assert latest_period([]) is None


def test_to_records_preserves_order(facts: pd.DataFrame) -> None:
    records = to_records(aggregate_by_period(facts))
    assert [r.key for r in records] == ["2025-M01", "2025-M02", "2025-M03", "2025-M04"]
    assert records[1].average_transaction == pytest.approx(37.75)


def test_empty_group_average_is_zero() -> None:
    assert RollupRecord(key="2025-M01").average_transaction == 0.0


def test_non_empty_rollup_does_not_warn(facts: pd.DataFrame) -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error", EmptyAggregationWarning)
        aggregate_by_period(facts)
        aggregate_by_region(facts)
