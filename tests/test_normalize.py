"""Tests for input normalisation (alias coalescing, number parsing, document merge)."""

from datetime import date

import pandas as pd
import pytest

from clearvue_core.exceptions import DataQualityError
from clearvue_core.sales.models import FACT_COLUMNS, TransactionFact
from clearvue_core.sales.normalize import (
    as_facts_frame,
    merge_sales_documents,
    normalize_facts,
    strip_invisibles,
    to_float,
    to_snake,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1,234.56", 1234.56),
        ("1.234,56", 1234.56),
        ("(1,234.56)", -1234.56),
        ("R 99,50", 99.5),
        ("$ 12", 12.0),
        ("-3.5", -3.5),
        ("1e5", 100000.0),
        ("2.5E-3", 0.0025),
        ("(1.5e2)", -150.0),
        (7, 7.0),
    ],
)
def test_to_float_parses_export_formats(raw: object, expected: float) -> None:
    assert to_float(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "n/a", float("nan"), True, "1e999"])
def test_to_float_returns_none_for_non_numbers(raw: object) -> None:
    assert to_float(raw) is None


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("TOTAL_LINE_PRICE", "total_line_price"),
        ("calculated_FIN_PERIOD", "calculated_fin_period"),
        ("occurredOn", "occurred_on"),
        ("Doc Number", "doc_number"),
    ],
)
def test_to_snake(header: str, expected: str) -> None:
    assert to_snake(header) == expected


def test_strip_invisibles() -> None:
    assert strip_invisibles("  R01\u200b\u00a0") == "R01"
    assert strip_invisibles(None) is None


class TestNormalizeFacts:
    """Alias coalescing onto the canonical fact columns."""

    @pytest.fixture
    def raw_export(self) -> pd.DataFrame:
        """Sales lines as exported by the legacy store, with both alias spellings."""
        return pd.DataFrame(
            {
                "DOC_NUMBER": ["A1", "A2"],
                "DOC_DATE": ["2025-01-31", "2025-02-01"],
                "TOTAL_LINE_PRICE": [100.0, None],
                "LINE_TOTAL": [999.0, 50.0],
                "QTY": ["1", "2"],
                "CUSTOMER_NUMBER": [101.0, 102.0],
                "INVENTORY_CODE": ["P1", "P2"],
                "calculated_FIN_PERIOD": [None, "2025-M02"],
                "FIN_PERIOD": [202501, 202501],
                "Category": ["Drinks", "Snacks"],
            }
        )

    def test_canonical_columns_first(self, raw_export: pd.DataFrame) -> None:
        out = normalize_facts(raw_export)
        assert list(out.columns[: len(FACT_COLUMNS)]) == FACT_COLUMNS
        assert "category" in out.columns

    def test_first_non_null_alias_wins(self, raw_export: pd.DataFrame) -> None:
        out = normalize_facts(raw_export)
        assert out["amount"].tolist() == [100.0, 50.0]
        assert out["quantity"].tolist() == [1.0, 2.0]
        assert out["stored_period"].tolist() == [202501, "2025-M02"]
        assert out["record_id"].tolist() == ["A1", "A2"]

    def test_identifiers_become_text(self, raw_export: pd.DataFrame) -> None:
        out = normalize_facts(raw_export)
        assert out["customer_id"].tolist() == ["101", "102"]
        assert out["region"].isna().all()

    def test_missing_keys_are_none(self) -> None:
        raw = pd.DataFrame({"date": ["2025-01-01", "2025-01-02"], "region": [float("nan"), "N"]})
        out = normalize_facts(raw)
        assert out["region"].dtype == object
        assert out["region"].tolist() == [None, "N"]
        assert out["product_id"].tolist() == [None, None]

    def test_unparseable_amount_becomes_nan(self) -> None:
        out = normalize_facts(pd.DataFrame({"date": ["2025-01-01"], "amount": ["n/a"]}))
        assert out["amount"].isna().all()

    def test_record_id_defaults_to_row_index(self) -> None:
        out = normalize_facts(pd.DataFrame({"occurred_on": ["2025-01-01", "2025-01-02"]}))
        assert out["record_id"].tolist() == [0, 1]

    def test_missing_date_and_period_raises(self) -> None:
        with pytest.raises(DataQualityError):
            normalize_facts(pd.DataFrame({"amount": [1.0]}))

    def test_empty_frame(self) -> None:
        out = normalize_facts(pd.DataFrame())
        assert out.empty
        assert list(out.columns) == FACT_COLUMNS


def test_as_facts_frame_from_records() -> None:
    facts = [
        TransactionFact(occurred_on=date(2025, 1, 31), amount=10.0, quantity=1, record_id="X"),
        {"occurred_on": "2025-02-01", "amount": "20", "customer_id": "C9"},
    ]
    out = as_facts_frame(facts)
    assert out["amount"].tolist() == [10.0, 20.0]
    assert out["record_id"].iloc[0] == "X"
    assert out["customer_id"].tolist() == [None, "C9"]


class TestMergeSalesDocuments:
    @pytest.fixture
    def headers(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "DOC_NUMBER": ["D1", "D2"],
                "DOC_DATE": ["2025-03-03", "2025-03-29"],
                "CUSTOMER_NUMBER": ["C1", "C2"],
                "FIN_PERIOD": [202503, 202503],
            }
        )

    @pytest.fixture
    def lines(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "DOC_NUMBER": ["D1", "D1", "D2", "D9"],
                "INVENTORY_CODE": ["P1", "P2", "P1", "P3"],
                "QUANTITY": [1, 2, 3, 4],
                "TOTAL_LINE_PRICE": [10.0, 20.0, 30.0, 40.0],
            }
        )

    def test_lines_without_header_are_dropped(
        self, headers: pd.DataFrame, lines: pd.DataFrame
    ) -> None:
        out = merge_sales_documents(headers, lines)
        assert len(out) == 3
        assert sorted(out["record_id"].unique().tolist()) == ["D1", "D2"]
        assert out["amount"].sum() == pytest.approx(60.0)

    def test_customer_region_is_joined(self, headers: pd.DataFrame, lines: pd.DataFrame) -> None:
        customers = pd.DataFrame({"CUSTOMER_NUMBER": ["C1"], "REGION_CODE": ["NORTH"]})
        out = merge_sales_documents(headers, lines, customers)
        regions = dict(zip(out["record_id"], out["region"]))
        assert regions["D1"] == "NORTH"
        assert regions["D2"] is None

    def test_missing_doc_number_raises(self, headers: pd.DataFrame) -> None:
        with pytest.raises(DataQualityError):
            merge_sales_documents(headers, pd.DataFrame({"QTY": [1]}))
