"""Record types and canonical column names for sales facts and rollups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from clearvue_core.fiscal.periods import FiscalPeriod

# Canonical fact columns
RECORD_ID = "record_id"
OCCURRED_ON = "occurred_on"
AMOUNT = "amount"
QUANTITY = "quantity"
CUSTOMER_ID = "customer_id"
PRODUCT_ID = "product_id"
REGION = "region"
STORED_PERIOD = "stored_period"

FACT_COLUMNS = [
    RECORD_ID,
    OCCURRED_ON,
    AMOUNT,
    QUANTITY,
    CUSTOMER_ID,
    PRODUCT_ID,
    REGION,
    STORED_PERIOD,
]

# Derived grouping keys
FISCAL_PERIOD = "fiscal_period"
FISCAL_QUARTER = "fiscal_quarter"

# Rollup measure columns, in output order
ROLLUP_MEASURES = [
    "total_revenue",
    "total_quantity",
    "transaction_count",
    "average_transaction",
]

UNKNOWN_KEY = "Unknown"


@dataclass(frozen=True)
class TransactionFact:
    """One sales line as delivered by the storage layer.

    Attributes:
        occurred_on: Transaction date (day granularity).
        amount: Line revenue. Usually non-negative; returns may be negative.
        quantity: Units sold.
        customer_id: Customer identifier.
        product_id: Product (inventory) code.
        stored_period: Previously computed period label, possibly stale or absent.
        record_id: Identifier used to address write-backs (document number).
        region: Customer region code, if known.
    """

    occurred_on: date | str
    amount: Decimal | float | None = None
    quantity: Decimal | float | int | None = None
    customer_id: str | None = None
    product_id: str | None = None
    stored_period: str | int | None = None
    record_id: Any = None
    region: str | None = None


@dataclass(frozen=True)
class RollupRecord:
    """Aggregate over one grouping key.

    Attributes:
        key: Grouping key label (period, quarter, region, product...).
        total_revenue: Sum of amounts.
        total_quantity: Sum of quantities.
        transaction_count: Number of facts in the group.
    """

    key: str
    total_revenue: float = 0.0
    total_quantity: float = 0.0
    transaction_count: int = 0

    @property
    def average_transaction(self) -> float:
        """Revenue per transaction; 0 for an empty group."""
        if self.transaction_count == 0:
            return 0.0
        return self.total_revenue / self.transaction_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "total_revenue": self.total_revenue,
            "total_quantity": self.total_quantity,
            "transaction_count": self.transaction_count,
            "average_transaction": self.average_transaction,
        }


@dataclass(frozen=True)
class YTDRollup:
    """Year-to-date rollup through an as-of period.

    Attributes:
        year: Fiscal year covered.
        as_of: Last fiscal period included.
        months: Monthly sub-rollups in ascending period order.
        ytd_revenue: Revenue summed over ``months``.
        ytd_quantity: Quantity summed over ``months``.
        transaction_count: Facts summed over ``months``.
    """

    year: int
    as_of: FiscalPeriod
    months: list[RollupRecord] = field(default_factory=list)
    ytd_revenue: float = 0.0
    ytd_quantity: float = 0.0
    transaction_count: int = 0

    @property
    def is_empty(self) -> bool:
        """True when no facts fell inside the year-to-date range."""
        return not self.months

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "as_of": self.as_of.label,
            "ytd_revenue": self.ytd_revenue,
            "ytd_quantity": self.ytd_quantity,
            "transaction_count": self.transaction_count,
            "month_count": len(self.months),
            "months": [m.to_dict() for m in self.months],
        }
