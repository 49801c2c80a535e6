"""Customer value segments and the sales overview report."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
import pandas as pd

from clearvue_core.exceptions import EmptyAggregationWarning
from clearvue_core.sales.aggregate import (
    aggregate_by_period,
    aggregate_by_product,
    aggregate_by_region,
    prepare_facts,
    top_n,
)
from clearvue_core.sales.models import AMOUNT, CUSTOMER_ID, FISCAL_PERIOD, REGION, UNKNOWN_KEY

logger = logging.getLogger(__name__)

HIGH_VALUE = "High Value"
MEDIUM_VALUE = "Medium Value"
LOW_VALUE = "Low Value"

# Lower revenue bound (inclusive) per segment, highest first
SEGMENT_THRESHOLDS = [
    (HIGH_VALUE, 50_000.0),
    (MEDIUM_VALUE, 10_000.0),
]
SEGMENTS = [HIGH_VALUE, MEDIUM_VALUE, LOW_VALUE]

SEGMENT_COLUMNS = [
    CUSTOMER_ID,
    "total_revenue",
    "transaction_count",
    "average_order_value",
    REGION,
    "segment",
]


def segment_customers(facts: Any, segment: Optional[str] = None) -> pd.DataFrame:
    """Classify customers by total revenue.

    Customers with revenue >= 50 000 are "High Value", >= 10 000 "Medium
    Value", everything else "Low Value". Facts with no customer are ignored.

    Args:
        facts: Facts frame or iterable of facts.
        segment: Optional segment name to keep.

    Returns:
        DataFrame with one row per customer, sorted by revenue descending
        (ties by customer id).

    Raises:
        ValueError: If ``segment`` is not a known segment name.
    """
    if segment is not None and segment not in SEGMENTS:
        raise ValueError(f"Unknown segment '{segment}'. Must be one of {SEGMENTS}.")

    frame = prepare_facts(facts)
    frame = frame[frame[CUSTOMER_ID].notna()]
    if frame.empty:
        return pd.DataFrame(columns=SEGMENT_COLUMNS)

    out = (
        frame.groupby(CUSTOMER_ID)
        .agg(
            total_revenue=(AMOUNT, "sum"),
            transaction_count=(AMOUNT, "count"),
            average_order_value=(AMOUNT, "mean"),
            region=(REGION, "first"),
        )
        .reset_index()
    )
    out[REGION] = out[REGION].fillna(UNKNOWN_KEY)
    out["segment"] = np.select(
        [out["total_revenue"] >= bound for _, bound in SEGMENT_THRESHOLDS],
        [name for name, _ in SEGMENT_THRESHOLDS],
        default=LOW_VALUE,
    )

    if segment is not None:
        out = out[out["segment"] == segment]

    out = out.sort_values(
        ["total_revenue", CUSTOMER_ID], ascending=[False, True], kind="mergesort"
    ).reset_index(drop=True)
    logger.info("Segmented %d customers", len(out))
    return out[SEGMENT_COLUMNS]


@dataclass
class SalesOverview:
    """Headline report: recent periods, best regions, best products.

    Attributes:
        periods: Latest fiscal periods, newest first.
        regions: Top regions by revenue.
        top_products: Top products by revenue.
        summary: Row counts of the three tables.
    """

    periods: pd.DataFrame
    regions: pd.DataFrame
    top_products: pd.DataFrame
    summary: dict


def sales_overview(
    facts: Any,
    *,
    period_count: int = 6,
    region_count: int = 5,
    product_count: int = 5,
) -> SalesOverview:
    """Build the overview report in one pass over the facts."""
    frame = prepare_facts(facts)
    if frame.empty:
        warnings.warn(
            "No facts to aggregate for sales overview", EmptyAggregationWarning, stacklevel=2
        )
    with warnings.catch_warnings():
        # one empty input should not warn three times
        warnings.simplefilter("ignore", EmptyAggregationWarning)
        periods = aggregate_by_period(frame)
        regions = aggregate_by_region(frame)
        products = aggregate_by_product(frame)

    periods = (
        periods.sort_values(FISCAL_PERIOD, ascending=False)
        .head(period_count)
        .reset_index(drop=True)
    )
    regions = top_n(regions, region_count, REGION)
    products = top_n(products, product_count)

    return SalesOverview(
        periods=periods,
        regions=regions,
        top_products=products,
        summary={
            "total_periods": len(periods),
            "total_regions": len(regions),
            "total_products": len(products),
        },
    )
