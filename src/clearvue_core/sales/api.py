"""Public API for sales rollups.

This module provides the main entry point for rolling facts up at a named grain.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import pandas as pd

from clearvue_core.sales.aggregate import (
    aggregate_by,
    aggregate_by_period,
    aggregate_by_product,
    aggregate_by_quarter,
    aggregate_by_quarter_region,
    aggregate_by_region,
    top_n,
)
from clearvue_core.sales.models import CUSTOMER_ID
from clearvue_core.sales.segments import segment_customers

logger = logging.getLogger(__name__)

GRAINS = ("period", "quarter", "region", "product", "customer", "quarter_region", "segment")


def get_rollup(
    facts: Any,
    grain: str = "period",
    *,
    n: Optional[int] = None,
    trust_stored_period: bool = False,
    segment: Optional[str] = None,
) -> pd.DataFrame:
    """Roll facts up at the requested grain.

    Args:
        facts: Facts frame or iterable of facts.
        grain: Rollup grain:
            - "period": one row per fiscal period, ascending (default).
            - "quarter": one row per fiscal quarter, ascending.
            - "region": one row per region, with distinct customer count.
            - "product": one row per product.
            - "customer": one row per customer.
            - "quarter_region": one row per (quarter, region).
            - "segment": customers with their value segment.
        n: If given, keep only the top ``n`` rows by revenue (ties by key).
            Ignored for "quarter_region" and "segment", which have their own order.
        trust_stored_period: Use stored period labels where they parse.
        segment: For grain="segment", keep only this segment.

    Returns:
        DataFrame at the requested grain.

    Raises:
        ValueError: If grain is not one of GRAINS.

    Examples:
        >>> df = get_rollup(facts)                         # by fiscal period
        >>> df = get_rollup(facts, grain="product", n=10)  # top 10 products
    """
    if grain not in GRAINS:
        raise ValueError(f"Invalid grain '{grain}'. Must be one of {', '.join(GRAINS)}.")

    if grain == "period":
        df = aggregate_by_period(facts, trust_stored_period=trust_stored_period)
    elif grain == "quarter":
        df = aggregate_by_quarter(facts, trust_stored_period=trust_stored_period)
    elif grain == "region":
        df = aggregate_by_region(facts)
    elif grain == "product":
        df = aggregate_by_product(facts)
    elif grain == "customer":
        df = aggregate_by(facts, CUSTOMER_ID)
    elif grain == "quarter_region":
        return aggregate_by_quarter_region(facts, trust_stored_period=trust_stored_period)
    else:
        return segment_customers(facts, segment)

    if n is not None:
        logger.debug("Keeping top %d of %d %s rows", n, len(df), grain)
        df = top_n(df, n)
    return df
