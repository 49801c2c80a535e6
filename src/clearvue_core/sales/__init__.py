"""Sales domain module.

This module turns transaction facts into reporting rollups:

- **Period rollup** (grain="period"): one row per fiscal period (``2025-M03``).
- **Quarter rollup** (grain="quarter"): one row per fiscal quarter (``2025-Q1``).
- **Year to date**: ``aggregate_ytd`` through a caller-supplied as-of period.
- **Dimension rollups**: region (with distinct customers), product, customer,
  quarter x region, customer value segments.

Facts can be a DataFrame in any known export layout or an iterable of
``TransactionFact``; they are normalised on the way in.

Example:
    >>> from clearvue_core import DataPaths
    >>> from clearvue_core.sales import get_rollup, aggregate_ytd, load_facts
    >>>
    >>> paths = DataPaths.from_root("data")
    >>> facts = load_facts(paths)
    >>>
    >>> # Fiscal period rollup (default)
    >>> by_period = get_rollup(facts)
    >>>
    >>> # Top 10 products
    >>> products = get_rollup(facts, grain="product", n=10)
    >>>
    >>> # Year to date through March
    >>> ytd = aggregate_ytd(facts, "2025-M03")
"""

from clearvue_core.sales.aggregate import (
    aggregate_by,
    aggregate_by_period,
    aggregate_by_product,
    aggregate_by_quarter,
    aggregate_by_quarter_region,
    aggregate_by_region,
    aggregate_ytd,
    latest_period,
    summarize,
    to_records,
    top_n,
)
from clearvue_core.sales.api import GRAINS, get_rollup
from clearvue_core.sales.core import load_facts, read_facts_csv
from clearvue_core.sales.models import RollupRecord, TransactionFact, YTDRollup
from clearvue_core.sales.normalize import as_facts_frame, merge_sales_documents, normalize_facts
from clearvue_core.sales.segments import SalesOverview, sales_overview, segment_customers

__all__ = [
    "GRAINS",
    "RollupRecord",
    "SalesOverview",
    "TransactionFact",
    "YTDRollup",
    "aggregate_by",
    "aggregate_by_period",
    "aggregate_by_product",
    "aggregate_by_quarter",
    "aggregate_by_quarter_region",
    "aggregate_by_region",
    "aggregate_ytd",
    "as_facts_frame",
    "get_rollup",
    "latest_period",
    "load_facts",
    "merge_sales_documents",
    "normalize_facts",
    "read_facts_csv",
    "sales_overview",
    "segment_customers",
    "summarize",
    "to_records",
    "top_n",
]
