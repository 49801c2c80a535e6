"""ClearVue Core - fiscal calendar, sales rollups and period reconciliation.

This package provides the computational core behind ClearVue sales
reporting:

- **Fiscal calendar**: calendar date -> fiscal period (Saturday-to-Friday
  months), quarters and period windows
- **Rollups**: period, quarter, year-to-date and dimension summaries over
  transaction facts
- **Reconciliation**: recompute stored period labels and write back the
  ones that are stale

Module Structure:
    clearvue_core.fiscal: Period types and the calendar resolver
    clearvue_core.sales: Fact normalisation, rollups, segments and marts
    clearvue_core.reconcile: Correction detection and write-back sinks
    clearvue_core.config: DataPaths configuration
    clearvue_core.cli: Command line entry point

Quick Start:
    >>> from clearvue_core import DataPaths
    >>> from clearvue_core.fiscal import resolve_period
    >>> from clearvue_core.sales import load_facts, get_rollup, aggregate_ytd
    >>> from clearvue_core.reconcile import reconcile
    >>>
    >>> resolve_period("2025-03-29").label
    '2025-M04'
    >>>
    >>> paths = DataPaths.from_root("data")
    >>> facts = load_facts(paths)
    >>> by_period = get_rollup(facts, grain="period")
    >>> ytd = aggregate_ytd(facts, "2025-M06")
    >>> result = reconcile(facts)
    >>> print(len(result.corrections))

Grain Reference:
    Sales:
        - period: fiscal_period (YYYY-Mmm)
        - quarter: fiscal_quarter (YYYY-Qn)
        - region / product / customer: one row per key
        - quarter_region: fiscal_quarter x region
        - segment: one row per customer with its value segment
"""

__version__ = "0.1.0"

from clearvue_core.config import DataPaths
from clearvue_core.exceptions import (
    ClearVueError,
    ConfigError,
    DataQualityError,
    EmptyAggregationWarning,
    InconsistentBoundaryError,
    InvalidDateError,
    InvalidPeriodError,
)

__all__ = [
    "ClearVueError",
    "ConfigError",
    "DataPaths",
    "DataQualityError",
    "EmptyAggregationWarning",
    "InconsistentBoundaryError",
    "InvalidDateError",
    "InvalidPeriodError",
    "__version__",
]
