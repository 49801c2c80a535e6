"""Fiscal calendar domain module.

Resolves calendar dates to fiscal periods (Saturday-to-Friday months offset
from the calendar month) and derives quarters and period windows.

Example:
    >>> from clearvue_core.fiscal import resolve_period, period_boundaries
    >>>
    >>> period = resolve_period("2025-03-29")
    >>> period.label
    '2025-M04'
    >>> period.quarter.label
    '2025-Q2'
"""

from clearvue_core.fiscal.periods import FiscalPeriod, FiscalQuarter, PeriodWindow
from clearvue_core.fiscal.resolver import (
    check_contiguity,
    iter_periods,
    next_period,
    period_boundaries,
    quarter_of,
    resolve_period,
    resolve_periods,
    to_date,
)

__all__ = [
    "FiscalPeriod",
    "FiscalQuarter",
    "PeriodWindow",
    "check_contiguity",
    "iter_periods",
    "next_period",
    "period_boundaries",
    "quarter_of",
    "resolve_period",
    "resolve_periods",
    "to_date",
]
