"""Rollups: transaction facts -> period, quarter, YTD and dimension summaries.

Every rollup is recomputed from facts on each call. Tabular rollups return a
DataFrame with the grouping key first, then ``total_revenue``,
``total_quantity``, ``transaction_count`` and ``average_transaction``.

The fiscal period of a fact is resolved from its date. Callers that trust the
``stored_period`` already on their facts can pass ``trust_stored_period=True``
to use it where it parses, falling back to the date where it does not.

Missing or non-numeric amounts and quantities count as zero. Facts whose
period cannot be determined are left out of period-based rollups (with a
warning in the log) instead of failing the whole aggregation.

Examples:
    >>> facts = pd.DataFrame({
    ...     "occurred_on": ["2025-01-31", "2025-02-01"],
    ...     "amount": [100.0, 50.0],
    ...     "quantity": [1, 2],
    ... })
    >>> aggregate_by_period(facts)["fiscal_period"].tolist()
    ['2025-M01', '2025-M02']
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Optional

import numpy as np
import pandas as pd

from clearvue_core.exceptions import DataQualityError, EmptyAggregationWarning, InvalidPeriodError
from clearvue_core.fiscal.periods import FiscalPeriod
from clearvue_core.fiscal.resolver import resolve_periods
from clearvue_core.sales.models import (
    AMOUNT,
    CUSTOMER_ID,
    FISCAL_PERIOD,
    FISCAL_QUARTER,
    OCCURRED_ON,
    PRODUCT_ID,
    QUANTITY,
    REGION,
    ROLLUP_MEASURES,
    STORED_PERIOD,
    UNKNOWN_KEY,
    RollupRecord,
    YTDRollup,
)
from clearvue_core.sales.normalize import as_facts_frame

logger = logging.getLogger(__name__)


def _warn_empty(what: str) -> None:
    warnings.warn(f"No facts to aggregate for {what}", EmptyAggregationWarning, stacklevel=3)


def _safe_label(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    try:
        return FiscalPeriod.parse(value).label
    except InvalidPeriodError:
        return None


def prepare_facts(facts: Any) -> pd.DataFrame:
    """Canonical facts frame with amount and quantity coerced to numbers (NaN -> 0)."""
    frame = as_facts_frame(facts).copy()
    for col in (AMOUNT, QUANTITY):
        frame[col] = pd.to_numeric(frame[col], errors="coerce").fillna(0.0).astype(float)
    return frame


def with_periods(frame: pd.DataFrame, trust_stored_period: bool = False) -> pd.DataFrame:
    """Attach ``fiscal_period`` and ``fiscal_quarter`` labels to prepared facts.

    Args:
        frame: Output of ``prepare_facts``.
        trust_stored_period: Use ``stored_period`` where it parses instead of
            recomputing from the date.

    Returns:
        Copy of the frame restricted to facts whose period is known.
    """
    if trust_stored_period:
        periods = frame[STORED_PERIOD].map(_safe_label).astype("object")
        missing = periods.isna()
        if missing.any():
            periods = periods.combine_first(resolve_periods(frame.loc[missing, OCCURRED_ON]))
    else:
        periods = resolve_periods(frame[OCCURRED_ON])

    unresolved = periods.isna()
    if unresolved.any():
        logger.warning(
            "Skipping %d of %d facts with a missing or unparseable date",
            int(unresolved.sum()),
            len(frame),
        )

    out = frame.loc[~unresolved].copy()
    out[FISCAL_PERIOD] = periods[~unresolved].astype(str)
    out[FISCAL_QUARTER] = out[FISCAL_PERIOD].map(lambda p: FiscalPeriod.parse(p).quarter.label)
    return out


def _empty_rollup(keys: list[str], extra: Optional[list[str]] = None) -> pd.DataFrame:
    return pd.DataFrame(columns=keys + ROLLUP_MEASURES + (extra or []))


def _rollup(frame: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """Group prepared facts by ``keys`` and compute the rollup measures."""
    if frame.empty:
        return _empty_rollup(keys)
    out = (
        frame.groupby(keys, sort=True)
        .agg(
            total_revenue=(AMOUNT, "sum"),
            total_quantity=(QUANTITY, "sum"),
            transaction_count=(AMOUNT, "count"),
        )
        .reset_index()
    )
    out["transaction_count"] = out["transaction_count"].astype(int)
    out["average_transaction"] = np.where(
        out["transaction_count"] > 0,
        out["total_revenue"] / out["transaction_count"].clip(lower=1),
        0.0,
    )
    return out[keys + ROLLUP_MEASURES]


def _fill_key(frame: pd.DataFrame, key: str) -> pd.DataFrame:
    frame = frame.copy()
    frame[key] = frame[key].map(lambda v: UNKNOWN_KEY if v is None or pd.isna(v) else str(v))
    return frame


def aggregate_by_period(
    facts: Any,
    *,
    start: FiscalPeriod | str | int | None = None,
    end: FiscalPeriod | str | int | None = None,
    trust_stored_period: bool = False,
) -> pd.DataFrame:
    """Roll facts up by fiscal period, ascending.

    Args:
        facts: Facts frame or iterable of facts.
        start: Optional first period to include.
        end: Optional last period to include.
        trust_stored_period: See module docstring.

    Returns:
        DataFrame keyed by ``fiscal_period``.
    """
    frame = with_periods(prepare_facts(facts), trust_stored_period)
    if start is not None:
        frame = frame[frame[FISCAL_PERIOD] >= FiscalPeriod.parse(start).label]
    if end is not None:
        frame = frame[frame[FISCAL_PERIOD] <= FiscalPeriod.parse(end).label]

    out = _rollup(frame, [FISCAL_PERIOD])
    if out.empty:
        _warn_empty("period rollup")
    logger.info("Aggregated %d facts into %d fiscal periods", len(frame), len(out))
    return out


def aggregate_by_quarter(facts: Any, *, trust_stored_period: bool = False) -> pd.DataFrame:
    """Roll facts up by fiscal quarter, ascending."""
    frame = with_periods(prepare_facts(facts), trust_stored_period)
    out = _rollup(frame, [FISCAL_QUARTER])
    if out.empty:
        _warn_empty("quarter rollup")
    logger.info("Aggregated %d facts into %d fiscal quarters", len(frame), len(out))
    return out


def aggregate_ytd(
    facts: Any,
    as_of: FiscalPeriod | str | int,
    *,
    trust_stored_period: bool = False,
) -> YTDRollup:
    """Year-to-date rollup from the first period of ``as_of``'s year through ``as_of``.

    Args:
        facts: Facts frame or iterable of facts.
        as_of: Last fiscal period to include. Always supplied by the caller;
            use ``latest_period`` to default to the newest period in the data.
        trust_stored_period: See module docstring.

    Returns:
        YTDRollup. With no facts in range it has zero totals and no months.
    """
    as_of = FiscalPeriod.parse(as_of)
    frame = with_periods(prepare_facts(facts), trust_stored_period)
    first = FiscalPeriod(as_of.year, 1).label
    frame = frame[(frame[FISCAL_PERIOD] >= first) & (frame[FISCAL_PERIOD] <= as_of.label)]

    if frame.empty:
        _warn_empty(f"year to date {as_of.label}")
        return YTDRollup(year=as_of.year, as_of=as_of)

    months = to_records(_rollup(frame, [FISCAL_PERIOD]), FISCAL_PERIOD)
    logger.info("YTD %s: %d facts over %d periods", as_of.label, len(frame), len(months))
    return YTDRollup(
        year=as_of.year,
        as_of=as_of,
        months=months,
        ytd_revenue=float(sum(m.total_revenue for m in months)),
        ytd_quantity=float(sum(m.total_quantity for m in months)),
        transaction_count=int(sum(m.transaction_count for m in months)),
    )


def aggregate_by(facts: Any, key: str, *, trust_stored_period: bool = False) -> pd.DataFrame:
    """Roll facts up by any column, ascending by key.

    ``fiscal_period`` and ``fiscal_quarter`` are resolved as in the period and
    quarter rollups; other keys must be fact columns (e.g. ``product_id`` or a
    pass-through ``category``). Missing key values are grouped as ``"Unknown"``.

    Raises:
        DataQualityError: If ``key`` is not a column of the facts.
    """
    if key == FISCAL_PERIOD:
        return aggregate_by_period(facts, trust_stored_period=trust_stored_period)
    if key == FISCAL_QUARTER:
        return aggregate_by_quarter(facts, trust_stored_period=trust_stored_period)

    frame = prepare_facts(facts)
    if key not in frame.columns:
        raise DataQualityError(f"Cannot group by '{key}': not a fact column {list(frame.columns)}")
    out = _rollup(_fill_key(frame, key), [key])
    if out.empty:
        _warn_empty(f"{key} rollup")
    return out


def aggregate_by_product(facts: Any) -> pd.DataFrame:
    return aggregate_by(facts, PRODUCT_ID)


def aggregate_by_region(facts: Any) -> pd.DataFrame:
    """Roll facts up by region, with the number of distinct customers per region."""
    frame = _fill_key(prepare_facts(facts), REGION)
    out = _rollup(frame, [REGION])
    if out.empty:
        _warn_empty("region rollup")
        return _empty_rollup([REGION], ["customer_count"])
    customers = frame.groupby(REGION)[CUSTOMER_ID].nunique().rename("customer_count")
    return out.merge(customers.reset_index(), on=REGION, how="left")


def aggregate_by_quarter_region(
    facts: Any,
    *,
    trust_stored_period: bool = False,
) -> pd.DataFrame:
    """Roll facts up by (quarter, region).

    Sorted by quarter ascending, then revenue descending, then region.
    """
    frame = _fill_key(with_periods(prepare_facts(facts), trust_stored_period), REGION)
    out = _rollup(frame, [FISCAL_QUARTER, REGION])
    if out.empty:
        _warn_empty("quarter/region rollup")
        return out
    return out.sort_values(
        [FISCAL_QUARTER, "total_revenue", REGION],
        ascending=[True, False, True],
        kind="mergesort",
    ).reset_index(drop=True)


def top_n(rollup: pd.DataFrame, n: int, key: Optional[str] = None) -> pd.DataFrame:
    """Highest-revenue rows of a rollup.

    Sorted by ``total_revenue`` descending; equal revenues are ordered by the
    key ascending so repeated calls give the same order.

    Args:
        rollup: Any tabular rollup from this module.
        n: Number of rows to keep.
        key: Tie-break column (defaults to the rollup's first column).

    Returns:
        New DataFrame with at most ``n`` rows.

    Raises:
        ValueError: If n is negative.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    key = key or rollup.columns[0]
    return (
        rollup.sort_values(["total_revenue", key], ascending=[False, True], kind="mergesort")
        .head(n)
        .reset_index(drop=True)
    )


def summarize(facts: Any, *, trust_stored_period: bool = False) -> RollupRecord:
    """Single-group totals over the facts that the period rollups count.

    Facts whose period cannot be determined are left out, as in
    ``aggregate_by_period``, so the per-period totals always sum to this one.
    """
    frame = with_periods(prepare_facts(facts), trust_stored_period)
    if frame.empty:
        _warn_empty("summary")
    return RollupRecord(
        key="ALL",
        total_revenue=float(frame[AMOUNT].sum()),
        total_quantity=float(frame[QUANTITY].sum()),
        transaction_count=int(len(frame)),
    )


def latest_period(facts: Any, *, trust_stored_period: bool = False) -> Optional[FiscalPeriod]:
    """Newest fiscal period present in the facts, or None if there are none."""
    frame = with_periods(prepare_facts(facts), trust_stored_period)
    if frame.empty:
        return None
    return FiscalPeriod.parse(frame[FISCAL_PERIOD].max())


def to_records(rollup: pd.DataFrame, key: Optional[str] = None) -> list[RollupRecord]:
    """Convert a tabular rollup to RollupRecord objects, preserving row order."""
    key = key or rollup.columns[0]
    return [
        RollupRecord(
            key=str(row[key]),
            total_revenue=float(row["total_revenue"]),
            total_quantity=float(row["total_quantity"]),
            transaction_count=int(row["transaction_count"]),
        )
        for _, row in rollup.iterrows()
    ]
