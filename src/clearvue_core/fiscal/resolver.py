"""Fiscal calendar resolution: calendar date -> fiscal period.

A fiscal month runs from the Saturday after the previous month's last Friday
through the last Friday of the month itself (both inclusive). In the common
case that opening Saturday is simply the last Saturday of the previous month.
When the previous month ends on a Friday its last Saturday falls *before* its
last Friday, so the window opens on the 1st instead; this keeps consecutive
windows contiguous and non-overlapping.

Key facts for 2025 (useful when reading tests):
- Jan 31 2025 is a Friday: last day of 2025-M01.
- Feb 1 2025 is a Saturday: first day of 2025-M02.
- Feb 28 2025 is a Friday: last day of 2025-M02.
- Mar 29 2025 is the last Saturday of March: first day of 2025-M04.
- Dec 27 2025 is the last Saturday of December: first day of 2026-M01.

Examples:
    >>> resolve_period("2025-03-29").label
    '2025-M04'
    >>> period_boundaries(FiscalPeriod(2025, 4))
    PeriodWindow(start=datetime.date(2025, 3, 29), end=datetime.date(2025, 4, 25))
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Any

import numpy as np
import pandas as pd

from clearvue_core.exceptions import InconsistentBoundaryError, InvalidDateError
from clearvue_core.fiscal.periods import FiscalPeriod, FiscalQuarter, PeriodWindow

logger = logging.getLogger(__name__)

FRIDAY = 4
SATURDAY = 5


def to_date(value: Any) -> date:
    """Coerce a transaction date to a calendar date.

    Accepts ``date``, ``datetime``/``pandas.Timestamp`` (time-of-day dropped),
    ``numpy.datetime64`` and ISO-like strings.

    Args:
        value: Raw date value.

    Returns:
        The calendar date.

    Raises:
        InvalidDateError: If the value is missing or cannot be parsed.

    Examples:
        >>> to_date("2025-01-31T18:45:00")
        datetime.date(2025, 1, 31)
    """
    if value is None or value is pd.NaT:
        raise InvalidDateError("Missing transaction date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, np.datetime64):
        ts = pd.Timestamp(value)
        if ts is pd.NaT:
            raise InvalidDateError("Missing transaction date")
        return ts.date()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidDateError("Missing transaction date")
        try:
            ts = pd.to_datetime(text)
        except (ValueError, TypeError, OverflowError) as e:
            raise InvalidDateError(f"Unparseable date {value!r}: {e}") from e
        if ts is pd.NaT:
            raise InvalidDateError(f"Unparseable date {value!r}")
        return ts.date()
    raise InvalidDateError(f"Unsupported date value {value!r}")


def last_friday(year: int, month: int) -> date:
    """Friday on or before the last calendar day of the month."""
    last = date(year, month, calendar.monthrange(year, month)[1])
    return last - timedelta(days=(last.weekday() - FRIDAY) % 7)


def last_saturday(year: int, month: int) -> date:
    """Saturday on or before the last calendar day of the month."""
    last = date(year, month, calendar.monthrange(year, month)[1])
    return last - timedelta(days=(last.weekday() - SATURDAY) % 7)


@lru_cache(maxsize=2048)
def _window(year: int, month: int) -> PeriodWindow:
    prev = FiscalPeriod(year, month).previous()
    start = last_saturday(prev.year, prev.month)
    prev_end = last_friday(prev.year, prev.month)
    if start <= prev_end:
        # previous month ended on a Friday
        start = prev_end + timedelta(days=1)
    end = last_friday(year, month)

    if start.weekday() != SATURDAY or end.weekday() != FRIDAY or start > end:
        raise InconsistentBoundaryError(
            f"Malformed window for {year:04d}-M{month:02d}: {start} .. {end}"
        )
    return PeriodWindow(start=start, end=end)


def period_boundaries(period: FiscalPeriod | str | int) -> PeriodWindow:
    """Return the inclusive Saturday..Friday window of a fiscal period.

    Args:
        period: FiscalPeriod or anything ``FiscalPeriod.parse`` accepts.

    Returns:
        PeriodWindow with ``start`` (Saturday) and ``end`` (Friday).
    """
    p = FiscalPeriod.parse(period)
    return _window(p.year, p.month)


def resolve_period(value: Any) -> FiscalPeriod:
    """Assign a calendar date to its fiscal period.

    The window of the calendar month containing the date is computed once.
    A date before it belongs to the previous period, a date after it to the
    next one; by contiguity the adjacent window always contains the date.

    Args:
        value: Transaction date (see ``to_date`` for accepted forms).

    Returns:
        The FiscalPeriod containing the date.

    Raises:
        InvalidDateError: If the date is missing or unparseable, or its fiscal
            window would reach outside ``date.min .. date.max``.
        InconsistentBoundaryError: If the adjacent window does not contain the date.
    """
    d = to_date(value)
    period = FiscalPeriod(d.year, d.month)
    try:
        window = period_boundaries(period)
        if window.contains(d):
            return period
        candidate = period.previous() if d < window.start else period.next()
        candidate_window = period_boundaries(candidate)
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(f"{d} has no fiscal window within the supported date range") from e

    if not candidate_window.contains(d):
        raise InconsistentBoundaryError(
            f"{d} is outside {period.label} and outside adjacent {candidate.label}"
        )
    return candidate


def quarter_of(period: FiscalPeriod | str | int) -> FiscalQuarter:
    """Fiscal quarter of a period: ``ceil(month / 3)``."""
    return FiscalPeriod.parse(period).quarter


def next_period(period: FiscalPeriod | str | int) -> FiscalPeriod:
    return FiscalPeriod.parse(period).next()


def iter_periods(
    start: FiscalPeriod | str | int,
    end: FiscalPeriod | str | int,
) -> Iterator[FiscalPeriod]:
    """Yield fiscal periods from start to end, both inclusive."""
    cur = FiscalPeriod.parse(start)
    stop = FiscalPeriod.parse(end)
    while cur <= stop:
        yield cur
        cur = cur.next()


def check_contiguity(
    start: FiscalPeriod | str | int,
    end: FiscalPeriod | str | int,
) -> int:
    """Verify that windows from start to end are contiguous.

    Args:
        start: First period to check.
        end: Last period to check (its successor is checked against it too).

    Returns:
        Number of period boundaries checked.

    Raises:
        InconsistentBoundaryError: On the first gap or overlap found.
    """
    checked = 0
    for period in iter_periods(start, end):
        window = period_boundaries(period)
        following = period_boundaries(period.next())
        if window.next_start() != following.start:
            raise InconsistentBoundaryError(
                f"{period.label} ends {window.end} but {period.next().label} "
                f"starts {following.start}"
            )
        checked += 1
    logger.debug("Checked %d fiscal window boundaries from %s to %s", checked, start, end)
    return checked


def resolve_periods(values: pd.Series) -> pd.Series:
    """Resolve a Series of dates to period labels.

    Each distinct value is resolved once. Values that cannot be parsed map to
    ``None`` rather than raising, so callers can decide what to do with them.

    Args:
        values: Series of raw transaction dates.

    Returns:
        Object Series of ``YYYY-Mmm`` labels (or None), aligned to ``values``.
    """
    cache: dict[Any, str | None] = {}
    labels: list[str | None] = []
    for raw in values:
        if not isinstance(raw, str) and pd.isna(raw):
            labels.append(None)
            continue
        if raw not in cache:
            try:
                cache[raw] = resolve_period(raw).label
            except InvalidDateError:
                cache[raw] = None
        labels.append(cache[raw])
    return pd.Series(labels, index=values.index, dtype="object")
