"""Tests for calendar date -> fiscal period resolution.

Weekday facts used below:
- Jan 31 2025 is a Friday, Feb 1 2025 a Saturday.
- Feb 28 2025 is a Friday, Mar 1 2025 a Saturday.
- Mar 28 2025 is the last Friday of March, Mar 29 2025 the last Saturday.
- Dec 26 2025 is the last Friday of December, Dec 27 2025 the last Saturday.
"""

from datetime import date, datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from clearvue_core.exceptions import InvalidDateError
from clearvue_core.fiscal.periods import FiscalPeriod, FiscalQuarter
from clearvue_core.fiscal.resolver import (
    check_contiguity,
    iter_periods,
    last_friday,
    last_saturday,
    next_period,
    period_boundaries,
    quarter_of,
    resolve_period,
    resolve_periods,
    to_date,
)


class TestResolvePeriod:
    """Concrete boundary dates in 2024-2026."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2025-01-31", "2025-M01"),
            ("2025-02-01", "2025-M02"),
            ("2025-02-27", "2025-M02"),
            ("2025-02-28", "2025-M02"),
            ("2025-03-01", "2025-M03"),
            ("2025-03-28", "2025-M03"),
            ("2025-03-29", "2025-M04"),
            ("2025-03-31", "2025-M04"),
            ("2025-12-26", "2025-M12"),
            ("2025-12-27", "2026-M01"),
            ("2025-12-31", "2026-M01"),
            ("2024-12-27", "2024-M12"),
            ("2024-12-28", "2025-M01"),
        ],
    )
    def test_boundary_dates(self, value: str, expected: str) -> None:
        assert resolve_period(value).label == expected

    def test_accepts_date_like_types(self) -> None:
        expected = FiscalPeriod(2025, 4)
        assert resolve_period(date(2025, 3, 29)) == expected
        assert resolve_period(datetime(2025, 3, 29, 23, 59)) == expected
        assert resolve_period(pd.Timestamp("2025-03-29 08:00")) == expected
        assert resolve_period(np.datetime64("2025-03-29")) == expected

    def test_time_of_day_is_ignored(self) -> None:
        assert resolve_period("2025-01-31T23:59:59").label == "2025-M01"

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", pd.NaT, 12345])
    def test_invalid_dates_raise(self, value: object) -> None:
        with pytest.raises(InvalidDateError):
            resolve_period(value)

    def test_date_without_representable_window_raises(self) -> None:
        """Year 1 January would need a window opening in year 0."""
        with pytest.raises(InvalidDateError):
            resolve_period(date(1, 1, 1))


class TestPeriodBoundaries:
    def test_april_2025(self) -> None:
        w = period_boundaries("2025-M04")
        assert w.start == date(2025, 3, 29)
        assert w.end == date(2025, 4, 25)

    def test_window_opens_on_first_when_previous_month_ends_friday(self) -> None:
        """January 2025 ends on a Friday, so February's window opens on Feb 1."""
        w = period_boundaries(FiscalPeriod(2025, 2))
        assert w.start == date(2025, 2, 1)
        assert w.end == date(2025, 2, 28)

    def test_january_window_starts_in_previous_year(self) -> None:
        w = period_boundaries(202501)
        assert w.start == date(2024, 12, 28)
        assert w.end == date(2025, 1, 31)
        assert w.days == 35

    def test_windows_run_saturday_to_friday(self) -> None:
        for period in iter_periods("2020-M01", "2030-M12"):
            w = period_boundaries(period)
            assert w.start.weekday() == 5, period.label
            assert w.end.weekday() == 4, period.label
            assert w.days in (28, 35), period.label

    def test_last_weekday_helpers(self) -> None:
        assert last_friday(2025, 3) == date(2025, 3, 28)
        assert last_saturday(2025, 3) == date(2025, 3, 29)
        assert last_friday(2025, 1) == date(2025, 1, 31)
        assert last_saturday(2025, 1) == date(2025, 1, 25)


class TestCalendarProperties:
    def test_contiguity_over_a_decade(self) -> None:
        assert check_contiguity("2020-M01", "2030-M12") == 132

    def test_each_window_end_plus_one_is_next_start(self) -> None:
        for period in iter_periods("2023-M01", "2027-M12"):
            end = period_boundaries(period).end
            assert end + timedelta(days=1) == period_boundaries(next_period(period)).start

    def test_every_day_lands_in_its_own_window(self) -> None:
        """Consecutive days stay in one period or step to the next one."""
        d = date(2024, 1, 1)
        prev = resolve_period(d)
        while d < date(2026, 12, 31):
            d += timedelta(days=1)
            period = resolve_period(d)
            assert period_boundaries(period).contains(d)
            assert period in (prev, prev.next())
            prev = period

    def test_dates_in_same_window_resolve_equal(self) -> None:
        w = period_boundaries("2025-M04")
        d = w.start
        while d <= w.end:
            assert resolve_period(d) == FiscalPeriod(2025, 4)
            d += timedelta(days=1)


def test_quarter_of() -> None:
    assert quarter_of("2025-M04") == FiscalQuarter(2025, 2)
    assert quarter_of(resolve_period("2025-03-29")).label == "2025-Q2"


def test_iter_periods_crosses_year() -> None:
    labels = [p.label for p in iter_periods("2025-M11", "2026-M02")]
    assert labels == ["2025-M11", "2025-M12", "2026-M01", "2026-M02"]


def test_to_date_drops_time() -> None:
    assert to_date("2025-01-31T18:45:00") == date(2025, 1, 31)


def test_resolve_periods_maps_invalid_to_none() -> None:
    values = pd.Series(["2025-03-29", None, "garbage", "2025-03-29", pd.Timestamp("2025-02-01")])
    out = resolve_periods(values)
    assert out.tolist() == ["2025-M04", None, None, "2025-M04", "2025-M02"]
    assert out.index.equals(values.index)
