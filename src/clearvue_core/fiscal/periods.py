"""Value types for fiscal periods, quarters and their date windows.

A fiscal period is one fiscal month, labelled ``YYYY-Mmm`` (``2025-M03``).
Quarters are derived from the month (``ceil(month / 3)``) and labelled
``YYYY-Qn``. The store this package reads from historically kept periods as
integers in ``YYYYMM`` form; ``FiscalPeriod.parse`` accepts both.

Examples:
    >>> p = FiscalPeriod.parse("2025-M03")
    >>> p.next().label
    '2025-M04'
    >>> FiscalPeriod.parse(202512).next()
    FiscalPeriod(year=2026, month=1)
    >>> p.quarter.label
    '2025-Q1'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from clearvue_core.exceptions import InvalidPeriodError

# 2025-M03 (canonical), 2025-03, 202503
_LABEL_RE = re.compile(r"^(?P<year>\d{4})-M(?P<month>\d{1,2})$", re.IGNORECASE)
_DASHED_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})$")
_COMPACT_RE = re.compile(r"^(?P<year>\d{4})(?P<month>\d{2})$")


@dataclass(frozen=True, order=True)
class FiscalPeriod:
    """One fiscal month.

    Attributes:
        year: Fiscal year.
        month: Fiscal month number, 1..12.

    Two periods are equal iff year and month match; ordering is chronological.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidPeriodError(f"Fiscal month must be 1..12, got {self.month}")

    @classmethod
    def parse(cls, value: Any) -> FiscalPeriod:
        """Parse a period from its label, ``YYYY-MM``, or legacy ``YYYYMM`` form.

        Args:
            value: A FiscalPeriod, ``"2025-M03"``, ``"2025-03"``, ``"202503"`` or ``202503``.

        Returns:
            FiscalPeriod instance.

        Raises:
            InvalidPeriodError: If the value is not a recognisable period.
        """
        if isinstance(value, FiscalPeriod):
            return value
        if isinstance(value, bool) or value is None:
            raise InvalidPeriodError(f"Not a fiscal period: {value!r}")
        if isinstance(value, float):
            if value != value or not value.is_integer():
                raise InvalidPeriodError(f"Not a fiscal period: {value!r}")
            value = int(value)
        text = str(value).strip()
        for pattern in (_LABEL_RE, _DASHED_RE, _COMPACT_RE):
            match = pattern.match(text)
            if match:
                return cls(int(match.group("year")), int(match.group("month")))
        raise InvalidPeriodError(f"Not a fiscal period: {value!r}")

    @property
    def label(self) -> str:
        """Canonical label, e.g. ``2025-M03``."""
        return f"{self.year:04d}-M{self.month:02d}"

    @property
    def quarter(self) -> FiscalQuarter:
        return FiscalQuarter(self.year, (self.month + 2) // 3)

    def as_int(self) -> int:
        """Legacy numeric form, e.g. ``202503``."""
        return self.year * 100 + self.month

    def next(self) -> FiscalPeriod:
        if self.month == 12:
            return FiscalPeriod(self.year + 1, 1)
        return FiscalPeriod(self.year, self.month + 1)

    def previous(self) -> FiscalPeriod:
        if self.month == 1:
            return FiscalPeriod(self.year - 1, 12)
        return FiscalPeriod(self.year, self.month - 1)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True, order=True)
class FiscalQuarter:
    """Three consecutive fiscal periods within one fiscal year.

    Attributes:
        year: Fiscal year.
        quarter: Quarter number, 1..4.
    """

    year: int
    quarter: int

    def __post_init__(self) -> None:
        if not 1 <= self.quarter <= 4:
            raise InvalidPeriodError(f"Fiscal quarter must be 1..4, got {self.quarter}")

    @property
    def label(self) -> str:
        """Canonical label, e.g. ``2025-Q1``."""
        return f"{self.year:04d}-Q{self.quarter}"

    def periods(self) -> list[FiscalPeriod]:
        """The three fiscal periods of this quarter, in order."""
        first = (self.quarter - 1) * 3 + 1
        return [FiscalPeriod(self.year, m) for m in range(first, first + 3)]

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive date window of a fiscal period (Saturday to Friday).

    Attributes:
        start: First day of the window (a Saturday).
        end: Last day of the window (a Friday).
    """

    start: date
    end: date

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def next_start(self) -> date:
        """First day of the following window."""
        return self.end + timedelta(days=1)
