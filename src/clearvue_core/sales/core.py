"""Transaction fact loading from CSV exports.

This module reads the fact CSVs under ``DataPaths.clean_sales`` (or any
single CSV) and returns the canonical facts frame.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import pandas as pd

if TYPE_CHECKING:
    from clearvue_core.config import DataPaths

from clearvue_core.sales.models import OCCURRED_ON
from clearvue_core.sales.normalize import normalize_facts

logger = logging.getLogger(__name__)


def list_fact_files(paths: DataPaths) -> list[Path]:
    """Fact CSVs under the clean sales directory, sorted by name."""
    return sorted(paths.clean_sales.rglob("*.csv"))


def read_facts_csv(path: str | Path) -> pd.DataFrame:
    """Read one fact CSV and normalise it.

    Identifier columns are read as text so document numbers such as ``00123``
    keep their leading zeros.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Facts file not found: {path}")
    df = pd.read_csv(path, encoding="utf-8", dtype=str, keep_default_na=True)
    logger.debug("Read %d rows from %s", len(df), path)
    return normalize_facts(df)


def load_facts(
    paths: DataPaths,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> pd.DataFrame:
    """Load all fact CSVs, optionally restricted to a calendar date range.

    Args:
        paths: DataPaths configuration.
        start_date: Start date in YYYY-MM-DD format (inclusive).
        end_date: End date in YYYY-MM-DD format (inclusive).

    Returns:
        Canonical facts DataFrame. Without a date range, facts with
        unparseable dates are kept (reconciliation reports them); with a
        range they are dropped.

    Raises:
        FileNotFoundError: If there are no fact CSVs.
        ValueError: If a range bound is not a valid date.
    """
    files = list_fact_files(paths)
    if not files:
        raise FileNotFoundError(f"No fact CSVs found in {paths.clean_sales}")

    df = pd.concat([read_facts_csv(f) for f in files], ignore_index=True)
    logger.info("Loaded %d facts from %d file(s)", len(df), len(files))

    if start_date is None and end_date is None:
        return df

    try:
        start = pd.Timestamp(start_date) if start_date else None
        end = pd.Timestamp(end_date) if end_date else None
    except ValueError as e:
        raise ValueError(f"Invalid date format: {e}") from e

    dates = pd.to_datetime(df[OCCURRED_ON], errors="coerce", format="mixed").dt.normalize()
    mask = dates.notna()
    if start is not None:
        mask &= dates >= start
    if end is not None:
        mask &= dates <= end
    return df[mask].reset_index(drop=True)
