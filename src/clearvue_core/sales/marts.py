"""Gold layer: rollup marts written to CSV.

This module provides fetch/load functions for the rollup marts. A mart is
the output of ``get_rollup`` at one grain, rounded to cents and written to
``DataPaths.mart_sales / mart_sales_by_<grain>.csv`` with a metadata sidecar.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from clearvue_core.config import DataPaths

from clearvue_core.sales.api import GRAINS, get_rollup
from clearvue_core.sales.core import list_fact_files, load_facts
from clearvue_core.sales.metadata import (
    StageMetadata,
    read_metadata,
    should_run_stage,
    source_fingerprints,
    write_metadata,
)

logger = logging.getLogger(__name__)

MART_VERSION = "rollup_v1"
MONEY_COLUMNS = ["total_revenue", "average_transaction", "average_order_value"]


def mart_name(grain: str) -> str:
    return f"mart_sales_by_{grain}"


def mart_path(paths: DataPaths, grain: str) -> Path:
    return paths.mart_sales / f"{mart_name(grain)}.csv"


def _validate(grain: str, mode: str) -> None:
    if grain not in GRAINS:
        raise ValueError(f"Invalid grain '{grain}'. Must be one of {', '.join(GRAINS)}.")
    if mode not in ("missing", "force"):
        raise ValueError(f"Invalid mode '{mode}'. Must be 'missing' or 'force'.")


def fetch_mart(
    paths: DataPaths,
    grain: str = "period",
    *,
    mode: str = "missing",
    trust_stored_period: bool = False,
) -> pd.DataFrame:
    """Ensure the mart for ``grain`` is built from the current facts, then return it.

    Args:
        paths: DataPaths configuration.
        grain: One of ``GRAINS``.
        mode: "missing" (default) rebuilds only when the facts or the rollup
            version changed; "force" always rebuilds.
        trust_stored_period: Use stored period labels where they parse.

    Returns:
        The mart DataFrame.

    Raises:
        ValueError: If grain or mode is invalid.
        FileNotFoundError: If there are no fact CSVs.
    """
    _validate(grain, mode)
    paths.ensure_dirs()

    name = mart_name(grain)
    target = mart_path(paths, grain)
    sources = source_fingerprints(list_fact_files(paths))

    if mode == "missing" and target.exists() and not should_run_stage(
        paths.mart_sales, name, MART_VERSION, sources
    ):
        logger.debug("Loading existing %s", name)
        return pd.read_csv(target)

    logger.info("Building %s from %d fact file(s)", name, len(sources))
    try:
        facts = load_facts(paths)
        df = get_rollup(facts, grain, trust_stored_period=trust_stored_period)
        rounded = [c for c in MONEY_COLUMNS if c in df.columns]
        if rounded:
            df[rounded] = df[rounded].astype(float).round(2)
        df.to_csv(target, index=False, encoding="utf-8")
    except Exception as e:
        logger.error("Error building %s: %s", name, e)
        write_metadata(
            paths.mart_sales,
            StageMetadata(
                name=name,
                version=MART_VERSION,
                last_run=datetime.now().isoformat(),
                status="failed",
                sources=sources,
            ),
        )
        raise

    write_metadata(
        paths.mart_sales,
        StageMetadata(
            name=name,
            version=MART_VERSION,
            last_run=datetime.now().isoformat(),
            status="ok",
            row_count=len(df),
            sources=sources,
        ),
    )
    return df


def load_mart(paths: DataPaths, grain: str = "period") -> pd.DataFrame:
    """Load a built mart from disk without recomputing it.

    Raises:
        ValueError: If grain is invalid.
        FileNotFoundError: If the mart is missing or its last build failed.
    """
    _validate(grain, "missing")
    target = mart_path(paths, grain)
    meta = read_metadata(paths.mart_sales, mart_name(grain))
    if not target.exists() or meta is None or meta.status != "ok":
        raise FileNotFoundError(
            f"Mart {mart_name(grain)} not found in {paths.mart_sales}. "
            f"Use sales.marts.fetch_mart() to build it."
        )
    return pd.read_csv(target)
