"""Input normalisation at the storage boundary.

Source exports spell the same field several ways (``TOTAL_LINE_PRICE`` vs
``LINE_TOTAL``, ``QUANTITY`` vs ``QTY``, ``FIN_PERIOD`` vs
``calculated_FIN_PERIOD``). This module maps every known spelling onto the
canonical fact columns once, coalescing left to right (first non-null wins),
so the rollup and reconciliation code only ever sees one schema.

Key utilities:
- Column naming: camelCase/UPPER_CASE headers to snake_case
- Number parsing: currency symbols, thousands separators, (negatives)
- Alias coalescing: canonical fact frame from any known export layout
- Document merge: header + line + customer exports into facts

Examples:
    >>> to_snake("calculated_FIN_PERIOD")
    'calculated_fin_period'
    >>> to_snake("occurredOn")
    'occurred_on'
    >>> to_float("1,234.56")
    1234.56
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import asdict
from typing import Any, Optional, Union

import pandas as pd

from clearvue_core.exceptions import DataQualityError
from clearvue_core.sales.models import (
    AMOUNT,
    CUSTOMER_ID,
    FACT_COLUMNS,
    OCCURRED_ON,
    PRODUCT_ID,
    QUANTITY,
    RECORD_ID,
    REGION,
    STORED_PERIOD,
    TransactionFact,
)

logger = logging.getLogger(__name__)

# Canonical column -> accepted spellings (snake_case), in coalescing order
FIELD_ALIASES: dict[str, list[str]] = {
    RECORD_ID: ["record_id", "doc_number", "id"],
    OCCURRED_ON: ["occurred_on", "doc_date", "transaction_date", "operating_date", "date"],
    AMOUNT: ["amount", "total_line_price", "line_total", "total_item"],
    QUANTITY: ["quantity", "qty"],
    CUSTOMER_ID: ["customer_id", "customer_number"],
    PRODUCT_ID: ["product_id", "inventory_code", "product_code"],
    REGION: ["region", "region_code"],
    STORED_PERIOD: ["stored_period", "calculated_fin_period", "fin_period"],
}

TEXT_COLUMNS = [CUSTOMER_ID, PRODUCT_ID, REGION]
NUMERIC_COLUMNS = [AMOUNT, QUANTITY]

NBSP = "\u00a0"
NNBSP = "\u202f"
ZW = "".join(chr(c) for c in (0x200B, 0x200C, 0x200D, 0xFEFF))

# Regex to strip currency symbols while preserving number separators
_CURRENCY_RE = re.compile(r"[^\d,.\-\(\)\s]")
_SCIENTIFIC_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)[eE][+-]?\d+")


def strip_invisibles(x: Any) -> Optional[str]:
    """Remove invisible and problematic whitespace characters from text.

    Args:
        x: Value to clean (string, number, or None).

    Returns:
        Cleaned string or None if input is None/NaN.

    Examples:
        >>> strip_invisibles("  R01  ")
        'R01'
    """
    if x is None or (isinstance(x, float) and pd.isna(x)):
        return None
    s = str(x)
    s = s.replace("\r", "").replace("\t", " ").replace(NBSP, " ").replace(NNBSP, " ")
    s = re.sub(r"[%s]" % re.escape(ZW), "", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def to_snake(s: str) -> str:
    """Convert a header to snake_case, splitting camelCase words.

    Examples:
        >>> to_snake("TOTAL_LINE_PRICE")
        'total_line_price'
        >>> to_snake("storedPeriod")
        'stored_period'
    """
    s0 = strip_invisibles(s) or ""
    s0 = "".join(c for c in unicodedata.normalize("NFD", s0) if unicodedata.category(c) != "Mn")
    s0 = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", s0).lower()
    s0 = re.sub(r"[^\w\s]", " ", s0)
    return re.sub(r"\s+", "_", s0).strip("_") or s0


def to_float(x: Any) -> Optional[float]:
    """Parse a number from the formats found in sales exports.

    Handles plain numbers, ``1,234.56``, ``1.234,56``, scientific notation,
    currency symbols and negatives written in parentheses.

    Args:
        x: Value to parse (string, number, or None).

    Returns:
        Parsed float value or None if parsing fails.

    Examples:
        >>> to_float("(1,234.56)")
        -1234.56
        >>> to_float("R 99,50")
        99.5
        >>> to_float("n/a") is None
        True
    """
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        v = float(x)
        return None if math.isnan(v) or math.isinf(v) else v
    s = str(x).strip()
    if not s:
        return None

    neg = False
    if s.startswith("(") and s.endswith(")"):
        neg, s = True, s[1:-1].strip()

    if _SCIENTIFIC_RE.fullmatch(s):
        v = float(s)
        if math.isinf(v):
            return None
        return -v if neg else v

    s = _CURRENCY_RE.sub("", s)
    s = re.sub(r"\s+", "", s)
    if not s or not re.search(r"\d", s):
        return None

    if re.fullmatch(r"-?\d{1,3}(?:\.\d{3})+,\d{1,2}", s):
        s = s.replace(".", "").replace(",", ".")
    elif re.fullmatch(r"-?\d{1,3}(?:,\d{3})+(?:\.\d+)?", s):
        s = s.replace(",", "")
    elif "," in s and "." not in s:
        s = s.replace(",", ".")

    try:
        v = float(s)
    except ValueError:
        return None
    return -v if neg else v


def _clean_key(x: Any) -> Optional[str]:
    """Grouping keys as text; integral floats lose their trailing ``.0``."""
    if isinstance(x, float) and not pd.isna(x) and x.is_integer():
        x = int(x)
    return strip_invisibles(x)


def _coalesce(frame: pd.DataFrame, columns: list[str]) -> pd.Series:
    result = frame[columns[0]]
    for col in columns[1:]:
        result = result.combine_first(frame[col])
    return result


def normalize_facts(frame: pd.DataFrame) -> pd.DataFrame:
    """Map a raw export frame onto the canonical fact columns.

    For every canonical column, all matching aliases are coalesced left to
    right. Numeric columns are parsed with ``to_float`` (unparseable values
    become NaN, which rollups count as zero); identifier columns become text.
    Columns that are not an alias of anything are kept under their snake_case
    name so callers can group by them (e.g. ``category``).

    Args:
        frame: Raw facts (any known header spelling).

    Returns:
        DataFrame with ``FACT_COLUMNS`` first, then pass-through columns.

    Raises:
        DataQualityError: If a non-empty frame has neither a date nor a stored period.
    """
    if frame.empty and len(frame.columns) == 0:
        return pd.DataFrame({col: pd.Series(dtype="object") for col in FACT_COLUMNS})

    raw = frame.copy()
    raw.columns = [to_snake(str(c)) for c in raw.columns]
    raw = raw.loc[:, ~raw.columns.duplicated()]

    out = pd.DataFrame(index=raw.index)
    consumed: set[str] = set()
    for canonical, aliases in FIELD_ALIASES.items():
        present = [a for a in aliases if a in raw.columns]
        consumed.update(present)
        if present:
            out[canonical] = _coalesce(raw, present)
        elif canonical == RECORD_ID:
            out[canonical] = raw.index
        else:
            out[canonical] = None

    has_dates = any(a in consumed for a in FIELD_ALIASES[OCCURRED_ON])
    has_periods = any(a in consumed for a in FIELD_ALIASES[STORED_PERIOD])
    if not raw.empty and not has_dates and not has_periods:
        raise DataQualityError(
            f"No transaction date column found. Expected one of {FIELD_ALIASES[OCCURRED_ON]}; "
            f"got {list(raw.columns)}"
        )

    for col in NUMERIC_COLUMNS:
        out[col] = pd.to_numeric(out[col].map(to_float), errors="coerce")
    for col in TEXT_COLUMNS:
        keys = out[col].map(_clean_key).astype("object")
        out[col] = keys.where(keys.notna(), None)

    extras = [c for c in raw.columns if c not in consumed and c not in out.columns]
    for col in extras:
        out[col] = raw[col]

    logger.debug("Normalised %d facts (%d pass-through columns)", len(out), len(extras))
    return out


def as_facts_frame(
    facts: Union[pd.DataFrame, Iterable[Union[TransactionFact, Mapping[str, Any]]]],
) -> pd.DataFrame:
    """Build the canonical facts frame from a frame or an iterable of records.

    Args:
        facts: A DataFrame, or an iterable of TransactionFact / mappings.

    Returns:
        Canonical facts DataFrame (see ``normalize_facts``).
    """
    if isinstance(facts, pd.DataFrame):
        return normalize_facts(facts)
    rows = [asdict(f) if isinstance(f, TransactionFact) else dict(f) for f in facts]
    return normalize_facts(pd.DataFrame(rows))


def merge_sales_documents(
    headers: pd.DataFrame,
    lines: pd.DataFrame,
    customers: pd.DataFrame | None = None,
) -> pd.DataFrame:
    """Join sales header, sales line and customer exports into line-level facts.

    Lines join headers on the document number (inner join: lines without a
    header are dropped). Customers, if given, are left-joined on the customer
    number to supply the region; customers with no match keep a null region.

    Args:
        headers: One row per document (DOC_NUMBER, DOC_DATE, CUSTOMER_NUMBER, FIN_PERIOD...).
        lines: One row per sales line (DOC_NUMBER, INVENTORY_CODE, QUANTITY, TOTAL_LINE_PRICE...).
        customers: Optional customer export (CUSTOMER_NUMBER, REGION_CODE...).

    Returns:
        Canonical facts DataFrame at line grain.

    Raises:
        DataQualityError: If the join keys are missing.
    """
    h = headers.rename(columns=lambda c: to_snake(str(c)))
    ln = lines.rename(columns=lambda c: to_snake(str(c)))
    for name, df in (("headers", h), ("lines", ln)):
        if "doc_number" not in df.columns:
            raise DataQualityError(f"{name} export has no DOC_NUMBER column")

    merged = ln.merge(h, on="doc_number", how="inner", suffixes=("", "_header"))
    dropped = len(ln) - len(ln[ln["doc_number"].isin(h["doc_number"])])
    if dropped:
        logger.warning("Dropped %d sales lines with no matching header", dropped)

    if customers is not None:
        c = customers.rename(columns=lambda col: to_snake(str(col)))
        if "customer_number" not in c.columns or "customer_number" not in merged.columns:
            raise DataQualityError("Customer join needs CUSTOMER_NUMBER on headers and customers")
        c = c.drop_duplicates(subset="customer_number")
        merged = merged.merge(c, on="customer_number", how="left", suffixes=("", "_customer"))

    logger.info("Merged %d headers and %d lines into %d facts", len(h), len(ln), len(merged))
    return normalize_facts(merged)
