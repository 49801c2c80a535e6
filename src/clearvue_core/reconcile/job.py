"""Reconciliation of stored fiscal period labels.

Older rows in the store carry a period label that was computed by earlier
(and inconsistent) versions of the calendar rule, sometimes in the legacy
``YYYYMM`` integer form. ``reconcile`` recomputes each record's period from
its date and reports the ones that disagree; ``apply_corrections`` hands those
to a sink that performs the write-back.

A record with a bad date never stops the batch: it is reported as a
RecordError next to the corrections.

Examples:
    >>> result = reconcile(facts)
    >>> sink = FrameCorrectionSink(facts)
    >>> apply_corrections(result.corrections, sink)
    3
    >>> reconcile(sink.frame).corrections
    []
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

import pandas as pd

from clearvue_core.exceptions import InvalidDateError, InvalidPeriodError
from clearvue_core.fiscal.periods import FiscalPeriod
from clearvue_core.fiscal.resolver import resolve_period
from clearvue_core.reconcile.sinks import CorrectionSink
from clearvue_core.sales.models import OCCURRED_ON, RECORD_ID, STORED_PERIOD
from clearvue_core.sales.normalize import as_facts_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrectionRecord:
    """A stored period that disagrees with the recomputed one.

    Attributes:
        record_id: Identifier of the record to rewrite.
        previous_period: Stored value as text, or None if nothing was stored.
        recomputed_period: Canonical label resolved from the record's date.
    """

    record_id: Any
    previous_period: Optional[str]
    recomputed_period: str


@dataclass(frozen=True)
class RecordError:
    """A record that could not be reconciled."""

    record_id: Any
    message: str


@dataclass
class ReconciliationResult:
    """Outcome of one reconciliation pass.

    Attributes:
        corrections: Records whose stored period must change, in input order.
        errors: Records that could not be checked, in input order.
        checked: Number of records examined.
    """

    corrections: list[CorrectionRecord] = field(default_factory=list)
    errors: list[RecordError] = field(default_factory=list)
    checked: int = 0

    @property
    def consistent(self) -> int:
        """Records whose stored period was already correct."""
        return self.checked - len(self.corrections) - len(self.errors)

    def corrections_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(c.record_id, c.previous_period, c.recomputed_period) for c in self.corrections],
            columns=["record_id", "previous_period", "recomputed_period"],
        )


def _stored_text(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _stored_label(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    try:
        return FiscalPeriod.parse(text).label
    except InvalidPeriodError:
        return None


def reconcile(records: Any) -> ReconciliationResult:
    """Recompute every record's fiscal period and collect the mismatches.

    Stored and recomputed periods are compared as canonical labels, so a
    legacy ``202503`` stored for a March fact is not a mismatch. A stored
    value that is missing or not a period at all is always corrected.

    Args:
        records: Facts frame or iterable of facts/mappings with a date, a
            stored period and a record id.

    Returns:
        ReconciliationResult with corrections and per-record errors.

    Raises:
        InconsistentBoundaryError: If the calendar itself is broken.
    """
    frame = as_facts_frame(records)
    result = ReconciliationResult()

    for record_id, occurred_on, stored in frame[
        [RECORD_ID, OCCURRED_ON, STORED_PERIOD]
    ].itertuples(index=False, name=None):
        result.checked += 1
        try:
            period = resolve_period(occurred_on)
        except InvalidDateError as e:
            logger.warning("Record %s: %s", record_id, e)
            result.errors.append(RecordError(record_id=record_id, message=str(e)))
            continue

        text = _stored_text(stored)
        if _stored_label(text) == period.label:
            continue
        logger.debug("Record %s: stored %s, recomputed %s", record_id, text, period.label)
        result.corrections.append(
            CorrectionRecord(
                record_id=record_id,
                previous_period=text,
                recomputed_period=period.label,
            )
        )

    logger.info(
        "Reconciled %d records: %d corrections, %d errors",
        result.checked,
        len(result.corrections),
        len(result.errors),
    )
    return result


def apply(correction: CorrectionRecord, sink: CorrectionSink) -> None:
    """Hand one correction to the storage sink."""
    sink.write(correction)
    logger.info(
        "Updated record %s: %s -> %s",
        correction.record_id,
        correction.previous_period,
        correction.recomputed_period,
    )


def apply_corrections(corrections: Iterable[CorrectionRecord], sink: CorrectionSink) -> int:
    """Apply corrections in order; returns how many were written."""
    count = 0
    for correction in corrections:
        apply(correction, sink)
        count += 1
    return count
