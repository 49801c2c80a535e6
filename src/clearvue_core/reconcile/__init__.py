"""Period reconciliation: find and rewrite stale stored period labels.

Example:
    >>> from clearvue_core.reconcile import reconcile, apply_corrections, CsvCorrectionSink
    >>>
    >>> result = reconcile(facts)
    >>> apply_corrections(result.corrections, CsvCorrectionSink("corrections.csv"))
"""

from clearvue_core.reconcile.job import (
    CorrectionRecord,
    ReconciliationResult,
    RecordError,
    apply,
    apply_corrections,
    reconcile,
)
from clearvue_core.reconcile.sinks import CorrectionSink, CsvCorrectionSink, FrameCorrectionSink

__all__ = [
    "CorrectionRecord",
    "CorrectionSink",
    "CsvCorrectionSink",
    "FrameCorrectionSink",
    "ReconciliationResult",
    "RecordError",
    "apply",
    "apply_corrections",
    "reconcile",
]
