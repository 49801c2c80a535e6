"""Write-back targets for period corrections.

The reconciliation job never writes to storage itself; it hands each
CorrectionRecord to a sink. Anything with a ``write(correction)`` method is a
sink.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import pandas as pd

from clearvue_core.exceptions import DataQualityError
from clearvue_core.sales.models import RECORD_ID, STORED_PERIOD

if TYPE_CHECKING:
    from clearvue_core.reconcile.job import CorrectionRecord

logger = logging.getLogger(__name__)

CSV_FIELDS = ["record_id", "previous_period", "recomputed_period", "applied_at"]


class CorrectionSink(Protocol):
    def write(self, correction: CorrectionRecord) -> None: ...


class FrameCorrectionSink:
    """Apply corrections to an in-memory facts frame.

    The frame is copied on construction; read the corrected data back from
    ``.frame``.

    Args:
        frame: Facts frame holding the ids and the stored periods.
        id_column: Column that identifies a record.
        period_column: Column holding the stored period label.

    Raises:
        DataQualityError: If ``id_column`` is missing from the frame.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        id_column: str = RECORD_ID,
        period_column: str = STORED_PERIOD,
    ) -> None:
        if id_column not in frame.columns:
            raise DataQualityError(f"Cannot apply corrections: no '{id_column}' column")
        self.frame = frame.copy()
        self.id_column = id_column
        self.period_column = period_column
        if period_column not in self.frame.columns:
            self.frame[period_column] = None
        self.frame[period_column] = self.frame[period_column].astype("object")

    def write(self, correction: CorrectionRecord) -> None:
        ids = self.frame[self.id_column].astype(str)
        mask = ids == str(correction.record_id)
        if not mask.any():
            logger.warning("No record %s to correct", correction.record_id)
            return
        self.frame.loc[mask, self.period_column] = correction.recomputed_period


class CsvCorrectionSink:
    """Append corrections to a CSV log, writing the header on first use."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, correction: CorrectionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        new_file = not self.path.exists() or self.path.stat().st_size == 0
        row = pd.DataFrame(
            [
                {
                    "record_id": correction.record_id,
                    "previous_period": correction.previous_period or "",
                    "recomputed_period": correction.recomputed_period,
                    "applied_at": pd.Timestamp.now().isoformat(timespec="seconds"),
                }
            ],
            columns=CSV_FIELDS,
        )
        row.to_csv(
            self.path,
            mode="a",
            header=new_file,
            index=False,
            encoding="utf-8",
            quoting=csv.QUOTE_MINIMAL,
        )
