"""Unified configuration for ClearVue Core.

This module provides a single, simple configuration class used by the
CSV loaders, the mart writers and the reconciliation log.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class DataPaths:
    """All filesystem paths used by the reporting pipeline.

    Attributes:
        data_root: Root directory for all data layers.

    Directory Structure:
        data_root/
        ├── b_clean/
        │   └── sales/          # transaction facts (CSV, one row per sales line)
        └── c_processed/
            ├── sales/          # rollup marts (mart_sales_by_<grain>.csv)
            └── corrections/    # reconciliation logs
    """

    data_root: Path

    @classmethod
    def from_root(cls, data_root: str | Path) -> DataPaths:
        """Create DataPaths from a root directory.

        Args:
            data_root: Root directory for reporting data.

        Returns:
            DataPaths instance.

        Examples:
            >>> paths = DataPaths.from_root("data")
            >>> paths.clean_sales
            PosixPath('data/b_clean/sales')
        """
        if isinstance(data_root, str):
            data_root = Path(data_root)
        return cls(data_root=data_root)

    @property
    def clean_sales(self) -> Path:
        """Transaction fact CSVs."""
        return self.data_root / "b_clean" / "sales"

    @property
    def mart_sales(self) -> Path:
        """Rollup marts."""
        return self.data_root / "c_processed" / "sales"

    @property
    def corrections(self) -> Path:
        """Reconciliation correction logs."""
        return self.data_root / "c_processed" / "corrections"

    def ensure_dirs(self) -> None:
        """Create all directories in the data structure."""
        for path in [self.clean_sales, self.mart_sales, self.corrections]:
            path.mkdir(parents=True, exist_ok=True)
