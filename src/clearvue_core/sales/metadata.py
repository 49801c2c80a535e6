"""Metadata tracking for written rollup marts.

Each mart CSV gets a JSON sidecar under ``_meta/`` recording how and when it
was built, so a rebuild can be skipped when nothing changed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class StageMetadata:
    """Metadata for a built mart.

    Attributes:
        name: Mart name, e.g. "mart_sales_by_period".
        version: Version string for the rollup logic.
        last_run: ISO timestamp of when the mart was built.
        status: "ok" or "failed".
        row_count: Rows written.
        sources: Fact CSV path -> [mtime_ns, size] at build time.
    """

    name: str
    version: str
    last_run: str
    status: str
    row_count: int = 0
    sources: dict[str, list[int]] = field(default_factory=dict)


def source_fingerprints(files: list[Path]) -> dict[str, list[int]]:
    """Modification time and size of each source file, keyed by path."""
    out: dict[str, list[int]] = {}
    for f in files:
        st = f.stat()
        out[str(f)] = [st.st_mtime_ns, st.st_size]
    return out


def _meta_path(stage_dir: Path, name: str) -> Path:
    """Get path to the metadata file for a mart."""
    meta_dir = stage_dir / "_meta"
    meta_dir.mkdir(parents=True, exist_ok=True)
    return meta_dir / f"{name}.json"


def write_metadata(stage_dir: Path, metadata: StageMetadata) -> None:
    """Write the metadata file for a mart."""
    path = _meta_path(stage_dir, metadata.name)
    path.write_text(json.dumps(asdict(metadata), indent=2))
    logger.debug("Wrote metadata: %s", path)


def read_metadata(stage_dir: Path, name: str) -> Optional[StageMetadata]:
    """Read the metadata file for a mart, if it exists and is readable."""
    path = _meta_path(stage_dir, name)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
        return StageMetadata(**data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Error reading metadata %s: %s", path, e)
        return None


def should_run_stage(
    stage_dir: Path,
    name: str,
    version: str,
    sources: dict[str, list[int]],
) -> bool:
    """Check if a mart needs to be (re)built.

    Returns True if:
    - No metadata exists for this mart
    - Metadata status is not "ok"
    - Metadata version doesn't match current version
    - A source file was added, removed or modified
    """
    meta = read_metadata(stage_dir, name)
    if meta is None:
        return True
    if meta.status != "ok":
        return True
    if meta.version != version:
        return True
    return meta.sources != sources
