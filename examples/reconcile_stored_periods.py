"""Example: Reconcile stored fiscal periods

This example recomputes the fiscal period of every fact from its date, lists
the stored periods that disagree, and appends the corrections to a CSV log
that the store's loader can apply.

Prerequisites:
- Fact CSVs under data/b_clean/sales/ with a FIN_PERIOD (or stored_period) column
"""

from pathlib import Path

from clearvue_core import DataPaths
from clearvue_core.reconcile import CsvCorrectionSink, apply_corrections, reconcile
from clearvue_core.sales import load_facts

paths = DataPaths.from_root(Path("data"))
paths.ensure_dirs()

facts = load_facts(paths)
result = reconcile(facts)

print(f"Checked {result.checked} facts")
print(f"  consistent:  {result.consistent}")
print(f"  corrections: {len(result.corrections)}")
print(f"  errors:      {len(result.errors)}")

for err in result.errors[:10]:
    print(f"  ! {err.record_id}: {err.message}")

if result.corrections:
    print(result.corrections_frame().head(20))
    log = paths.corrections / "period_corrections.csv"
    written = apply_corrections(result.corrections, CsvCorrectionSink(log))
    print(f"\nAppended {written} corrections to {log}")
