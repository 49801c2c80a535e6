"""Command line entry point: ``clearvue-core``.

Subcommands:
    resolve DATE [DATE ...]          Fiscal period, quarter and window of each date.
    rollup FACTS.csv --grain G       Roll a fact CSV up at a grain.
    ytd FACTS.csv [--as-of PERIOD]   Year-to-date totals (default: latest period).
    reconcile FACTS.csv              Report (and optionally apply) period corrections.
    check-calendar START END         Verify fiscal windows are contiguous.
    mart --data-root DIR --grain G   Build or refresh a rollup mart under a data root.

Exit codes: 0 on success, 2 on bad arguments or unusable input files, 1 on
calendar errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

import pandas as pd

from clearvue_core.config import DataPaths
from clearvue_core.exceptions import (
    ClearVueError,
    ConfigError,
    DataQualityError,
    InvalidDateError,
    InvalidPeriodError,
)
from clearvue_core.fiscal.periods import FiscalPeriod
from clearvue_core.fiscal.resolver import check_contiguity, period_boundaries, resolve_period
from clearvue_core.reconcile.job import apply_corrections, reconcile
from clearvue_core.reconcile.sinks import CsvCorrectionSink, FrameCorrectionSink
from clearvue_core.sales.aggregate import aggregate_ytd, latest_period
from clearvue_core.sales.api import GRAINS, get_rollup
from clearvue_core.sales.core import read_facts_csv
from clearvue_core.sales.marts import fetch_mart, mart_path
from clearvue_core.sales.segments import SEGMENTS

logger = logging.getLogger(__name__)


def _money(v: float) -> str:
    return f"{v:,.2f}"


def _cmd_resolve(args: argparse.Namespace) -> int:
    status = 0
    for raw in args.dates:
        try:
            period = resolve_period(raw)
        except InvalidDateError as e:
            print(f"{raw}\tERROR: {e}", file=sys.stderr)
            status = 1
            continue
        window = period_boundaries(period)
        print(f"{raw}\t{period.label}\t{period.quarter.label}\t{window.start}..{window.end}")
    return status


def _cmd_rollup(args: argparse.Namespace) -> int:
    facts = read_facts_csv(args.facts)
    df = get_rollup(
        facts,
        args.grain,
        n=args.top,
        trust_stored_period=args.trust_stored_period,
        segment=args.segment,
    )
    if args.output:
        df.to_csv(args.output, index=False, encoding="utf-8")
        print(f"Wrote: {args.output}")
        return 0
    with pd.option_context("display.float_format", _money):
        print(df.to_string(index=False))
    return 0


def _cmd_ytd(args: argparse.Namespace) -> int:
    facts = read_facts_csv(args.facts)
    as_of = FiscalPeriod.parse(args.as_of) if args.as_of else None
    if as_of is None:
        as_of = latest_period(facts, trust_stored_period=args.trust_stored_period)
        if as_of is None:
            print("No facts with a valid date; nothing to report.", file=sys.stderr)
            return 0
        logger.info("Using latest period in data: %s", as_of.label)
    ytd = aggregate_ytd(facts, as_of, trust_stored_period=args.trust_stored_period)
    print(json.dumps(ytd.to_dict(), indent=2))
    return 0


def _cmd_reconcile(args: argparse.Namespace) -> int:
    facts = read_facts_csv(args.facts)
    result = reconcile(facts)

    for c in result.corrections:
        print(f"{c.record_id}\t{c.previous_period or '-'}\t{c.recomputed_period}")
    for err in result.errors:
        print(f"{err.record_id}\tERROR: {err.message}", file=sys.stderr)
    print(
        f"Checked {result.checked} records: {len(result.corrections)} corrections, "
        f"{len(result.errors)} errors",
        file=sys.stderr,
    )

    if args.log:
        apply_corrections(result.corrections, CsvCorrectionSink(args.log))
    if args.apply:
        sink = FrameCorrectionSink(facts)
        apply_corrections(result.corrections, sink)
        sink.frame.to_csv(args.apply, index=False, encoding="utf-8")
        print(f"Wrote: {args.apply}", file=sys.stderr)
    return 0


def _cmd_check_calendar(args: argparse.Namespace) -> int:
    checked = check_contiguity(args.start, args.end)
    print(f"OK: {checked} fiscal window boundaries are contiguous")
    return 0


def _cmd_mart(args: argparse.Namespace) -> int:
    paths = DataPaths.from_root(args.data_root)
    if not paths.data_root.is_dir():
        raise ConfigError(f"Data root does not exist: {paths.data_root}")
    df = fetch_mart(
        paths,
        args.grain,
        mode="force" if args.force else "missing",
        trust_stored_period=args.trust_stored_period,
    )
    print(f"{mart_path(paths, args.grain)}: {len(df)} rows")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="clearvue-core",
        description="Fiscal period resolution, sales rollups and period reconciliation.",
    )
    p.add_argument(
        "--verbose",
        "--debug",
        action="store_true",
        dest="verbose",
        help="Verbose/debug logging output.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("resolve", help="Resolve calendar dates to fiscal periods.")
    r.add_argument("dates", nargs="+", help="Dates (YYYY-MM-DD).")
    r.set_defaults(func=_cmd_resolve)

    ru = sub.add_parser("rollup", help="Roll a fact CSV up at a grain.")
    ru.add_argument("facts", help="Fact CSV (any known export header layout).")
    ru.add_argument("--grain", choices=GRAINS, default="period", help="Rollup grain.")
    ru.add_argument("--top", type=int, default=None, help="Keep only the top N rows by revenue.")
    ru.add_argument("--segment", choices=SEGMENTS, default=None, help="With --grain segment.")
    ru.add_argument("-o", "--output", default=None, help="Write the rollup to this CSV.")
    ru.add_argument(
        "--trust-stored-period",
        action="store_true",
        help="Use stored period labels where they parse instead of recomputing from dates.",
    )
    ru.set_defaults(func=_cmd_rollup)

    y = sub.add_parser("ytd", help="Year-to-date totals.")
    y.add_argument("facts", help="Fact CSV.")
    y.add_argument("--as-of", default=None, help="Last period to include (default: latest).")
    y.add_argument("--trust-stored-period", action="store_true")
    y.set_defaults(func=_cmd_ytd)

    rc = sub.add_parser("reconcile", help="Find stored periods that disagree with the calendar.")
    rc.add_argument("facts", help="Fact CSV with dates and stored periods.")
    rc.add_argument("--apply", default=None, metavar="OUTPUT", help="Write corrected facts here.")
    rc.add_argument("--log", default=None, metavar="CSV", help="Append corrections to this log.")
    rc.set_defaults(func=_cmd_reconcile)

    cc = sub.add_parser("check-calendar", help="Verify fiscal window contiguity.")
    cc.add_argument("start", help="First period (e.g. 2020-M01).")
    cc.add_argument("end", help="Last period (e.g. 2030-M12).")
    cc.set_defaults(func=_cmd_check_calendar)

    m = sub.add_parser("mart", help="Build or refresh a rollup mart.")
    m.add_argument("--data-root", required=True, help="Root of the data directory tree.")
    m.add_argument("--grain", choices=GRAINS, default="period")
    m.add_argument("--force", action="store_true", help="Rebuild even if up to date.")
    m.add_argument("--trust-stored-period", action="store_true")
    m.set_defaults(func=_cmd_mart)
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )
    logging.captureWarnings(True)

    try:
        return args.func(args)
    except (FileNotFoundError, ConfigError, DataQualityError, InvalidPeriodError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except ClearVueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
