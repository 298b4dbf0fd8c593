"""Run the healthcare financial analysis against a CSV (or converted Parquet) file."""

import argparse
import sys
import time

import pandas as pd

from .config import DEFAULT_CSV, ReportSettings
from .dataset import DataLoadError, load_dataset
from .reports import REPORTS, run_report


def section(title: str):
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}\n")


def show(df: pd.DataFrame):
    """Print a report as a plain text table."""
    if df.empty:
        print("(no rows)")
    else:
        print(df.to_string(index=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="healthcare-analysis",
        description="Billing, cost and length-of-stay analysis of a healthcare admissions dataset.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=DEFAULT_CSV,
        help=f"healthcare dataset CSV or Parquet file (default: {DEFAULT_CSV})",
    )
    parser.add_argument(
        "--report",
        action="append",
        choices=list(REPORTS),
        metavar="NAME",
        help="report to run; repeat for several (default: all). One of: " + ", ".join(REPORTS),
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = ReportSettings.from_env()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    start = time.time()
    try:
        dataset = load_dataset(args.path)
    except (FileNotFoundError, DataLoadError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Loaded {len(dataset):,} records from {args.path} ({time.time() - start:.1f}s)")
    if dataset.rejected:
        print(
            f"WARNING: {len(dataset.rejected):,} malformed rows skipped "
            f"(first at line {dataset.rejected[0].line}: {dataset.rejected[0].message})",
            file=sys.stderr,
        )

    for name in args.report or list(REPORTS):
        title, _ = REPORTS[name]
        section(title)
        show(run_report(dataset, name, settings))

    print("\n✓ Analysis complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
