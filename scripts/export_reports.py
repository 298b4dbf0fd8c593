"""
Run every report against the healthcare dataset and write the results
as files a dashboard or spreadsheet can pick up.

Usage:
    python scripts/export_reports.py [DATASET] [FORMAT]

DATASET is a CSV or a Parquet file from convert_to_parquet.py,
FORMAT one of parquet (default), json, csv.
"""

import os
import sys
import time

from healthcare_analysis.config import DEFAULT_CSV, DEFAULT_EXPORT_DIR, ReportSettings
from healthcare_analysis.dataset import load_dataset
from healthcare_analysis.export import FORMATS, export_reports
from healthcare_analysis.reports import REPORTS

OUT = os.path.join(os.path.dirname(__file__), "..", DEFAULT_EXPORT_DIR)


def main():
    source = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CSV
    fmt = sys.argv[2] if len(sys.argv) > 2 else "parquet"
    if fmt not in FORMATS:
        print(f"ERROR: unknown format {fmt!r}, expected one of {', '.join(FORMATS)}")
        sys.exit(1)

    start = time.time()
    try:
        settings = ReportSettings.from_env()
        dataset = load_dataset(source)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    print(f"Loaded {len(dataset):,} records ({len(dataset.rejected):,} rejected) from {source}")

    done = [time.time()]

    def progress(name, df, path):
        size = os.path.getsize(path)
        print(f"  [{len(done)}/{len(REPORTS)}] {name}.{fmt} — {len(df):,} rows, {size / 1e3:.1f} KB ({time.time() - done[-1]:.1f}s)")
        done.append(time.time())

    export_reports(dataset, OUT, fmt, settings=settings, on_written=progress)

    elapsed = time.time() - start
    print(f"\nAll done in {elapsed:.1f}s")

    total = sum(
        os.path.getsize(os.path.join(OUT, f))
        for f in os.listdir(OUT)
        if os.path.isfile(os.path.join(OUT, f))
    )
    print(f"Total output size: {total / 1e3:.1f} KB")


if __name__ == "__main__":
    main()
