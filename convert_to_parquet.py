"""Convert the healthcare dataset CSV to a typed Parquet file for fast repeated analysis."""

import os
import sys
import time

from healthcare_analysis.config import DEFAULT_CSV, DEFAULT_PARQUET
from healthcare_analysis.dataset import DataLoadError
from healthcare_analysis.export import convert_csv_to_parquet

CSV_PATH = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CSV
PARQUET_PATH = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_PARQUET

print(f"Converting {CSV_PATH} → {PARQUET_PATH} ...")
start = time.time()

try:
    rows, rejected = convert_csv_to_parquet(CSV_PATH, PARQUET_PATH)
except (FileNotFoundError, DataLoadError) as e:
    print(f"ERROR: {e}")
    sys.exit(1)

elapsed = time.time() - start
size_kb = round(os.path.getsize(PARQUET_PATH) / 1e3, 1)

print(f"Done in {elapsed:.1f}s — {rows:,} rows, {size_kb} KB")
if rejected:
    print(f"WARNING: {rejected:,} malformed rows were skipped")
