"""Write the dataset and report results to disk for dashboards and spreadsheets."""

import json
import math
import os

import pandas as pd

from .config import DEFAULT_SETTINGS
from .dataset import Dataset
from .records import TABLE
from .reports import REPORTS, run_report

FORMATS = ("parquet", "json", "csv")


def convert_csv_to_parquet(csv_path, parquet_path) -> tuple[int, int]:
    """Load a CSV once and write the typed table to Parquet. Returns (rows, rejected rows)."""
    dataset = Dataset.from_csv(csv_path)
    target = os.fspath(parquet_path).replace("'", "''")
    dataset.connection.execute(f"COPY (SELECT * FROM {TABLE} ORDER BY patient_id) TO '{target}' (FORMAT PARQUET, COMPRESSION ZSTD)")
    return len(dataset), len(dataset.rejected)


def _json_value(val):
    if val is None or val is pd.NaT:
        return None
    if isinstance(val, float) and math.isnan(val):
        return None
    if hasattr(val, "isoformat"):
        return val.isoformat()
    if hasattr(val, "item"):
        return val.item()
    return val


def write_report(df: pd.DataFrame, out_dir, name: str, fmt: str = "parquet") -> str:
    """Write one report DataFrame as ``<out_dir>/<name>.<fmt>`` and return the path."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format {fmt!r}, expected one of {list(FORMATS)}")
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, f"{name}.{fmt}")

    if fmt == "parquet":
        df.to_parquet(path, engine="pyarrow", compression="snappy", index=False)
    elif fmt == "csv":
        df.to_csv(path, index=False)
    else:
        columns = list(df.columns)
        data = [
            {col: _json_value(val) for col, val in zip(columns, row)}
            for row in df.itertuples(index=False, name=None)
        ]
        with open(path, "w") as f:
            json.dump(data, f, separators=(",", ":"))
    return path


def export_reports(
    dataset, out_dir, fmt: str = "parquet", names=None, settings=DEFAULT_SETTINGS, on_written=None
) -> dict[str, str]:
    """Run the given reports (default: all) and write each one. Returns name -> path.

    ``on_written(name, df, path)`` is called after each file is written.
    """
    written = {}
    for name in names or list(REPORTS):
        df = run_report(dataset, name, settings)
        written[name] = write_report(df, out_dir, name, fmt)
        if on_written is not None:
            on_written(name, df, written[name])
    return written
