"""Tests for report export."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from healthcare_analysis.export import export_reports, write_report
from healthcare_analysis.reports import run_report


def test_export_reports_as_json(sample_dataset, tmp_path):
    written = export_reports(sample_dataset, tmp_path, "json", names=["yearly_trends", "top_claims"])

    assert set(written) == {"yearly_trends", "top_claims"}
    with open(written["yearly_trends"]) as f:
        trends = json.load(f)
    assert [row["admission_year"] for row in trends] == [2019, 2020, 2021, 2022, 2023]
    with open(written["top_claims"]) as f:
        claims = json.load(f)
    assert len(claims) == 10
    assert claims[0]["cost_rank"] == 1


def test_json_export_writes_dates_as_iso_and_nulls(build, tmp_path):
    dataset = build({"billing_amount": None})
    df = run_report(dataset, "date_ranges")
    df["empty"] = float("nan")

    with open(write_report(df, tmp_path, "date_ranges", "json")) as f:
        row = json.load(f)[0]

    assert row["earliest_admission"].startswith("2020-01-01")
    assert row["empty"] is None


@pytest.mark.parametrize("fmt, reader", [("parquet", pd.read_parquet), ("csv", pd.read_csv)])
def test_export_tabular_formats(sample_dataset, tmp_path, fmt, reader):
    df = run_report(sample_dataset, "billing_by_insurance")

    path = write_report(df, tmp_path / "out", "billing_by_insurance", fmt)

    assert path.endswith(f"billing_by_insurance.{fmt}")
    assert reader(path)["patient_count"].tolist() == df["patient_count"].tolist()


def test_unknown_export_format(tmp_path):
    with pytest.raises(ValueError):
        write_report(pd.DataFrame(), tmp_path, "x", "xlsx")


def test_export_reports_reports_each_written_file(sample_dataset, tmp_path):
    seen = []

    written = export_reports(
        sample_dataset,
        tmp_path,
        "csv",
        names=["financial_kpis", "top_claims"],
        on_written=lambda name, df, path: seen.append((name, len(df), path)),
    )

    assert seen == [
        ("financial_kpis", 1, written["financial_kpis"]),
        ("top_claims", 10, written["top_claims"]),
    ]
