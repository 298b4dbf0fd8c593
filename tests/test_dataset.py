"""Tests for loading the dataset from CSV, Parquet and in-memory records."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from healthcare_analysis.dataset import DataLoadError, Dataset, load_dataset
from healthcare_analysis.export import convert_csv_to_parquet
from healthcare_analysis.records import VIEW, PatientRecord


def test_from_csv_loads_good_rows_in_file_order(csv_path):
    dataset = load_dataset(csv_path)

    assert len(dataset) == 5
    assert [r.patient_id for r in dataset.records] == [1, 2, 3, 4, 5]
    assert [r.name for r in dataset.records] == [
        "Bobby JacksOn", "LesLie TErRy", "Andrew Watts", "Blank Fields", "DaNnY sMitH",
    ]
    first = dataset.records[0]
    assert first.date_of_admission == date(2024, 1, 31)
    assert first.discharge_date == date(2024, 2, 2)
    assert first.billing_amount == pytest.approx(18856.28)
    assert first.age == 30
    assert dataset.records[2].hospital == "Hernandez Rogers and Vang,"


def test_from_csv_keeps_blank_fields_as_missing(csv_path):
    blank = load_dataset(csv_path).records[3]
    assert blank.age is None
    assert blank.billing_amount is None
    assert blank.blood_type is None
    assert blank.length_of_stay == 3


def test_from_csv_reports_malformed_rows_without_failing(csv_path):
    dataset = load_dataset(csv_path)

    assert len(dataset.rejected) == 3
    lines = [row.line for row in dataset.rejected]
    assert lines == sorted(lines)
    assert all(row.message for row in dataset.rejected)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "nope.csv")
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "nope.parquet")


def test_unreadable_files_raise_data_load_error(tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("")
    not_parquet = tmp_path / "dataset.parquet"
    not_parquet.write_bytes(b"PAR0 this is not a parquet file")

    with pytest.raises(DataLoadError, match="empty"):
        load_dataset(empty)
    with pytest.raises(DataLoadError, match="Could not read"):
        load_dataset(not_parquet)


def test_parquet_conversion_preserves_records(csv_path, tmp_path):
    parquet_path = tmp_path / "healthcare_dataset.parquet"

    rows, rejected = convert_csv_to_parquet(csv_path, parquet_path)

    assert (rows, rejected) == (5, 3)
    converted = load_dataset(parquet_path)
    assert converted.records == load_dataset(csv_path).records
    assert converted.rejected == ()


def test_from_records_rejects_duplicate_ids():
    with pytest.raises(ValueError):
        Dataset.from_records([PatientRecord(1), PatientRecord(1)])


def test_from_records_empty():
    dataset = Dataset.from_records([])
    assert len(dataset) == 0
    assert dataset.query(f"SELECT count(*) AS n FROM {VIEW}").at[0, "n"] == 0


def test_length_of_stay_matches_dates_for_every_record(sample_dataset, build):
    odd = build(
        {"date_of_admission": date(2020, 1, 10), "discharge_date": date(2020, 1, 5)},
        {"date_of_admission": date(2020, 2, 1), "discharge_date": date(2020, 2, 1)},
        {"date_of_admission": None},
    )
    for dataset in (sample_dataset, odd):
        df = dataset.query(f"SELECT patient_id, los_days FROM {VIEW} ORDER BY patient_id")
        by_id = dict(zip(df["patient_id"], df["los_days"]))
        for record in dataset.records:
            expected = record.length_of_stay
            if expected is None:
                assert pd.isna(by_id[record.patient_id])
            else:
                assert by_id[record.patient_id] == expected
                assert expected == (record.discharge_date - record.date_of_admission).days


def test_view_cost_per_day_is_null_for_non_positive_stays(build):
    dataset = build(
        {"billing_amount": 900.0, "date_of_admission": date(2020, 1, 1), "discharge_date": date(2020, 1, 4)},
        {"billing_amount": 900.0, "date_of_admission": date(2020, 1, 1), "discharge_date": date(2020, 1, 1)},
        {"billing_amount": 900.0, "date_of_admission": date(2020, 1, 9), "discharge_date": date(2020, 1, 1)},
    )
    df = dataset.query(f"SELECT cost_per_day FROM {VIEW} ORDER BY patient_id")
    assert df["cost_per_day"].iloc[0] == pytest.approx(300.0)
    assert df["cost_per_day"].iloc[1:].isna().all()
