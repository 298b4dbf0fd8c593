"""Shared fixtures: small in-memory datasets and a CSV export with a few bad lines."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from healthcare_analysis.dataset import Dataset
from healthcare_analysis.records import PatientRecord

DEFAULTS = {
    "age": 40,
    "gender": "Female",
    "blood_type": "A+",
    "medical_condition": "Asthma",
    "date_of_admission": date(2020, 1, 1),
    "doctor": "Matthew Smith",
    "hospital": "Sons and Miller",
    "insurance_provider": "Aetna",
    "billing_amount": 1000.0,
    "room_number": 101,
    "admission_type": "Elective",
    "discharge_date": date(2020, 1, 5),
    "medication": "Aspirin",
    "test_results": "Normal",
}

CSV_HEADER = (
    "Name,Age,Gender,Blood Type,Medical Condition,Date of Admission,Doctor,Hospital,"
    "Insurance Provider,Billing Amount,Room Number,Admission Type,Discharge Date,Medication,Test Results"
)

GOOD_LINES = [
    "Bobby JacksOn,30,Male,B-,Cancer,2024-01-31,Matthew Smith,Sons and Miller,Blue Cross,18856.281305978155,328,Urgent,2024-02-02,Paracetamol,Normal",
    "LesLie TErRy,62,Male,A+,Obesity,2019-08-20,Samantha Davies,Kim Inc,Medicare,33643.327286577885,265,Emergency,2019-08-26,Ibuprofen,Inconclusive",
    'Andrew Watts,28,Female,O+,Diabetes,2020-11-18,Kevin Wells,"Hernandez Rogers and Vang,",Medicare,37909.78240987528,450,Elective,2020-12-18,Ibuprofen,Abnormal',
    "Blank Fields,,Female,,Asthma,2021-03-01,,,Aetna,,112,Urgent,2021-03-04,,",
    "DaNnY sMitH,76,Female,A-,Obesity,2022-09-22,Tiffany Mitchell,Cook PLC,Aetna,27955.096078842456,205,Emergency,2022-10-07,Aspirin,Normal",
]

BAD_LINES = [
    "Short Row,40,Male",
    "Bad Date,40,Male,O+,Asthma,2020-13-45,Kevin Wells,Kim Inc,Aetna,100.0,1,Urgent,2020-01-05,Aspirin,Normal",
    "Bad Bill,40,Male,O+,Asthma,2020-01-01,Kevin Wells,Kim Inc,Aetna,lots,1,Urgent,2020-01-05,Aspirin,Normal",
]


def make_record(patient_id: int, **overrides) -> PatientRecord:
    values = dict(DEFAULTS, name=f"Patient {patient_id}")
    values.update(overrides)
    return PatientRecord(patient_id=patient_id, **values)


@pytest.fixture
def build():
    """Return a helper building a Dataset from per-record overrides, ids numbered from 1."""

    def _build(*rows: dict) -> Dataset:
        return Dataset.from_records(make_record(i, **row) for i, row in enumerate(rows, start=1))

    return _build


@pytest.fixture
def sample_dataset() -> Dataset:
    """30 admissions spread over every provider, condition, admission type and 2019-2023."""
    providers = ["Aetna", "Blue Cross", "Cigna", "Medicare", "UnitedHealthcare"]
    conditions = ["Arthritis", "Asthma", "Cancer", "Diabetes", "Hypertension", "Obesity"]
    admission_types = ["Elective", "Emergency", "Urgent"]
    records = []
    for i in range(30):
        admitted = date(2019 + i % 5, 1 + i % 12, 1 + i % 28)
        records.append(make_record(
            i + 1,
            age=20 + i * 2,
            insurance_provider=providers[i % 5],
            medical_condition=conditions[i % 6],
            admission_type=admission_types[i % 3],
            billing_amount=1000.0 + (i * 37 % 50) * 100.0,
            date_of_admission=admitted,
            discharge_date=admitted + timedelta(days=i % 15 + 1),
            doctor=f"Doctor {i % 7}",
        ))
    return Dataset.from_records(records)


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "healthcare_dataset.csv"
    lines = [CSV_HEADER, GOOD_LINES[0], GOOD_LINES[1], BAD_LINES[0], GOOD_LINES[2], BAD_LINES[1],
             GOOD_LINES[3], BAD_LINES[2], GOOD_LINES[4]]
    path.write_text("\n".join(lines) + "\n")
    return path
