"""Patient admission record type and the column schema shared by every loader."""

from dataclasses import dataclass
from datetime import date

import pyarrow as pa

TABLE = "healthcare_data"
VIEW = "patient_stays"

# Input column order of healthcare_dataset.csv, with the DuckDB type each one is read as.
CSV_COLUMNS: dict[str, str] = {
    "name": "VARCHAR",
    "age": "INTEGER",
    "gender": "VARCHAR",
    "blood_type": "VARCHAR",
    "medical_condition": "VARCHAR",
    "date_of_admission": "DATE",
    "doctor": "VARCHAR",
    "hospital": "VARCHAR",
    "insurance_provider": "VARCHAR",
    "billing_amount": "DOUBLE",
    "room_number": "INTEGER",
    "admission_type": "VARCHAR",
    "discharge_date": "DATE",
    "medication": "VARCHAR",
    "test_results": "VARCHAR",
}

COLUMNS = ["patient_id", *CSV_COLUMNS]

CATEGORICAL_COLUMNS = (
    "insurance_provider",
    "medical_condition",
    "admission_type",
    "gender",
    "blood_type",
    "hospital",
    "doctor",
    "medication",
    "test_results",
)

# Numeric measures available on the patient_stays view
MEASURES = ("billing_amount", "los_days", "age", "cost_per_day")

_ARROW_TYPES = {"VARCHAR": pa.string(), "INTEGER": pa.int32(), "DATE": pa.date32(), "DOUBLE": pa.float64()}

ARROW_SCHEMA = pa.schema(
    [("patient_id", pa.int32())]
    + [(name, _ARROW_TYPES[sql_type]) for name, sql_type in CSV_COLUMNS.items()]
)


@dataclass(frozen=True)
class PatientRecord:
    """One hospital admission. Length of stay and cost per day are derived, never stored."""

    patient_id: int
    name: str | None = None
    age: int | None = None
    gender: str | None = None
    blood_type: str | None = None
    medical_condition: str | None = None
    date_of_admission: date | None = None
    doctor: str | None = None
    hospital: str | None = None
    insurance_provider: str | None = None
    billing_amount: float | None = None
    room_number: int | None = None
    admission_type: str | None = None
    discharge_date: date | None = None
    medication: str | None = None
    test_results: str | None = None

    @property
    def length_of_stay(self) -> int | None:
        # Negative when discharged before admission; flagged by the quality checks, not clamped.
        if self.date_of_admission is None or self.discharge_date is None:
            return None
        return (self.discharge_date - self.date_of_admission).days

    @property
    def cost_per_day(self) -> float | None:
        los = self.length_of_stay
        if los is None or los <= 0 or self.billing_amount is None:
            return None
        return self.billing_amount / los

    def as_row(self) -> dict:
        return {column: getattr(self, column) for column in COLUMNS}
