"""Data-quality checks: import verification, missing values and logical anomalies.

Nothing here repairs data. Anomalous records stay in the dataset and are only
counted and listed.
"""

import pandas as pd

from .records import CSV_COLUMNS, TABLE, VIEW

# (anomaly name, SQL condition over patient_stays)
ANOMALY_RULES = [
    ("discharge_before_admission", "discharge_date < date_of_admission"),
    ("zero_day_stay", "los_days = 0"),
    ("negative_billing", "billing_amount < 0"),
    ("negative_age", "age < 0"),
    ("missing_admission_date", "date_of_admission IS NULL"),
    ("missing_discharge_date", "discharge_date IS NULL"),
]


def record_count(dataset) -> pd.DataFrame:
    df = dataset.query(f"SELECT count(*) AS total_records FROM {TABLE}")
    df["rejected_rows"] = len(dataset.rejected)
    return df


def missing_values(dataset) -> pd.DataFrame:
    """One row per input column with the number of records where it is NULL."""
    counts = ",\n            ".join(f"count(*) - count({column}) AS {column}" for column in CSV_COLUMNS)
    row = dataset.query(f"""
        SELECT
            {counts}
        FROM {TABLE}
    """)
    return pd.DataFrame(
        {"column": list(CSV_COLUMNS), "missing": [int(row.at[0, column]) for column in CSV_COLUMNS]}
    )


def date_ranges(dataset) -> pd.DataFrame:
    return dataset.query(f"""
        SELECT
            min(date_of_admission) AS earliest_admission,
            max(date_of_admission) AS latest_admission,
            min(discharge_date) AS earliest_discharge,
            max(discharge_date) AS latest_discharge
        FROM {TABLE}
    """)


def summary_statistics(dataset) -> pd.DataFrame:
    return dataset.query(f"""
        SELECT
            min(age) AS min_age,
            max(age) AS max_age,
            round(avg(age), 2) AS avg_age,
            round(min(billing_amount), 2) AS min_billing,
            round(max(billing_amount), 2) AS max_billing,
            round(avg(billing_amount), 2) AS avg_billing
        FROM {TABLE}
    """)


def anomaly_counts(dataset) -> pd.DataFrame:
    """Number of records matching each anomaly rule, plus rows rejected at load."""
    counts = ",\n            ".join(f"count(*) FILTER (WHERE {condition}) AS {name}" for name, condition in ANOMALY_RULES)
    row = dataset.query(f"""
        SELECT
            {counts}
        FROM {VIEW}
    """)
    checks = [("rejected_rows", len(dataset.rejected))]
    checks += [(name, int(row.at[0, name])) for name, _ in ANOMALY_RULES]
    return pd.DataFrame(checks, columns=["check", "records"])


def anomalies(dataset) -> pd.DataFrame:
    """Every record matching an anomaly rule, one row per (record, anomaly)."""
    selects = "\n        UNION ALL\n".join(
        f"""
        SELECT '{name}' AS anomaly, patient_id, name, date_of_admission, discharge_date, los_days, billing_amount, age
        FROM {VIEW}
        WHERE {condition}"""
        for name, condition in ANOMALY_RULES
    )
    return dataset.query(f"""
        {selects}
        ORDER BY patient_id, anomaly
    """)


def rejected_rows(dataset) -> pd.DataFrame:
    return pd.DataFrame(
        [(row.line, row.error_type, row.column, row.message) for row in dataset.rejected],
        columns=["line", "error_type", "column", "message"],
    )
