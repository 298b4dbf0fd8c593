"""Load the healthcare dataset once into an in-memory DuckDB table and freeze it."""

import os
from dataclasses import dataclass

import duckdb
import pandas as pd
import pyarrow as pa

from .records import ARROW_SCHEMA, COLUMNS, CSV_COLUMNS, TABLE, VIEW, PatientRecord

PARQUET_SUFFIXES = (".parquet", ".pq")


class DataLoadError(ValueError):
    """The input file exists but DuckDB could not read it as a healthcare dataset."""


@dataclass(frozen=True)
class RejectedRow:
    """A CSV line DuckDB could not read: wrong column count, bad date, non-numeric value."""

    line: int
    error_type: str
    column: str | None
    message: str


@dataclass(frozen=True, eq=False)
class Dataset:
    """The loaded record set and the DuckDB connection holding it.

    Nothing writes to the connection after loading; every analytical function takes
    the dataset explicitly and reads through ``query``.
    """

    connection: duckdb.DuckDBPyConnection
    records: tuple[PatientRecord, ...]
    rejected: tuple[RejectedRow, ...] = ()
    source: str | None = None

    def __len__(self):
        return len(self.records)

    def query(self, sql: str, params=None) -> pd.DataFrame:
        """Run a read-only statement on its own cursor and return the result as a DataFrame."""
        cursor = self.connection.cursor()
        try:
            return cursor.execute(sql, params or []).fetchdf()
        finally:
            cursor.close()

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_csv(cls, path) -> "Dataset":
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Input file not found: {path}")
        if os.path.getsize(path) == 0:
            raise DataLoadError(f"Input file is empty: {path}")

        con = duckdb.connect()
        column_types = ", ".join(f"'{name}': '{sql_type}'" for name, sql_type in CSV_COLUMNS.items())
        # Columns are mapped by position; the header row is skipped, not matched by name.
        try:
            con.execute(f"""
                CREATE TABLE {TABLE} AS
                SELECT
                    row_number() OVER ()::INTEGER AS patient_id,
                    {_select_list(billing="round(billing_amount, 2)")}
                FROM read_csv(
                    '{_quote(path)}',
                    header = true,
                    delim = ',',
                    quote = '"',
                    escape = '"',
                    dateformat = '%Y-%m-%d',
                    columns = {{{column_types}}},
                    store_rejects = true
                )
            """)
            rejected = tuple(
                RejectedRow(line=int(line), error_type=error_type, column=column, message=message)
                for line, error_type, column, message in con.execute("""
                    SELECT
                        line,
                        min(error_type::VARCHAR) AS error_type,
                        string_agg(column_name, ', ') AS columns,
                        string_agg(error_message, '; ') AS message
                    FROM reject_errors
                    GROUP BY line
                    ORDER BY line
                """).fetchall()
            )
        except duckdb.Error as e:
            con.close()
            raise DataLoadError(f"Could not read {path}: {e}") from e
        return cls._freeze(con, rejected=rejected, source=path)

    @classmethod
    def from_parquet(cls, path) -> "Dataset":
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Input file not found: {path}")

        con = duckdb.connect()
        try:
            con.execute(f"""
                CREATE TABLE {TABLE} AS
                SELECT
                    patient_id::INTEGER AS patient_id,
                    {_select_list()}
                FROM read_parquet('{_quote(path)}')
            """)
        except duckdb.Error as e:
            con.close()
            raise DataLoadError(f"Could not read {path}: {e}") from e
        return cls._freeze(con, source=path)

    @classmethod
    def from_records(cls, records) -> "Dataset":
        """Build a dataset from PatientRecord values already in memory."""
        records = list(records)
        ids = [record.patient_id for record in records]
        if len(set(ids)) != len(ids):
            raise ValueError("patient_id values must be unique")

        con = duckdb.connect()
        incoming = pa.Table.from_pylist([record.as_row() for record in records], schema=ARROW_SCHEMA)
        con.register("incoming_records", incoming)
        con.execute(f"CREATE TABLE {TABLE} AS SELECT * FROM incoming_records")
        con.unregister("incoming_records")
        return cls._freeze(con)

    @classmethod
    def _freeze(cls, con, rejected=(), source=None) -> "Dataset":
        # Derived fields live in a view so they are recomputed on every read.
        con.execute(f"""
            CREATE VIEW {VIEW} AS
            SELECT
                *,
                datediff('day', date_of_admission, discharge_date) AS los_days,
                CASE
                    WHEN datediff('day', date_of_admission, discharge_date) > 0
                    THEN billing_amount / datediff('day', date_of_admission, discharge_date)
                END AS cost_per_day
            FROM {TABLE}
        """)
        rows = con.execute(f"SELECT {', '.join(COLUMNS)} FROM {TABLE} ORDER BY patient_id").fetchall()
        records = tuple(PatientRecord(*row) for row in rows)
        return cls(connection=con, records=records, rejected=tuple(rejected), source=source)


def load_dataset(path) -> Dataset:
    """Load a CSV export or a Parquet file written by convert_to_parquet.py."""
    if os.fspath(path).lower().endswith(PARQUET_SUFFIXES):
        return Dataset.from_parquet(path)
    return Dataset.from_csv(path)


def _select_list(billing="billing_amount") -> str:
    columns = [f"{billing} AS billing_amount" if name == "billing_amount" else name for name in CSV_COLUMNS]
    return ",\n                ".join(columns)


def _quote(path: str) -> str:
    return path.replace("'", "''")
