"""Grouped statistics, equal-frequency binning, ranking, trends and modes over a Dataset.

Every function is a single SQL query against the ``patient_stays`` view and returns a
pandas DataFrame. Grouping keys and measures are checked against fixed column lists
before they are interpolated into SQL.
"""

import pandas as pd

from .config import DEFAULT_SETTINGS, STDDEV_FUNCTIONS
from .records import CATEGORICAL_COLUMNS, MEASURES, VIEW

SORT_COLUMNS = ("count", "mean", "min", "max", "stddev", "cv")
RANK_FUNCTIONS = {"competition": "rank", "dense": "dense_rank"}

VIEW_COLUMNS = (
    "patient_id",
    "name",
    "age",
    "date_of_admission",
    "discharge_date",
    "billing_amount",
    "room_number",
    *CATEGORICAL_COLUMNS,
    "los_days",
    "cost_per_day",
)


def _keys(keys) -> list[str]:
    if isinstance(keys, str):
        keys = [keys]
    keys = list(keys)
    if not keys:
        raise ValueError("At least one grouping key is required")
    unknown = [key for key in keys if key not in CATEGORICAL_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown grouping key(s) {unknown}, expected any of {list(CATEGORICAL_COLUMNS)}")
    return keys


def _optional_keys(keys) -> list[str]:
    return [] if keys is None else _keys(keys)


def _measure(measure: str) -> str:
    if measure not in MEASURES:
        raise ValueError(f"Unknown measure {measure!r}, expected one of {list(MEASURES)}")
    return measure


def _partition_clause(keys) -> str:
    return f"PARTITION BY {', '.join(keys)} " if keys else ""


def _count(value, name: str) -> int:
    value = int(value)
    if value < 1:
        raise ValueError(f"{name} must be at least 1")
    return value


# ---------------------------------------------------------------------------
# Grouped statistics
# ---------------------------------------------------------------------------

def grouped_stats(
    dataset,
    keys,
    measure: str = "billing_amount",
    *,
    label: str | None = None,
    stddev: str | None = None,
    min_count: int | None = None,
    sort_by: str = "mean",
    descending: bool = True,
    limit: int | None = None,
) -> pd.DataFrame:
    """Count, mean, min, max, standard deviation and coefficient of variation per group.

    Output columns are the keys, ``patient_count`` and ``avg_/min_/max_/std_dev_<label>``
    plus ``cv_<label>_pct``; ``label`` defaults to the measure name. CV is NULL when the
    group mean is zero. Rows are ordered by ``sort_by``, ties broken by the keys ascending.
    ``stddev`` defaults to ``DEFAULT_SETTINGS.stddev``.
    """
    keys = _keys(keys)
    measure = _measure(measure)
    if stddev is None:
        stddev = DEFAULT_SETTINGS.stddev
    if stddev not in STDDEV_FUNCTIONS:
        raise ValueError(f"Unknown stddev variant {stddev!r}, expected one of {sorted(STDDEV_FUNCTIONS)}")
    if sort_by not in SORT_COLUMNS:
        raise ValueError(f"Unknown sort column {sort_by!r}, expected one of {list(SORT_COLUMNS)}")
    label = label or measure
    std = STDDEV_FUNCTIONS[stddev]
    key_list = ", ".join(keys)

    sort_column = {
        "count": "patient_count",
        "mean": f"avg_{label}",
        "min": f"min_{label}",
        "max": f"max_{label}",
        "stddev": f"std_dev_{label}",
        "cv": f"cv_{label}_pct",
    }[sort_by]
    direction = "DESC" if descending else "ASC"
    having = f"HAVING count(*) >= {_count(min_count, 'min_count')}" if min_count else ""
    limit_clause = f"LIMIT {_count(limit, 'limit')}" if limit is not None else ""

    return dataset.query(f"""
        SELECT
            {key_list},
            count(*) AS patient_count,
            round(avg({measure}), 2) AS avg_{label},
            round(min({measure}), 2) AS min_{label},
            round(max({measure}), 2) AS max_{label},
            round({std}({measure}), 2) AS std_dev_{label},
            round({std}({measure}) / nullif(avg({measure}), 0) * 100, 2) AS cv_{label}_pct
        FROM {VIEW}
        GROUP BY {key_list}
        {having}
        ORDER BY {sort_column} {direction} NULLS LAST, {key_list}
        {limit_clause}
    """)


# ---------------------------------------------------------------------------
# Equal-frequency binning
# ---------------------------------------------------------------------------

def _binned_sql(measure: str, bins: int, keys: list[str]) -> str:
    # ntile() hands the remainder to the first bins: sizes differ by at most one.
    key_columns = "".join(f"{key}, " for key in keys)
    return f"""
        SELECT
            patient_id,
            {key_columns}{measure} AS value,
            ntile({bins}) OVER ({_partition_clause(keys)}ORDER BY {measure}, patient_id) AS bin
        FROM {VIEW}
        WHERE {measure} IS NOT NULL
    """


def assign_bins(dataset, measure: str, bins: int, partition_by=None) -> pd.DataFrame:
    """Assign every record with a non-NULL measure to one of ``bins`` equal-count bins."""
    measure = _measure(measure)
    bins = _count(bins, "bins")
    keys = _optional_keys(partition_by)
    order = "".join(f"{key}, " for key in keys)
    return dataset.query(f"""
        {_binned_sql(measure, bins, keys)}
        ORDER BY {order}bin, value, patient_id
    """)


def bin_boundaries(dataset, measure: str, bins: int, partition_by=None) -> pd.DataFrame:
    """Minimum value of each bin per partition, plus the partition maximum.

    The minimum of bin k+1 is the discrete k/N-th percentile; nothing is interpolated.
    Bins left empty in partitions smaller than ``bins`` are NULL.
    """
    measure = _measure(measure)
    bins = _count(bins, "bins")
    keys = _optional_keys(partition_by)
    bin_minimums = ",\n            ".join(
        f"min(CASE WHEN bin = {k} THEN value END) AS bin_{k}_min" for k in range(1, bins + 1)
    )
    if keys:
        key_list = ", ".join(keys)
        return dataset.query(f"""
            WITH binned AS ({_binned_sql(measure, bins, keys)})
            SELECT
                {key_list},
                count(*) AS members,
                {bin_minimums},
                max(value) AS max_value
            FROM binned
            GROUP BY {key_list}
            ORDER BY {key_list}
        """)
    return dataset.query(f"""
        WITH binned AS ({_binned_sql(measure, bins, keys)})
        SELECT
            count(*) AS members,
            {bin_minimums},
            max(value) AS max_value
        FROM binned
    """)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def rank_records(
    dataset,
    measure: str,
    *,
    columns=(),
    descending: bool = True,
    method: str = "competition",
    rank_name: str = "rank",
    limit: int | None = None,
) -> pd.DataFrame:
    """Rank records by a measure. Tied values share a rank; competition ranking then skips ahead."""
    measure = _measure(measure)
    if method not in RANK_FUNCTIONS:
        raise ValueError(f"Unknown ranking method {method!r}, expected one of {list(RANK_FUNCTIONS)}")
    if not rank_name.isidentifier():
        raise ValueError(f"Invalid rank column name {rank_name!r}")
    extra = [column for column in columns if column not in (measure, "patient_id")]
    unknown = [column for column in extra if column not in VIEW_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown column(s) {unknown}")
    direction = "DESC" if descending else "ASC"
    select = ", ".join(["patient_id", *extra, measure])
    limit_clause = f"LIMIT {_count(limit, 'limit')}" if limit is not None else ""
    return dataset.query(f"""
        SELECT
            {select},
            {RANK_FUNCTIONS[method]}() OVER (ORDER BY {measure} {direction}) AS {rank_name}
        FROM {VIEW}
        WHERE {measure} IS NOT NULL
        ORDER BY {rank_name}, patient_id
        {limit_clause}
    """)


# ---------------------------------------------------------------------------
# Temporal trends
# ---------------------------------------------------------------------------

def yearly_trends(dataset) -> pd.DataFrame:
    """Admissions, revenue, mean billing and mean length of stay per admission year.

    Years without admissions are omitted, as are records with no admission date.
    """
    return dataset.query(f"""
        SELECT
            year(date_of_admission) AS admission_year,
            count(*) AS total_admissions,
            round(avg(billing_amount), 2) AS avg_billing,
            round(sum(billing_amount), 2) AS total_revenue,
            round(avg(los_days), 2) AS avg_los_days
        FROM {VIEW}
        WHERE date_of_admission IS NOT NULL
        GROUP BY admission_year
        ORDER BY admission_year
    """)


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

def mode_sql(source: str, keys, field: str) -> str:
    """SQL selecting, per group of ``keys`` in ``source``, the most frequent ``field`` value.

    Ties go to the lexicographically smallest value. Result columns are the keys,
    ``mode_value`` and ``mode_count``. A group whose ``field`` is always NULL is still
    listed, with a NULL ``mode_value`` and a ``mode_count`` of 0.
    """
    key_list = ", ".join(keys)
    group_keys = ", ".join(f"g.{key}" for key in keys)
    join_on = " AND ".join(f"g.{key} IS NOT DISTINCT FROM m.{key}" for key in keys)
    return f"""
        SELECT {group_keys}, m.category AS mode_value, coalesce(m.n, 0) AS mode_count
        FROM (SELECT DISTINCT {key_list} FROM {source}) g
        LEFT JOIN (
            SELECT
                {key_list},
                category,
                n,
                row_number() OVER (PARTITION BY {key_list} ORDER BY n DESC, category ASC) AS pick
            FROM (
                SELECT {key_list}, {field} AS category, count(*) AS n
                FROM {source}
                WHERE {field} IS NOT NULL
                GROUP BY {key_list}, {field}
            )
        ) m ON {join_on} AND m.pick = 1
    """


def most_frequent(dataset, keys, field: str) -> pd.DataFrame:
    """Most common value of a categorical ``field`` within each group of ``keys``."""
    keys = _keys(keys)
    if field not in CATEGORICAL_COLUMNS:
        raise ValueError(f"Unknown categorical field {field!r}")
    return dataset.query(f"""
        SELECT * FROM ({mode_sql(VIEW, keys, field)})
        ORDER BY {', '.join(keys)}
    """)

