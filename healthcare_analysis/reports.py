"""The report catalogue: quality checks and financial analysis queries, in run order.

Research questions:
1. Does insurance provider correlate with billing amounts?
2. Are certain medical conditions more expensive to treat?
3. Which admission type has the longest hospital stays?
"""

import pandas as pd

from . import quality, stats
from .config import DEFAULT_SETTINGS
from .records import VIEW

# Aggregate cost per day: mean billing over mean stay, undefined unless the mean stay is positive.
AVG_COST_PER_DAY = "round(CASE WHEN avg(los_days) > 0 THEN avg(billing_amount) / avg(los_days) END, 2)"


# ---------------------------------------------------------------------------
# Data quality
# ---------------------------------------------------------------------------

def record_count(dataset, settings=DEFAULT_SETTINGS):
    return quality.record_count(dataset)


def missing_values(dataset, settings=DEFAULT_SETTINGS):
    return quality.missing_values(dataset)


def date_ranges(dataset, settings=DEFAULT_SETTINGS):
    return quality.date_ranges(dataset)


def summary_statistics(dataset, settings=DEFAULT_SETTINGS):
    return quality.summary_statistics(dataset)


def data_quality(dataset, settings=DEFAULT_SETTINGS):
    return quality.anomaly_counts(dataset)


def anomalies(dataset, settings=DEFAULT_SETTINGS):
    """Records flagged by the anomaly checks; listed, never removed."""
    return quality.anomalies(dataset)


def rejected_rows(dataset, settings=DEFAULT_SETTINGS):
    return quality.rejected_rows(dataset)


# ---------------------------------------------------------------------------
# 1. Insurance providers
# ---------------------------------------------------------------------------

def billing_by_insurance(dataset, settings=DEFAULT_SETTINGS):
    """Test whether insurance type affects billing amounts."""
    return stats.grouped_stats(dataset, "insurance_provider", "billing_amount", label="billing", stddev=settings.stddev)


def _quartile_boundaries(dataset, measure, key, label):
    # Quartile boundaries are the minimum of the next quartile up.
    df = stats.bin_boundaries(dataset, measure, 4, partition_by=key)
    df = df.rename(columns={
        "bin_1_min": f"min_{label}",
        "bin_2_min": "percentile_25",
        "bin_3_min": "percentile_50_median",
        "bin_4_min": "percentile_75",
        "max_value": f"max_{label}",
    })
    df = df[[key, "members", f"min_{label}", "percentile_25", "percentile_50_median", "percentile_75", f"max_{label}"]]
    df = df.sort_values(["percentile_50_median", key], ascending=[False, True], na_position="last", kind="mergesort")
    return df.reset_index(drop=True)


def billing_quartiles_by_insurance(dataset, settings=DEFAULT_SETTINGS):
    """Billing spread beyond the average: quartile boundaries per provider."""
    return _quartile_boundaries(dataset, "billing_amount", "insurance_provider", "billing")


def top_claims(dataset, settings=DEFAULT_SETTINGS):
    """Outlier high-cost cases."""
    return stats.rank_records(
        dataset,
        "billing_amount",
        columns=("name", "insurance_provider", "medical_condition", "admission_type"),
        rank_name="cost_rank",
        limit=settings.top_claims,
    )


def insurance_market_share(dataset, settings=DEFAULT_SETTINGS):
    return dataset.query(f"""
        SELECT
            insurance_provider,
            count(*) AS patient_count,
            round(count(*) * 100.0 / (SELECT count(*) FROM {VIEW}), 2) AS market_share_pct
        FROM {VIEW}
        GROUP BY insurance_provider
        ORDER BY patient_count DESC, insurance_provider
    """)


# ---------------------------------------------------------------------------
# 2. Medical conditions
# ---------------------------------------------------------------------------

def billing_by_condition(dataset, settings=DEFAULT_SETTINGS):
    """Which conditions drive the highest costs."""
    return stats.grouped_stats(dataset, "medical_condition", "billing_amount", label="billing", stddev=settings.stddev)


def condition_cost_extremes(dataset, settings=DEFAULT_SETTINGS):
    """Most and least expensive conditions by average billing."""
    n = int(settings.extremes)
    return dataset.query(f"""
        WITH condition_costs AS (
            SELECT
                medical_condition,
                round(avg(billing_amount), 2) AS avg_billing,
                count(*) AS patient_count
            FROM {VIEW}
            GROUP BY medical_condition
        ),
        most_expensive AS (
            SELECT 'Most Expensive' AS category, *
            FROM condition_costs
            ORDER BY avg_billing DESC NULLS LAST, medical_condition
            LIMIT {n}
        ),
        least_expensive AS (
            SELECT 'Least Expensive' AS category, *
            FROM condition_costs
            ORDER BY avg_billing ASC NULLS LAST, medical_condition
            LIMIT {n}
        )
        SELECT * FROM most_expensive
        UNION ALL
        SELECT * FROM least_expensive
        ORDER BY category DESC, avg_billing DESC NULLS LAST, medical_condition
    """)


def condition_cost_variability(dataset, settings=DEFAULT_SETTINGS):
    """Conditions with inconsistent pricing, small groups left out."""
    df = stats.grouped_stats(
        dataset,
        "medical_condition",
        "billing_amount",
        label="billing",
        stddev=settings.stddev,
        min_count=settings.min_support,
        sort_by="cv",
        limit=settings.variability_limit,
    )
    return df[["medical_condition", "patient_count", "avg_billing", "std_dev_billing", "cv_billing_pct"]]


# ---------------------------------------------------------------------------
# 3. Admission types and length of stay
# ---------------------------------------------------------------------------

def los_by_admission_type(dataset, settings=DEFAULT_SETTINGS):
    """Which admission types consume the most bed days."""
    return dataset.query(f"""
        SELECT
            admission_type,
            count(*) AS patient_count,
            round(avg(los_days), 2) AS avg_los_days,
            min(los_days) AS min_los_days,
            max(los_days) AS max_los_days,
            round(avg(billing_amount), 2) AS avg_billing,
            {AVG_COST_PER_DAY} AS avg_cost_per_day
        FROM {VIEW}
        GROUP BY admission_type
        ORDER BY avg_los_days DESC NULLS LAST, admission_type
    """)


def los_quartiles_by_admission_type(dataset, settings=DEFAULT_SETTINGS):
    return _quartile_boundaries(dataset, "los_days", "admission_type", "los")


def longest_stays(dataset, settings=DEFAULT_SETTINGS):
    """Resource-intensive patients."""
    df = stats.rank_records(
        dataset,
        "los_days",
        columns=("name", "admission_type", "medical_condition", "date_of_admission", "discharge_date",
                 "billing_amount", "cost_per_day"),
        rank_name="stay_rank",
        limit=settings.longest_stays,
    )
    df["cost_per_day"] = df["cost_per_day"].round(2)
    return df


def cost_drivers(dataset, settings=DEFAULT_SETTINGS):
    """Insurance x condition x admission type, groups below the minimum support left out."""
    return dataset.query(f"""
        SELECT
            insurance_provider,
            medical_condition,
            admission_type,
            count(*) AS patient_count,
            round(avg(billing_amount), 2) AS avg_billing,
            round(avg(los_days), 2) AS avg_los_days,
            {AVG_COST_PER_DAY} AS avg_cost_per_day
        FROM {VIEW}
        GROUP BY insurance_provider, medical_condition, admission_type
        HAVING count(*) >= {int(settings.min_support)}
        ORDER BY avg_billing DESC NULLS LAST, insurance_provider, medical_condition, admission_type
        LIMIT {int(settings.cost_driver_limit)}
    """)


# ---------------------------------------------------------------------------
# 4. Cost segmentation
# ---------------------------------------------------------------------------

COST_DECILES = f"""
    SELECT
        *,
        ntile(10) OVER (ORDER BY billing_amount, patient_id) AS cost_decile
    FROM {VIEW}
    WHERE billing_amount IS NOT NULL
"""


def patient_cost_deciles(dataset, settings=DEFAULT_SETTINGS):
    """Billing decile of every patient, 1 = cheapest."""
    return dataset.query(f"""
        SELECT patient_id, name, billing_amount, cost_decile
        FROM ({COST_DECILES})
        ORDER BY cost_decile DESC, billing_amount DESC, patient_id
    """)


def cost_deciles(dataset, settings=DEFAULT_SETTINGS):
    """Profile of each billing decile, most expensive first."""
    keys = ["cost_decile"]
    return dataset.query(f"""
        WITH patient_costs AS ({COST_DECILES}),
        admission_modes AS ({stats.mode_sql("patient_costs", keys, "admission_type")}),
        condition_modes AS ({stats.mode_sql("patient_costs", keys, "medical_condition")}),
        insurance_modes AS ({stats.mode_sql("patient_costs", keys, "insurance_provider")})
        SELECT
            p.cost_decile,
            count(*) AS patient_count,
            round(avg(p.age), 1) AS avg_age,
            round(avg(p.billing_amount), 2) AS avg_billing,
            round(avg(p.los_days), 2) AS avg_los_days,
            any_value(a.mode_value) AS most_common_admission_type,
            any_value(c.mode_value) AS most_common_condition,
            any_value(i.mode_value) AS most_common_insurance
        FROM patient_costs p
        LEFT JOIN admission_modes a ON a.cost_decile = p.cost_decile
        LEFT JOIN condition_modes c ON c.cost_decile = p.cost_decile
        LEFT JOIN insurance_modes i ON i.cost_decile = p.cost_decile
        GROUP BY p.cost_decile
        ORDER BY p.cost_decile DESC
    """)


# ---------------------------------------------------------------------------
# 5. Trends and KPIs
# ---------------------------------------------------------------------------

def yearly_trends(dataset, settings=DEFAULT_SETTINGS):
    return stats.yearly_trends(dataset)


def financial_kpis(dataset, settings=DEFAULT_SETTINGS):
    """Executive summary metrics."""
    return dataset.query(f"""
        SELECT
            count(*) AS total_patients,
            round(avg(billing_amount), 2) AS avg_billing_per_patient,
            round(sum(billing_amount), 2) AS total_revenue,
            round(avg(los_days), 2) AS avg_length_of_stay,
            {AVG_COST_PER_DAY} AS avg_revenue_per_day,
            count(DISTINCT medical_condition) AS unique_conditions_treated,
            count(DISTINCT insurance_provider) AS insurance_providers_accepted,
            count(DISTINCT doctor) AS total_doctors
        FROM {VIEW}
    """)


# name -> (title, function); run order of the full analysis
REPORTS: dict[str, tuple[str, object]] = {
    "record_count": ("Verify import", record_count),
    "missing_values": ("Missing values by column", missing_values),
    "date_ranges": ("Admission and discharge date ranges", date_ranges),
    "summary_statistics": ("Age and billing summary statistics", summary_statistics),
    "data_quality": ("Data-quality anomalies", data_quality),
    "anomalies": ("Data-quality anomalies by record", anomalies),
    "rejected_rows": ("Malformed input rows", rejected_rows),
    "billing_by_insurance": ("Average billing amount by insurance provider", billing_by_insurance),
    "billing_quartiles_by_insurance": ("Billing distribution by insurance provider (quartiles)", billing_quartiles_by_insurance),
    "top_claims": ("Most expensive insurance claims", top_claims),
    "insurance_market_share": ("Insurance provider market share", insurance_market_share),
    "billing_by_condition": ("Average billing by medical condition", billing_by_condition),
    "condition_cost_extremes": ("Most and least expensive medical conditions", condition_cost_extremes),
    "condition_cost_variability": ("Medical conditions with highest cost variability", condition_cost_variability),
    "los_by_admission_type": ("Average length of stay by admission type", los_by_admission_type),
    "los_quartiles_by_admission_type": ("Length of stay distribution by admission type (quartiles)", los_quartiles_by_admission_type),
    "longest_stays": ("Longest hospital stays", longest_stays),
    "cost_drivers": ("Cost drivers: insurance x condition x admission type", cost_drivers),
    "cost_deciles": ("High-cost patient profiles by billing decile", cost_deciles),
    "patient_cost_deciles": ("Billing decile per patient", patient_cost_deciles),
    "yearly_trends": ("Financial summary by admission year", yearly_trends),
    "financial_kpis": ("Overall hospital financial KPIs", financial_kpis),
}


def run_report(dataset, name: str, settings=DEFAULT_SETTINGS) -> pd.DataFrame:
    try:
        _, function = REPORTS[name]
    except KeyError:
        raise ValueError(f"Unknown report {name!r}, expected one of {list(REPORTS)}") from None
    return function(dataset, settings)
