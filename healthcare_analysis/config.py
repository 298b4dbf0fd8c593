"""Default paths and report settings, overridable through HCA_* environment variables."""

import os
from dataclasses import dataclass, fields, replace

DEFAULT_CSV = "healthcare_dataset.csv"
DEFAULT_PARQUET = "healthcare_dataset.parquet"
DEFAULT_EXPORT_DIR = os.path.join("data", "reports")

ENV_PREFIX = "HCA_"

STDDEV_FUNCTIONS = {
    "population": "stddev_pop",
    "sample": "stddev_samp",
}

# Row limits for the ranked reports, each at least 1
LIMIT_FIELDS = ("top_claims", "longest_stays", "variability_limit", "extremes", "cost_driver_limit")


@dataclass(frozen=True)
class ReportSettings:
    # Partitions smaller than this are left out of variability rankings and cross-tabs
    min_support: int = 5
    stddev: str = "population"
    top_claims: int = 10
    longest_stays: int = 20
    variability_limit: int = 10
    extremes: int = 5
    cost_driver_limit: int = 20

    def __post_init__(self):
        if self.stddev not in STDDEV_FUNCTIONS:
            raise ValueError(
                f"Unknown stddev variant {self.stddev!r}, expected one of {sorted(STDDEV_FUNCTIONS)}"
            )
        for field in fields(self):
            if field.type not in (int, "int"):
                continue
            value = getattr(self, field.name)
            if field.name in LIMIT_FIELDS and value < 1:
                raise ValueError(f"{field.name} must be at least 1, got {value}")
            if value < 0:
                raise ValueError(f"{field.name} must be non-negative")

    @classmethod
    def from_env(cls, environ=None) -> "ReportSettings":
        """Build settings from defaults, overriding any field set as HCA_<FIELD> in the environment."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None or raw.strip() == "":
                continue
            if field.type in (int, "int"):
                try:
                    overrides[field.name] = int(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{field.name.upper()} must be an integer, got {raw!r}") from None
            else:
                overrides[field.name] = raw.strip().lower()
        return replace(cls(), **overrides) if overrides else cls()

    @property
    def stddev_function(self) -> str:
        return STDDEV_FUNCTIONS[self.stddev]


DEFAULT_SETTINGS = ReportSettings()
