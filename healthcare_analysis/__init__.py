"""Batch financial analysis of a synthetic healthcare admissions dataset."""

from .config import DEFAULT_SETTINGS, ReportSettings
from .dataset import DataLoadError, Dataset, RejectedRow, load_dataset
from .records import PatientRecord
from .reports import REPORTS, run_report

__all__ = [
    "DEFAULT_SETTINGS",
    "DataLoadError",
    "Dataset",
    "PatientRecord",
    "REPORTS",
    "RejectedRow",
    "ReportSettings",
    "load_dataset",
    "run_report",
]
