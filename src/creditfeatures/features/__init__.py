"""Applicant feature engineering: cleaners, learned parameters and aggregates."""

from __future__ import annotations

from .feature_store import SupplementaryAggregates, build_supplementary_aggregates
from .params import ExtSourceMedians, UndefinedStatisticError
from .pipeline import engineer_features

__all__ = [
    "ExtSourceMedians",
    "SupplementaryAggregates",
    "UndefinedStatisticError",
    "build_supplementary_aggregates",
    "engineer_features",
]
