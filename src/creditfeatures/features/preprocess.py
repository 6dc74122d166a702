"""Row-level cleaners applied to the raw application table.

Every function takes a DataFrame and returns a new one; the input frame is
never modified. None of them carries state across rows or across calls.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

LOGGER = logging.getLogger(__name__)

DAYS_EMPLOYED_ANOMALY = 365243
DAYS_PER_YEAR = 365.25
EXT_SOURCE_COLUMNS = ("EXT_SOURCE_1", "EXT_SOURCE_2", "EXT_SOURCE_3")
AGE_BIN_EDGES = (18, 30, 40, 50, 60, 100)
AGE_BIN_LABELS = ("[18,30]", "(30,40]", "(40,50]", "(50,60]", "(60,100]")

RATIO_FEATURES = (
    ("AMT_CREDIT", "AMT_INCOME_TOTAL", "CREDIT_INCOME_RATIO"),
    ("AMT_ANNUITY", "AMT_INCOME_TOTAL", "ANNUITY_INCOME_RATIO"),
    ("AMT_CREDIT", "AMT_GOODS_PRICE", "CREDIT_GOODS_RATIO"),
)


def require_columns(df: pd.DataFrame, columns: Iterable[str], stage: str) -> None:
    """Raise ``ValueError`` naming every column ``stage`` needs but cannot find."""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise ValueError(
            f"{stage} requires columns that are missing from the input: {', '.join(missing)}"
        )


def is_missing(series: pd.Series) -> pd.Series:
    """Missingness test shared by the imputer and the indicator flags."""
    return series.isna()


def fix_days_employed(
    df: pd.DataFrame,
    anomaly_value: int = DAYS_EMPLOYED_ANOMALY,
) -> pd.DataFrame:
    """Replace the ``DAYS_EMPLOYED`` placeholder for "not employed" with NaN."""
    require_columns(df, ["DAYS_EMPLOYED"], "fix_days_employed")
    processed = df.copy()
    anomalies = int((processed["DAYS_EMPLOYED"] == anomaly_value).sum())
    processed["DAYS_EMPLOYED"] = processed["DAYS_EMPLOYED"].replace({anomaly_value: np.nan})
    LOGGER.debug("Replaced %d DAYS_EMPLOYED anomalies (%d) with NaN.", anomalies, anomaly_value)
    return processed


def add_demographic_features(
    df: pd.DataFrame,
    days_per_year: float = DAYS_PER_YEAR,
) -> pd.DataFrame:
    """Convert the negative day counters into positive ages and tenures in years.

    Must run after :func:`fix_days_employed`, otherwise the anomaly placeholder
    turns into a large negative employment duration.
    """
    require_columns(df, ["DAYS_BIRTH", "DAYS_EMPLOYED"], "add_demographic_features")
    processed = df.copy()
    processed["AGE_YEARS"] = -processed["DAYS_BIRTH"] / days_per_year
    processed["EMPLOYMENT_YEARS"] = -processed["DAYS_EMPLOYED"] / days_per_year
    return processed


def add_missing_indicators(
    df: pd.DataFrame,
    ext_source_columns: Sequence[str] = EXT_SOURCE_COLUMNS,
) -> pd.DataFrame:
    """Flag missing EXT_SOURCE scores and missing employment durations.

    The flags describe the table as it is handed in, so this stage has to see
    the frame before the EXT_SOURCE imputation fills the gaps.
    """
    require_columns(df, [*ext_source_columns, "DAYS_EMPLOYED"], "add_missing_indicators")
    processed = df.copy()
    for col in ext_source_columns:
        processed[f"{col}_MISSING"] = is_missing(processed[col]).astype(int)
    processed["EMPLOYMENT_MISSING"] = is_missing(processed["DAYS_EMPLOYED"]).astype(int)
    return processed


def add_financial_ratios(df: pd.DataFrame) -> pd.DataFrame:
    """Add affordability ratios using plain float division.

    A zero denominator gives ``inf`` (or ``NaN`` for ``0/0``) and a missing
    operand gives ``NaN``. Values are neither clipped nor rounded.
    """
    needed = {col for numerator, denominator, _ in RATIO_FEATURES for col in (numerator, denominator)}
    require_columns(df, sorted(needed), "add_financial_ratios")
    processed = df.copy()
    for numerator, denominator, out_col in RATIO_FEATURES:
        processed[out_col] = processed[numerator].astype(float) / processed[denominator].astype(float)
    return processed


def add_binned_features(
    df: pd.DataFrame,
    edges: Sequence[float] = AGE_BIN_EDGES,
    labels: Optional[Sequence[str]] = AGE_BIN_LABELS,
) -> pd.DataFrame:
    """Bucket ``AGE_YEARS`` into ordered, right-closed age bins.

    The lowest edge is included in the first bin. Ages outside the edges end
    up as a missing category rather than being clipped into the nearest bin.
    """
    require_columns(df, ["AGE_YEARS"], "add_binned_features")
    processed = df.copy()
    processed["AGE_BIN"] = pd.cut(
        processed["AGE_YEARS"],
        bins=list(edges),
        labels=list(labels) if labels is not None else None,
        right=True,
        include_lowest=True,
        ordered=True,
    )
    unbinned = int((processed["AGE_BIN"].isna() & processed["AGE_YEARS"].notna()).sum())
    if unbinned:
        LOGGER.debug("%d applicants fall outside the age bins and stay unbinned.", unbinned)
    return processed
