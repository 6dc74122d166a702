"""Fit/apply orchestration of the applicant feature pipeline."""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable, List, Mapping, Optional, Tuple, Union

import pandas as pd
from sklearn.exceptions import NotFittedError

from creditfeatures.config import FeaturesConfig
from creditfeatures.features.feature_store import ID_COLUMN, SupplementaryAggregates
from creditfeatures.features.params import (
    ExtSourceMedians,
    apply_ext_source_imputation,
    fit_ext_source_medians,
)
from creditfeatures.features.preprocess import (
    add_binned_features,
    add_demographic_features,
    add_financial_ratios,
    add_missing_indicators,
    fix_days_employed,
    require_columns,
)

LOGGER = logging.getLogger(__name__)

Stage = Tuple[str, Callable[[pd.DataFrame], pd.DataFrame]]
AggregatesLike = Union[SupplementaryAggregates, Mapping[str, pd.DataFrame]]

DERIVED_COLUMNS = [
    "AGE_YEARS",
    "EMPLOYMENT_YEARS",
    "EXT_SOURCE_1_MISSING",
    "EXT_SOURCE_2_MISSING",
    "EXT_SOURCE_3_MISSING",
    "EMPLOYMENT_MISSING",
    "CREDIT_INCOME_RATIO",
    "ANNUITY_INCOME_RATIO",
    "CREDIT_GOODS_RATIO",
    "AGE_BIN",
]


def build_application_stages(
    params: Optional[ExtSourceMedians],
    feature_config: Optional[FeaturesConfig] = None,
) -> List[Stage]:
    """Return the ordered cleaning stages for one applicant table.

    The order matters: the employment anomaly is removed before it is turned
    into years, and missingness is flagged before the imputer fills the gaps.
    """
    cfg = feature_config or FeaturesConfig()
    return [
        (
            "fix_days_employed",
            partial(fix_days_employed, anomaly_value=cfg.days_employed_anomaly_value),
        ),
        (
            "add_demographic_features",
            partial(add_demographic_features, days_per_year=cfg.days_per_year),
        ),
        (
            "add_missing_indicators",
            partial(add_missing_indicators, ext_source_columns=cfg.ext_source_columns),
        ),
        (
            "apply_ext_source_imputation",
            partial(apply_ext_source_imputation, params=params, columns=cfg.ext_source_columns),
        ),
        ("add_financial_ratios", add_financial_ratios),
        (
            "add_binned_features",
            partial(add_binned_features, edges=cfg.age_bin_edges, labels=cfg.age_bin_labels),
        ),
    ]


def run_stages(df: pd.DataFrame, stages: List[Stage]) -> pd.DataFrame:
    processed = df
    for name, stage in stages:
        processed = stage(processed)
        LOGGER.debug(
            "Stage %s done (rows=%d, cols=%d)",
            name,
            processed.shape[0],
            processed.shape[1],
            extra={"stage": name, "rows": processed.shape[0], "columns": processed.shape[1]},
        )
    return processed


def _as_aggregates(supplementary: AggregatesLike) -> SupplementaryAggregates:
    if isinstance(supplementary, SupplementaryAggregates):
        return supplementary
    missing = [key for key in ("bureau", "previous", "installments") if key not in supplementary]
    if missing:
        raise ValueError(f"Supplementary aggregates are missing tables: {', '.join(missing)}")
    return SupplementaryAggregates(
        bureau=supplementary["bureau"],
        previous=supplementary["previous"],
        installments=supplementary["installments"],
    )


def join_aggregates(
    df: pd.DataFrame,
    supplementary: AggregatesLike,
    id_column: str = ID_COLUMN,
) -> pd.DataFrame:
    """Left-join each aggregate table on the applicant key.

    Applicants without history keep their row and get NaN aggregate values.
    Duplicate keys inside an aggregate table are rejected by the merge.
    """
    aggregates = _as_aggregates(supplementary)
    joined = df
    for name, aggregate in aggregates.as_dict().items():
        require_columns(aggregate, [id_column], f"{name} aggregate")
        overlap = sorted((set(aggregate.columns) & set(joined.columns)) - {id_column})
        if overlap:
            raise ValueError(
                f"{name} aggregate would overwrite existing columns: {', '.join(overlap)}"
            )
        aggregate = aggregate.astype({id_column: joined[id_column].dtype})
        joined = joined.merge(
            aggregate,
            on=id_column,
            how="left",
            validate="many_to_one",
        )
    if len(joined) != len(df):
        raise RuntimeError(
            f"Joining aggregates changed the row count from {len(df)} to {len(joined)}."
        )
    return joined


def engineer_features(
    df: pd.DataFrame,
    supplementary: AggregatesLike,
    fit_mode: bool = True,
    params: Optional[ExtSourceMedians] = None,
    feature_config: Optional[FeaturesConfig] = None,
    id_column: str = ID_COLUMN,
) -> Tuple[pd.DataFrame, ExtSourceMedians]:
    """Build the applicant feature table.

    With ``fit_mode`` the EXT_SOURCE medians are learned from ``df`` (any
    ``params`` passed in are replaced). Without it, ``params`` from an earlier
    fit are required. Returns the feature table and the parameters it used so
    the caller can replay them on the next table.
    """
    cfg = feature_config or FeaturesConfig()
    require_columns(df, [id_column], "engineer_features")
    aggregates = _as_aggregates(supplementary)

    if fit_mode:
        if params is not None:
            LOGGER.info("fit_mode is set; replacing previously fitted parameters.")
        params = fit_ext_source_medians(df, columns=cfg.ext_source_columns)
    elif params is None:
        raise NotFittedError(
            "engineer_features was called with fit_mode=False but no fitted parameters; "
            "pass the params returned by the training run."
        )

    LOGGER.info(
        "Engineering features for %d applicants (fit_mode=%s)",
        len(df),
        fit_mode,
        extra={"stage": "engineer_features"},
    )
    processed = run_stages(df, build_application_stages(params, cfg))
    features = join_aggregates(processed, aggregates, id_column=id_column)
    LOGGER.info(
        "Feature table ready with shape (rows=%d, cols=%d)",
        features.shape[0],
        features.shape[1],
    )
    return features, params
