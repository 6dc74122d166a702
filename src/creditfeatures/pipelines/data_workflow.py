"""Shared helpers for the feature-building pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from creditfeatures.config import Config
from creditfeatures.data.datasets import load_dataset, load_optional_dataset
from creditfeatures.features.feature_store import (
    SupplementaryAggregates,
    build_supplementary_aggregates,
)
from creditfeatures.features.params import ExtSourceMedians, load_params, save_params
from creditfeatures.features.pipeline import engineer_features
from creditfeatures.utils.lineage import record_data_lineage
from creditfeatures.validation import ValidationRunner

LOGGER = logging.getLogger(__name__)

RawTables = Dict[str, Tuple[Optional[Path], pd.DataFrame]]


@dataclass
class FeatureRunResult:
    params: ExtSourceMedians
    train_features: Optional[pd.DataFrame] = None
    test_features: Optional[pd.DataFrame] = None


def load_history_tables(config: Config, validator: ValidationRunner) -> RawTables:
    """Load and validate whichever history tables are configured."""
    tables: RawTables = {}
    sources = {
        "bureau": (config.paths.bureau_path, validator.validate_bureau),
        "previous_application": (
            config.paths.previous_application_path,
            validator.validate_previous_applications,
        ),
        "installments": (
            config.paths.installments_payments_path,
            validator.validate_installments,
        ),
    }
    for name, (path, validate) in sources.items():
        df = load_optional_dataset(path)
        if df is None:
            LOGGER.warning("No %s table configured; its aggregate columns will be empty.", name)
            continue
        validate(df)
        tables[name] = (path, df)
    return tables


def build_aggregates(
    config: Config,
    history: RawTables,
    validator: ValidationRunner,
) -> SupplementaryAggregates:
    """Reduce the history tables to applicant-level aggregates."""

    def frame(name: str) -> Optional[pd.DataFrame]:
        entry = history.get(name)
        return entry[1] if entry is not None else None

    aggregates = build_supplementary_aggregates(
        frame("bureau"),
        frame("previous_application"),
        frame("installments"),
        active_status=config.features.active_status,
        approved_status=config.features.approved_status,
        refused_status=config.features.refused_status,
    )
    for name, aggregate in aggregates.as_dict().items():
        validator.validate_aggregate(name, aggregate)
    return aggregates


def _load_application(path: Path, config: Config, validator: ValidationRunner) -> pd.DataFrame:
    df = load_dataset(path, sample_rows=config.data.sample_rows)
    validator.validate_application(df)
    LOGGER.info("Loaded application table %s (rows=%d, cols=%d)", path, df.shape[0], df.shape[1])
    return df


def run_feature_workflow(
    config: Config,
    validator: Optional[ValidationRunner] = None,
    params: Optional[ExtSourceMedians] = None,
) -> FeatureRunResult:
    """Fit on the training table and replay on the test table.

    When ``params`` are supplied the training table is skipped and only the
    configured test table is transformed with them.
    """
    validator = validator or ValidationRunner(config.validation)
    history = load_history_tables(config, validator)
    aggregates = build_aggregates(config, history, validator)
    raw_tables: RawTables = dict(history)
    feature_tables: Dict[str, pd.DataFrame] = {}
    ext_cols = config.features.ext_source_columns

    train_features: Optional[pd.DataFrame] = None
    if params is None:
        train_df = _load_application(config.paths.train_application_path, config, validator)
        raw_tables["application_train"] = (config.paths.train_application_path, train_df)
        train_features, params = engineer_features(
            train_df,
            aggregates,
            fit_mode=True,
            feature_config=config.features,
            id_column=config.data.entity_id_column,
        )
        validator.validate_feature_table(train_features, "train", ext_cols)
        feature_tables["train"] = train_features

    test_features: Optional[pd.DataFrame] = None
    if config.paths.test_application_path is not None:
        test_df = _load_application(config.paths.test_application_path, config, validator)
        raw_tables["application_test"] = (config.paths.test_application_path, test_df)
        test_features, _ = engineer_features(
            test_df,
            aggregates,
            fit_mode=False,
            params=params,
            feature_config=config.features,
            id_column=config.data.entity_id_column,
        )
        validator.validate_feature_table(test_features, "test", ext_cols)
        feature_tables["test"] = test_features
    elif train_features is None:
        raise ValueError("Applying saved parameters requires paths.test_application_path.")

    if train_features is not None and test_features is not None:
        validator.validate_feature_parity(
            train_features, test_features, config.data.target_column
        )

    record_data_lineage(raw_tables, feature_tables, params, config.paths.lineage_file)
    return FeatureRunResult(
        params=params,
        train_features=train_features,
        test_features=test_features,
    )


def persist_results(result: FeatureRunResult, config: Config, save_fitted: bool = True) -> None:
    """Write the feature tables to parquet and, after a fit, the learned parameters to JSON."""
    if result.train_features is not None:
        save_dataframe(result.train_features, config.paths.train_features_path)
    if result.test_features is not None:
        save_dataframe(result.test_features, config.paths.test_features_path)
    if save_fitted:
        save_params(result.params, config.paths.params_file)


def load_fitted_params(path: Path | str) -> ExtSourceMedians:
    params = load_params(path)
    LOGGER.info("Loaded fitted parameters from %s: %s", path, dict(params.medians))
    return params


def save_dataframe(df: pd.DataFrame, path: Path | str) -> Path:
    """Persist a dataframe to parquet, returning the resolved path."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(output_path, index=False)
    LOGGER.info(
        "Saved dataframe with shape (rows=%d, cols=%d) to %s",
        df.shape[0],
        df.shape[1],
        output_path,
        extra={"stage": "save_dataframe", "rows": df.shape[0], "columns": df.shape[1]},
    )
    return output_path

