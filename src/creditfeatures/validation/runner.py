"""Validation runner that executes Pandera contracts and lightweight checks."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import pandas as pd
import pandera as pa
from pandera import errors as pa_errors

from creditfeatures.config import ValidationConfig
from creditfeatures.validation import contracts

LOGGER = logging.getLogger(__name__)


class ValidationRunner:
    """Centralized helper to run data contracts throughout the pipeline."""

    def __init__(self, cfg: Optional[ValidationConfig] = None):
        self.cfg = cfg or ValidationConfig()

    # --------------------------------------------------------------------- #
    # Raw layer validators
    # --------------------------------------------------------------------- #

    def validate_raw_table(self, table_name: str, df: pd.DataFrame) -> None:
        if not self._should_run(self.cfg.enforce_raw_contracts):
            return
        schema = contracts.RAW_SCHEMAS.get(table_name)
        if schema is None:
            raise ValueError(f"No raw schema registered for table '{table_name}'.")
        self._run_schema(schema, df, f"{table_name}_raw")

    def validate_application(self, df: pd.DataFrame) -> None:
        self.validate_raw_table("application", df)

    def validate_bureau(self, df: pd.DataFrame) -> None:
        self.validate_raw_table("bureau", df)

    def validate_previous_applications(self, df: pd.DataFrame) -> None:
        self.validate_raw_table("previous_application", df)

    def validate_installments(self, df: pd.DataFrame) -> None:
        self.validate_raw_table("installments", df)

    # --------------------------------------------------------------------- #
    # Aggregate / feature-table validators
    # --------------------------------------------------------------------- #

    def validate_aggregate(self, name: str, df: pd.DataFrame) -> None:
        if not self._should_run(self.cfg.enforce_aggregate_contracts):
            return
        schema = contracts.AGGREGATE_SCHEMAS.get(name)
        if schema is None:
            raise ValueError(f"No aggregate schema registered for '{name}'.")
        self._run_schema(schema, df, f"{name}_aggregate")

    def validate_feature_table(
        self,
        df: pd.DataFrame,
        label: str,
        ext_source_columns: Optional[Iterable[str]] = None,
    ) -> None:
        if not self._should_run(self.cfg.enforce_feature_contracts):
            return
        schema = (
            contracts.build_feature_table_schema(ext_source_columns)
            if ext_source_columns is not None
            else contracts.build_feature_table_schema()
        )
        self._run_schema(schema, df, f"{label}_features")

    def validate_feature_parity(
        self,
        train_df: pd.DataFrame,
        test_df: pd.DataFrame,
        target_column: str,
    ) -> None:
        """Train and test feature tables must expose the same feature columns."""
        if not self._should_run(self.cfg.enforce_feature_contracts):
            return
        train_cols = set(train_df.columns) - {target_column}
        test_cols = set(test_df.columns) - {target_column}
        if train_cols != test_cols:
            only_train = sorted(train_cols - test_cols)
            only_test = sorted(test_cols - train_cols)
            raise ValueError(
                "Train/test feature columns differ. "
                f"Only in train: {only_train[:10]}; only in test: {only_test[:10]}"
            )

    # --------------------------------------------------------------------- #
    # Internal helpers
    # --------------------------------------------------------------------- #

    def _should_run(self, flag: bool) -> bool:
        return bool(self.cfg.enabled and flag)

    def _run_schema(self, schema: pa.DataFrameSchema, df: pd.DataFrame, label: str) -> None:
        try:
            schema.validate(df, lazy=True)
            LOGGER.debug("Validation for %s passed (rows=%d, cols=%d).", label, len(df), len(df.columns))
        except pa_errors.SchemaErrors as exc:
            sample = exc.failure_cases.head(10)
            raise ValueError(
                f"Data contract validation failed for '{label}'. Sample failures:\n{sample}"
            ) from exc
