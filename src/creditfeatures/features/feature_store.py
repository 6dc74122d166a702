"""SQL aggregations that reduce the history tables to one row per applicant."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import duckdb
import pandas as pd

from creditfeatures.features.preprocess import require_columns

LOGGER = logging.getLogger(__name__)

ID_COLUMN = "SK_ID_CURR"

BUREAU_SQL = """
SELECT
      SK_ID_CURR,
      CAST(COUNT(*) AS BIGINT) AS BUREAU_LOAN_COUNT,
      CAST(SUM(CASE WHEN CAST(CREDIT_ACTIVE AS VARCHAR) = '{ACTIVE}' THEN 1 ELSE 0 END) AS BIGINT) AS BUREAU_ACTIVE_COUNT,
      CAST(COALESCE(SUM(AMT_CREDIT_SUM_OVERDUE), 0) AS DOUBLE) AS BUREAU_OVERDUE_SUM,

      ----------------- total debt over total credit ---------------

      CAST(COALESCE(SUM(AMT_CREDIT_SUM_DEBT), 0) AS DOUBLE)
          / NULLIF(CAST(COALESCE(SUM(AMT_CREDIT_SUM), 0) AS DOUBLE), 0) AS BUREAU_DEBT_RATIO
FROM
      bureau_df
GROUP BY
      SK_ID_CURR
ORDER BY
      SK_ID_CURR
"""

PREVIOUS_APPLICATION_SQL = """
WITH table_1 AS (
    SELECT
        SK_ID_CURR,
        CASE
            WHEN NAME_CONTRACT_STATUS IS NULL THEN NULL
            WHEN CAST(NAME_CONTRACT_STATUS AS VARCHAR) = '{APPROVED}' THEN 1.0
            ELSE 0.0
        END AS IS_APPROVED,
        CASE
            WHEN NAME_CONTRACT_STATUS IS NULL THEN NULL
            WHEN CAST(NAME_CONTRACT_STATUS AS VARCHAR) = '{REFUSED}' THEN 1.0
            ELSE 0.0
        END AS IS_REFUSED
    FROM
        prev_application_df
)
SELECT
      SK_ID_CURR,
      CAST(COUNT(*) AS BIGINT) AS PREV_APP_COUNT,
      AVG(IS_APPROVED) AS PREV_APPROVAL_RATE,
      AVG(IS_REFUSED) AS PREV_REFUSAL_RATE
FROM
      table_1
GROUP BY
      SK_ID_CURR
ORDER BY
      SK_ID_CURR
"""

INSTALLMENTS_SQL = """
WITH table_1 AS (
    SELECT
        SK_ID_CURR,
        CAST(DAYS_ENTRY_PAYMENT AS DOUBLE) - CAST(DAYS_INSTALMENT AS DOUBLE) AS PAYMENT_DELAY
    FROM
        installments_payments_df
)
SELECT
      SK_ID_CURR,
      AVG(CASE WHEN PAYMENT_DELAY IS NULL THEN NULL WHEN PAYMENT_DELAY > 0 THEN 1.0 ELSE 0.0 END)
          AS LATE_PAYMENT_RATE,
      AVG(PAYMENT_DELAY) AS AVG_PAYMENT_DELAY,
      CAST(COUNT(*) AS BIGINT) AS INSTALLMENT_COUNT
FROM
      table_1
GROUP BY
      SK_ID_CURR
ORDER BY
      SK_ID_CURR
"""

BUREAU_INPUT_COLS = [
    "SK_ID_CURR",
    "CREDIT_ACTIVE",
    "AMT_CREDIT_SUM_OVERDUE",
    "AMT_CREDIT_SUM_DEBT",
    "AMT_CREDIT_SUM",
]

PREVIOUS_INPUT_COLS = ["SK_ID_CURR", "NAME_CONTRACT_STATUS"]

INSTALLMENTS_INPUT_COLS = ["SK_ID_CURR", "DAYS_ENTRY_PAYMENT", "DAYS_INSTALMENT"]

B_COLS = [
    "SK_ID_CURR",
    "BUREAU_LOAN_COUNT",
    "BUREAU_ACTIVE_COUNT",
    "BUREAU_OVERDUE_SUM",
    "BUREAU_DEBT_RATIO",
]

C_COLS = [
    "SK_ID_CURR",
    "PREV_APP_COUNT",
    "PREV_APPROVAL_RATE",
    "PREV_REFUSAL_RATE",
]

D_COLS = [
    "SK_ID_CURR",
    "LATE_PAYMENT_RATE",
    "AVG_PAYMENT_DELAY",
    "INSTALLMENT_COUNT",
]


def _empty_aggregate(columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(
        {col: pd.Series(dtype="int64" if col == ID_COLUMN else "float64") for col in columns}
    )


@dataclass
class SupplementaryAggregates:
    """Applicant-level aggregates joined onto every applicant table."""

    bureau: pd.DataFrame
    previous: pd.DataFrame
    installments: pd.DataFrame

    def as_dict(self) -> Dict[str, pd.DataFrame]:
        return {
            "bureau": self.bureau,
            "previous": self.previous,
            "installments": self.installments,
        }

    @classmethod
    def empty(cls) -> "SupplementaryAggregates":
        return cls(
            bureau=_empty_aggregate(B_COLS),
            previous=_empty_aggregate(C_COLS),
            installments=_empty_aggregate(D_COLS),
        )


def _run_sql(
    frame_name: str,
    frame: pd.DataFrame,
    sql: str,
    **params: str,
) -> pd.DataFrame:
    con = duckdb.connect(database=":memory:")
    try:
        con.register(frame_name, frame)
        return con.execute(sql.format(**params)).df()
    finally:
        con.close()


def _sql_literal(value: str) -> str:
    return value.replace("'", "''")


def _as_text(value: object) -> Optional[str]:
    return None if pd.isna(value) else str(value)


def _select_inputs(
    df: pd.DataFrame,
    columns: List[str],
    label: str,
    text_columns: Sequence[str] = (),
) -> pd.DataFrame:
    """Copy the needed columns; status columns become text with None for missing.

    A status column read from CSV with no values arrives as float64 NaN, which
    DuckDB would otherwise compare against the status literal as a number.
    """
    require_columns(df, columns, label)
    inputs = df.loc[:, columns].copy()
    for col in text_columns:
        inputs[col] = inputs[col].map(_as_text).astype(object)
    return inputs


def aggregate_bureau(bureau_df: pd.DataFrame, active_status: str = "Active") -> pd.DataFrame:
    """Count credits, active credits and overdue amounts and compute the debt ratio per applicant."""
    inputs = _select_inputs(
        bureau_df, BUREAU_INPUT_COLS, "aggregate_bureau", text_columns=["CREDIT_ACTIVE"]
    )
    result = _run_sql("bureau_df", inputs, BUREAU_SQL, ACTIVE=_sql_literal(active_status))
    LOGGER.info("Aggregated %d bureau rows into %d applicants.", len(inputs), len(result))
    return result[B_COLS]


def aggregate_previous_applications(
    prev_df: pd.DataFrame,
    approved_status: str = "Approved",
    refused_status: str = "Refused",
) -> pd.DataFrame:
    """Count prior applications and the share approved or refused among known statuses."""
    inputs = _select_inputs(
        prev_df,
        PREVIOUS_INPUT_COLS,
        "aggregate_previous_applications",
        text_columns=["NAME_CONTRACT_STATUS"],
    )
    result = _run_sql(
        "prev_application_df",
        inputs,
        PREVIOUS_APPLICATION_SQL,
        APPROVED=_sql_literal(approved_status),
        REFUSED=_sql_literal(refused_status),
    )
    LOGGER.info(
        "Aggregated %d previous applications into %d applicants.", len(inputs), len(result)
    )
    return result[C_COLS]


def aggregate_installments(inst_df: pd.DataFrame) -> pd.DataFrame:
    """Summarize late payments and payment delays per applicant."""
    inputs = _select_inputs(inst_df, INSTALLMENTS_INPUT_COLS, "aggregate_installments")
    result = _run_sql("installments_payments_df", inputs, INSTALLMENTS_SQL)
    LOGGER.info("Aggregated %d installment rows into %d applicants.", len(inputs), len(result))
    return result[D_COLS]


def build_supplementary_aggregates(
    bureau_df: Optional[pd.DataFrame],
    prev_df: Optional[pd.DataFrame],
    inst_df: Optional[pd.DataFrame],
    active_status: str = "Active",
    approved_status: str = "Approved",
    refused_status: str = "Refused",
) -> SupplementaryAggregates:
    """Aggregate each available history table; absent tables yield empty aggregates."""
    empty = SupplementaryAggregates.empty()
    return SupplementaryAggregates(
        bureau=aggregate_bureau(bureau_df, active_status)
        if bureau_df is not None
        else empty.bureau,
        previous=aggregate_previous_applications(prev_df, approved_status, refused_status)
        if prev_df is not None
        else empty.previous,
        installments=aggregate_installments(inst_df) if inst_df is not None else empty.installments,
    )
