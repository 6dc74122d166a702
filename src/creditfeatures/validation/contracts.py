"""Pandera-based data contracts for the feature pipeline."""

from __future__ import annotations

from typing import Dict, Iterable

import pandas as pd
import pandera as pa
from pandera import Check, Column

ID_COLUMN = "SK_ID_CURR"

UNIQUE_SERIES_CHECK = Check(
    lambda s: s.is_unique,
    element_wise=False,
    error="Column must contain unique values.",
)
NON_NEGATIVE = Check.ge(0)
NON_POSITIVE = Check.le(0)
UNIT_INTERVAL = Check.in_range(0, 1)


def _allow_special_days_employed(series: pd.Series) -> bool:
    """Allow the 365243 sentinel used by the raw data for "not employed"."""
    mask = (series <= 0) | (series == 365243) | series.isna()
    return bool(mask.all())


APPLICATION_SCHEMA = pa.DataFrameSchema(
    {
        ID_COLUMN: Column(
            pa.Int64,
            nullable=False,
            checks=[NON_NEGATIVE, UNIQUE_SERIES_CHECK],
        ),
        "DAYS_BIRTH": Column(pa.Float64, nullable=True, checks=[NON_POSITIVE]),
        "DAYS_EMPLOYED": Column(
            pa.Float64,
            nullable=True,
            checks=[Check(_allow_special_days_employed, element_wise=False)],
        ),
        "EXT_SOURCE_1": Column(pa.Float64, nullable=True, checks=[UNIT_INTERVAL]),
        "EXT_SOURCE_2": Column(pa.Float64, nullable=True, checks=[UNIT_INTERVAL]),
        "EXT_SOURCE_3": Column(pa.Float64, nullable=True, checks=[UNIT_INTERVAL]),
        "AMT_INCOME_TOTAL": Column(pa.Float64, nullable=True, checks=[NON_NEGATIVE]),
        "AMT_CREDIT": Column(pa.Float64, nullable=True, checks=[NON_NEGATIVE]),
        "AMT_ANNUITY": Column(pa.Float64, nullable=True, checks=[NON_NEGATIVE]),
        "AMT_GOODS_PRICE": Column(pa.Float64, nullable=True, checks=[NON_NEGATIVE]),
    },
    strict=False,
    coerce=True,
)

BUREAU_SCHEMA = pa.DataFrameSchema(
    {
        ID_COLUMN: Column(pa.Int64, nullable=False, checks=[NON_NEGATIVE]),
        "CREDIT_ACTIVE": Column(pa.String, nullable=True),
        "AMT_CREDIT_SUM_OVERDUE": Column(pa.Float64, nullable=True, checks=[NON_NEGATIVE]),
        "AMT_CREDIT_SUM_DEBT": Column(pa.Float64, nullable=True),
        "AMT_CREDIT_SUM": Column(pa.Float64, nullable=True, checks=[NON_NEGATIVE]),
    },
    strict=False,
    coerce=True,
)

PREVIOUS_APPLICATION_SCHEMA = pa.DataFrameSchema(
    {
        ID_COLUMN: Column(pa.Int64, nullable=False, checks=[NON_NEGATIVE]),
        "NAME_CONTRACT_STATUS": Column(pa.String, nullable=True),
    },
    strict=False,
    coerce=True,
)

INSTALLMENTS_SCHEMA = pa.DataFrameSchema(
    {
        ID_COLUMN: Column(pa.Int64, nullable=False, checks=[NON_NEGATIVE]),
        "DAYS_INSTALMENT": Column(pa.Float64, nullable=True),
        "DAYS_ENTRY_PAYMENT": Column(pa.Float64, nullable=True),
    },
    strict=False,
    coerce=True,
)

RAW_SCHEMAS: Dict[str, pa.DataFrameSchema] = {
    "application": APPLICATION_SCHEMA,
    "bureau": BUREAU_SCHEMA,
    "previous_application": PREVIOUS_APPLICATION_SCHEMA,
    "installments": INSTALLMENTS_SCHEMA,
}


def _aggregate_schema(columns: Dict[str, Column]) -> pa.DataFrameSchema:
    return pa.DataFrameSchema(
        {
            ID_COLUMN: Column(
                pa.Int64,
                nullable=False,
                checks=[NON_NEGATIVE, UNIQUE_SERIES_CHECK],
            ),
            **columns,
        },
        strict=False,
        coerce=True,
    )


AGGREGATE_SCHEMAS: Dict[str, pa.DataFrameSchema] = {
    "bureau": _aggregate_schema(
        {
            "BUREAU_LOAN_COUNT": Column(pa.Int64, nullable=False, checks=[Check.ge(1)]),
            "BUREAU_ACTIVE_COUNT": Column(pa.Int64, nullable=False, checks=[NON_NEGATIVE]),
            "BUREAU_OVERDUE_SUM": Column(pa.Float64, nullable=False),
            "BUREAU_DEBT_RATIO": Column(pa.Float64, nullable=True),
        }
    ),
    "previous": _aggregate_schema(
        {
            "PREV_APP_COUNT": Column(pa.Int64, nullable=False, checks=[Check.ge(1)]),
            "PREV_APPROVAL_RATE": Column(pa.Float64, nullable=True, checks=[UNIT_INTERVAL]),
            "PREV_REFUSAL_RATE": Column(pa.Float64, nullable=True, checks=[UNIT_INTERVAL]),
        }
    ),
    "installments": _aggregate_schema(
        {
            "LATE_PAYMENT_RATE": Column(pa.Float64, nullable=True, checks=[UNIT_INTERVAL]),
            "AVG_PAYMENT_DELAY": Column(pa.Float64, nullable=True),
            "INSTALLMENT_COUNT": Column(pa.Int64, nullable=False, checks=[Check.ge(1)]),
        }
    ),
}


def build_feature_table_schema(
    ext_source_columns: Iterable[str] = ("EXT_SOURCE_1", "EXT_SOURCE_2", "EXT_SOURCE_3"),
) -> pa.DataFrameSchema:
    """Return a schema that validates an engineered feature table."""
    columns: Dict[str, Column] = {
        ID_COLUMN: Column(
            pa.Int64,
            nullable=False,
            checks=[NON_NEGATIVE, UNIQUE_SERIES_CHECK],
        ),
        "AGE_YEARS": Column(pa.Float64, nullable=True),
        "EMPLOYMENT_YEARS": Column(pa.Float64, nullable=True),
        "EMPLOYMENT_MISSING": Column(pa.Int64, nullable=False, checks=[Check.isin([0, 1])]),
        "CREDIT_INCOME_RATIO": Column(pa.Float64, nullable=True),
        "ANNUITY_INCOME_RATIO": Column(pa.Float64, nullable=True),
        "CREDIT_GOODS_RATIO": Column(pa.Float64, nullable=True),
        "AGE_BIN": Column(nullable=True),
    }
    for col in ext_source_columns:
        columns[col] = Column(pa.Float64, nullable=False)
        columns[f"{col}_MISSING"] = Column(pa.Int64, nullable=False, checks=[Check.isin([0, 1])])
    return pa.DataFrameSchema(columns, strict=False, coerce=True)
