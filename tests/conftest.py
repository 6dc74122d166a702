from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from creditfeatures.features.feature_store import build_supplementary_aggregates


@pytest.fixture
def train_application() -> pd.DataFrame:
    # Ages are exactly 30, 40 and 17 years.
    return pd.DataFrame(
        {
            "SK_ID_CURR": [100, 200, 300],
            "TARGET": [0, 1, 0],
            "DAYS_BIRTH": [-10957.5, -14610.0, -6209.25],
            "DAYS_EMPLOYED": [-1000.0, 365243.0, -500.0],
            "EXT_SOURCE_1": [0.2, np.nan, 0.6],
            "EXT_SOURCE_2": [0.5, 0.7, np.nan],
            "EXT_SOURCE_3": [np.nan, 0.3, 0.1],
            "AMT_INCOME_TOTAL": [100000.0, 0.0, 50000.0],
            "AMT_CREDIT": [200000.0, 100000.0, 0.0],
            "AMT_ANNUITY": [10000.0, 5000.0, np.nan],
            "AMT_GOODS_PRICE": [180000.0, 100000.0, 0.0],
        }
    )


@pytest.fixture
def heldout_application() -> pd.DataFrame:
    # Ages are exactly 100 years and roughly 19 years.
    return pd.DataFrame(
        {
            "SK_ID_CURR": [400, 500],
            "DAYS_BIRTH": [-36525.0, -7000.0],
            "DAYS_EMPLOYED": [365243.0, -200.0],
            "EXT_SOURCE_1": [np.nan, 0.9],
            "EXT_SOURCE_2": [np.nan, 0.1],
            "EXT_SOURCE_3": [0.5, np.nan],
            "AMT_INCOME_TOTAL": [40000.0, 60000.0],
            "AMT_CREDIT": [80000.0, 30000.0],
            "AMT_ANNUITY": [4000.0, 3000.0],
            "AMT_GOODS_PRICE": [80000.0, 25000.0],
        }
    )


@pytest.fixture
def bureau_history() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "SK_ID_BUREAU": [1, 2, 3],
            "SK_ID_CURR": [100, 100, 200],
            "CREDIT_ACTIVE": ["Active", "Closed", "Active"],
            "AMT_CREDIT_SUM_OVERDUE": [10.0, np.nan, 5.0],
            "AMT_CREDIT_SUM_DEBT": [50.0, np.nan, 0.0],
            "AMT_CREDIT_SUM": [100.0, 100.0, 0.0],
        }
    )


@pytest.fixture
def previous_history() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "SK_ID_PREV": [11, 12, 13, 14, 15],
            "SK_ID_CURR": [100, 100, 100, 100, 200],
            "NAME_CONTRACT_STATUS": ["Approved", "Refused", None, "Approved", None],
        }
    )


@pytest.fixture
def installment_history() -> pd.DataFrame:
    # Delays (entry - instalment): -3, 2, missing for 100 and 0 for 500.
    return pd.DataFrame(
        {
            "SK_ID_PREV": [11, 11, 11, 21],
            "SK_ID_CURR": [100, 100, 100, 500],
            "DAYS_INSTALMENT": [-12.0, -5.0, -8.0, -5.0],
            "DAYS_ENTRY_PAYMENT": [-15.0, -3.0, np.nan, -5.0],
        }
    )


@pytest.fixture
def aggregates(bureau_history, previous_history, installment_history):
    return build_supplementary_aggregates(bureau_history, previous_history, installment_history)
