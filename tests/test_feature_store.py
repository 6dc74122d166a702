from io import StringIO

import numpy as np
import pandas as pd
import pytest

from creditfeatures.features.feature_store import (
    B_COLS,
    C_COLS,
    D_COLS,
    aggregate_bureau,
    aggregate_installments,
    aggregate_previous_applications,
    build_supplementary_aggregates,
)


def test_bureau_aggregate_counts_and_ratios(bureau_history):
    result = aggregate_bureau(bureau_history).set_index("SK_ID_CURR")

    assert list(result.index) == [100, 200]
    assert result["BUREAU_LOAN_COUNT"].tolist() == [2, 1]
    assert result["BUREAU_ACTIVE_COUNT"].tolist() == [1, 1]
    assert result.loc[100, "BUREAU_OVERDUE_SUM"] == pytest.approx(10.0)
    assert result.loc[100, "BUREAU_DEBT_RATIO"] == pytest.approx(50.0 / 200.0)
    # A zero credit total leaves the ratio undefined.
    assert np.isnan(result.loc[200, "BUREAU_DEBT_RATIO"])
    assert 300 not in result.index


def test_bureau_active_match_is_case_sensitive():
    bureau = pd.DataFrame(
        {
            "SK_ID_CURR": [1, 1, 1],
            "CREDIT_ACTIVE": ["Active", "active", None],
            "AMT_CREDIT_SUM_OVERDUE": [np.nan, np.nan, np.nan],
            "AMT_CREDIT_SUM_DEBT": [1.0, 1.0, 1.0],
            "AMT_CREDIT_SUM": [2.0, 2.0, 2.0],
        }
    )
    result = aggregate_bureau(bureau)

    assert result["BUREAU_ACTIVE_COUNT"].tolist() == [1]
    assert result["BUREAU_LOAN_COUNT"].tolist() == [3]
    assert result["BUREAU_OVERDUE_SUM"].tolist() == [0.0]
    assert result["BUREAU_DEBT_RATIO"].tolist() == [pytest.approx(0.5)]


def test_previous_application_rates_skip_missing_status(previous_history):
    result = aggregate_previous_applications(previous_history).set_index("SK_ID_CURR")

    assert result["PREV_APP_COUNT"].tolist() == [4, 1]
    assert result.loc[100, "PREV_APPROVAL_RATE"] == pytest.approx(2 / 3)
    assert result.loc[100, "PREV_REFUSAL_RATE"] == pytest.approx(1 / 3)
    assert np.isnan(result.loc[200, "PREV_APPROVAL_RATE"])
    assert np.isnan(result.loc[200, "PREV_REFUSAL_RATE"])


def test_installment_delays(installment_history):
    result = aggregate_installments(installment_history).set_index("SK_ID_CURR")

    assert result.loc[100, "INSTALLMENT_COUNT"] == 3
    assert result.loc[100, "LATE_PAYMENT_RATE"] == pytest.approx(0.5)
    assert result.loc[100, "AVG_PAYMENT_DELAY"] == pytest.approx(-0.5)
    assert result.loc[500, "INSTALLMENT_COUNT"] == 1
    assert result.loc[500, "LATE_PAYMENT_RATE"] == pytest.approx(0.0)
    assert result.loc[500, "AVG_PAYMENT_DELAY"] == pytest.approx(0.0)


def test_aggregates_have_unique_keys(aggregates):
    for name, frame in aggregates.as_dict().items():
        assert frame["SK_ID_CURR"].is_unique, name


def test_aggregators_require_columns(bureau_history):
    with pytest.raises(ValueError, match="AMT_CREDIT_SUM_DEBT"):
        aggregate_bureau(bureau_history.drop(columns=["AMT_CREDIT_SUM_DEBT"]))
    with pytest.raises(ValueError, match="NAME_CONTRACT_STATUS"):
        aggregate_previous_applications(pd.DataFrame({"SK_ID_CURR": [1]}))
    with pytest.raises(ValueError, match="DAYS_INSTALMENT"):
        aggregate_installments(pd.DataFrame({"SK_ID_CURR": [1], "DAYS_ENTRY_PAYMENT": [1.0]}))


def test_missing_history_tables_give_empty_aggregates():
    aggregates = build_supplementary_aggregates(None, None, None)

    assert list(aggregates.bureau.columns) == B_COLS
    assert list(aggregates.previous.columns) == C_COLS
    assert list(aggregates.installments.columns) == D_COLS
    assert all(frame.empty for frame in aggregates.as_dict().values())


def test_empty_status_column_read_from_csv():
    bureau = pd.read_csv(
        StringIO(
            "SK_ID_CURR,CREDIT_ACTIVE,AMT_CREDIT_SUM_OVERDUE,AMT_CREDIT_SUM_DEBT,AMT_CREDIT_SUM\n"
            "1,,0,1,2\n"
            "1,,,1,2\n"
        )
    )
    previous = pd.read_csv(StringIO("SK_ID_CURR,NAME_CONTRACT_STATUS\n1,\n1,\n"))
    assert bureau["CREDIT_ACTIVE"].dtype == np.float64

    bureau_result = aggregate_bureau(bureau)
    previous_result = aggregate_previous_applications(previous)

    assert bureau_result["BUREAU_LOAN_COUNT"].tolist() == [2]
    assert bureau_result["BUREAU_ACTIVE_COUNT"].tolist() == [0]
    assert bureau_result["BUREAU_DEBT_RATIO"].tolist() == [pytest.approx(0.5)]
    assert previous_result["PREV_APP_COUNT"].tolist() == [2]
    assert previous_result[["PREV_APPROVAL_RATE", "PREV_REFUSAL_RATE"]].isna().all().all()


def test_numeric_status_codes_never_match():
    previous = pd.read_csv(StringIO("SK_ID_CURR,NAME_CONTRACT_STATUS\n1,0\n1,1\n1,\n"))
    result = aggregate_previous_applications(previous)

    assert result["PREV_APP_COUNT"].tolist() == [3]
    assert result["PREV_APPROVAL_RATE"].tolist() == [pytest.approx(0.0)]
    assert result["PREV_REFUSAL_RATE"].tolist() == [pytest.approx(0.0)]


def test_applicant_with_only_missing_delays_keeps_its_count():
    installments = pd.read_csv(
        StringIO(
            "SK_ID_CURR,DAYS_ENTRY_PAYMENT,DAYS_INSTALMENT\n"
            "7,,-10\n"
            "7,-3,\n"
            "8,-4,-5\n"
        )
    )
    result = aggregate_installments(installments).set_index("SK_ID_CURR")

    assert result.loc[7, "INSTALLMENT_COUNT"] == 2
    assert np.isnan(result.loc[7, "LATE_PAYMENT_RATE"])
    assert np.isnan(result.loc[7, "AVG_PAYMENT_DELAY"])
    assert result.loc[8, "LATE_PAYMENT_RATE"] == pytest.approx(1.0)
    assert result.loc[8, "AVG_PAYMENT_DELAY"] == pytest.approx(1.0)
