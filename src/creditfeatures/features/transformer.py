"""Sklearn-compatible wrapper around :func:`engineer_features`."""

from __future__ import annotations

from typing import Optional

import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.exceptions import NotFittedError

from creditfeatures.config import FeaturesConfig
from creditfeatures.features.feature_store import ID_COLUMN, SupplementaryAggregates
from creditfeatures.features.pipeline import engineer_features


class ApplicantFeatureTransformer(BaseEstimator, TransformerMixin):
    """Learns the EXT_SOURCE medians in ``fit`` and replays them in ``transform``."""

    def __init__(
        self,
        supplementary: Optional[SupplementaryAggregates] = None,
        feature_config: Optional[FeaturesConfig] = None,
        id_column: str = ID_COLUMN,
    ):
        self.supplementary = supplementary
        self.feature_config = feature_config
        self.id_column = id_column

    def fit(self, X: pd.DataFrame, y: Optional[pd.Series] = None):  # type: ignore[override]
        _, params = engineer_features(
            X,
            self._aggregates(),
            fit_mode=True,
            feature_config=self.feature_config,
            id_column=self.id_column,
        )
        self.params_ = params
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:  # type: ignore[override]
        if not hasattr(self, "params_"):
            raise NotFittedError(
                "ApplicantFeatureTransformer is not fitted yet; call fit on the training table."
            )
        features, _ = engineer_features(
            X,
            self._aggregates(),
            fit_mode=False,
            params=self.params_,
            feature_config=self.feature_config,
            id_column=self.id_column,
        )
        return features

    def _aggregates(self) -> SupplementaryAggregates:
        return self.supplementary if self.supplementary is not None else SupplementaryAggregates.empty()
