"""Statistics learned from the training table and replayed on every other table."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd
from sklearn.exceptions import NotFittedError

from creditfeatures.features.preprocess import EXT_SOURCE_COLUMNS, is_missing, require_columns

LOGGER = logging.getLogger(__name__)


class UndefinedStatisticError(ValueError):
    """Raised when a training column holds no values to learn a statistic from."""


@dataclass(frozen=True)
class ExtSourceMedians:
    """Immutable medians of the external risk scores, keyed by column name.

    A fit always produces a new instance, so a reader either sees a complete
    set of medians or none at all.
    """

    medians: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "medians",
            MappingProxyType({str(k): float(v) for k, v in dict(self.medians).items()}),
        )

    def __getitem__(self, column: str) -> float:
        try:
            return self.medians[column]
        except KeyError:
            raise NotFittedError(
                f"No median has been fitted for '{column}'. Fit on the training table first."
            ) from None

    def to_dict(self) -> Dict[str, Any]:
        return {"ext_source_medians": dict(self.medians)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExtSourceMedians":
        try:
            medians = payload["ext_source_medians"]
        except KeyError as exc:
            raise ValueError("Parameter payload has no 'ext_source_medians' section.") from exc
        return cls(medians=medians)


def fit_ext_source_medians(
    df: pd.DataFrame,
    columns: Sequence[str] = EXT_SOURCE_COLUMNS,
) -> ExtSourceMedians:
    """Learn the median of each EXT_SOURCE column, ignoring missing values.

    Only call this on the training table. A column with no observed values has
    no median and fails the fit instead of falling back to a default.
    """
    require_columns(df, columns, "fit_ext_source_medians")
    medians: Dict[str, float] = {}
    for col in columns:
        observed = df[col][~is_missing(df[col])]
        if observed.empty:
            raise UndefinedStatisticError(
                f"Cannot fit a median for '{col}': every training value is missing."
            )
        medians[col] = float(observed.median())
    LOGGER.info("Fitted EXT_SOURCE medians on %d rows: %s", len(df), medians)
    return ExtSourceMedians(medians=medians)


def apply_ext_source_imputation(
    df: pd.DataFrame,
    params: Optional[ExtSourceMedians],
    columns: Sequence[str] = EXT_SOURCE_COLUMNS,
) -> pd.DataFrame:
    """Fill missing EXT_SOURCE values with the fitted medians.

    Identical for training and held-out tables; only the moment the medians
    were learned differs.
    """
    if params is None:
        raise NotFittedError(
            "EXT_SOURCE imputation needs fitted medians; run a fit on the training table first."
        )
    require_columns(df, columns, "apply_ext_source_imputation")
    processed = df.copy()
    for col in columns:
        median = params[col]
        mask = is_missing(processed[col])
        if mask.any():
            processed.loc[mask, col] = median
        LOGGER.debug("Imputed %d missing %s values with %.6f.", int(mask.sum()), col, median)
    return processed


def save_params(params: ExtSourceMedians, path: Path | str) -> Path:
    """Persist fitted parameters as JSON, returning the resolved path."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(params.to_dict(), indent=2), encoding="utf-8")
    LOGGER.info("Saved fitted parameters to %s", output_path)
    return output_path


def load_params(path: Path | str) -> ExtSourceMedians:
    """Load parameters previously written by :func:`save_params`."""
    params_path = Path(path)
    if not params_path.exists():
        raise FileNotFoundError(f"Could not find fitted parameters at {params_path}")
    payload = json.loads(params_path.read_text(encoding="utf-8"))
    return ExtSourceMedians.from_dict(payload)
