from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from creditfeatures.config import (
    Config,
    DataConfig,
    FeaturesConfig,
    LoggingConfig,
    PathsConfig,
    ValidationConfig,
)


def write_csv(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def build_test_config(
    tmp_path: Path,
    train_df: pd.DataFrame,
    *,
    test_df: Optional[pd.DataFrame] = None,
    bureau_df: Optional[pd.DataFrame] = None,
    previous_df: Optional[pd.DataFrame] = None,
    installments_df: Optional[pd.DataFrame] = None,
    validation_config: ValidationConfig | None = None,
) -> Config:
    raw_dir = tmp_path / "raw"

    def maybe_write(df: Optional[pd.DataFrame], name: str) -> Optional[Path]:
        return write_csv(df, raw_dir / name) if df is not None else None

    paths = PathsConfig(
        train_application_path=write_csv(train_df, raw_dir / "application_train.csv"),
        test_application_path=maybe_write(test_df, "application_test.csv"),
        bureau_path=maybe_write(bureau_df, "bureau.csv"),
        previous_application_path=maybe_write(previous_df, "previous_application.csv"),
        installments_payments_path=maybe_write(installments_df, "installments_payments.csv"),
        output_dir=tmp_path / "processed",
    )
    return Config(
        paths=paths,
        data=DataConfig(),
        features=FeaturesConfig(),
        validation=validation_config or ValidationConfig(),
        logging=LoggingConfig(level="DEBUG"),
    )


def load_dataframe(path: Path) -> pd.DataFrame:
    assert path.exists(), f"Expected a parquet file at {path}"
    return pd.read_parquet(path)
