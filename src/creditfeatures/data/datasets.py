"""Data loading helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd


def load_dataset(path: Path | str, sample_rows: Optional[int] = None) -> pd.DataFrame:
    """Load a CSV dataset with optional sampling."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Could not locate dataset at {csv_path}")

    df = pd.read_csv(csv_path)
    if sample_rows and sample_rows < len(df):
        df = df.sample(n=sample_rows, random_state=42)
    return df


def load_optional_dataset(path: Path | str | None) -> Optional[pd.DataFrame]:
    """Load a CSV when a path is configured, otherwise return ``None``."""
    if not path:
        return None
    return load_dataset(path)
