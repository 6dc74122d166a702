"""Configuration helpers for the creditfeatures project."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


def _optional_path(value: Optional[Path | str]) -> Optional[Path]:
    return Path(value) if value else None


@dataclass
class PathsConfig:
    """Filesystem locations for raw inputs and generated artifacts."""

    train_application_path: Path = Path("data/raw/application_train.csv")
    test_application_path: Optional[Path] = None
    bureau_path: Optional[Path] = None
    previous_application_path: Optional[Path] = None
    installments_payments_path: Optional[Path] = None
    output_dir: Path = Path("data/processed")
    train_features_filename: str = "train_features.parquet"
    test_features_filename: str = "test_features.parquet"
    params_file: Optional[Path] = None
    lineage_file: Optional[Path] = None

    def __post_init__(self) -> None:
        self.train_application_path = Path(self.train_application_path)
        self.test_application_path = _optional_path(self.test_application_path)
        self.bureau_path = _optional_path(self.bureau_path)
        self.previous_application_path = _optional_path(self.previous_application_path)
        self.installments_payments_path = _optional_path(self.installments_payments_path)
        self.output_dir = Path(self.output_dir)
        if self.params_file is None:
            self.params_file = self.output_dir / "feature_params.json"
        else:
            self.params_file = Path(self.params_file)
        if self.lineage_file is None:
            self.lineage_file = self.output_dir / "data_lineage.json"
        else:
            self.lineage_file = Path(self.lineage_file)

    @property
    def train_features_path(self) -> Path:
        return self.output_dir / self.train_features_filename

    @property
    def test_features_path(self) -> Path:
        return self.output_dir / self.test_features_filename


@dataclass
class DataConfig:
    """Column roles and loading options for the applicant tables."""

    entity_id_column: str = "SK_ID_CURR"
    target_column: str = "TARGET"
    sample_rows: Optional[int] = None


@dataclass
class FeaturesConfig:
    """Feature engineering directives."""

    days_employed_anomaly_value: int = 365243
    days_per_year: float = 365.25
    ext_source_columns: List[str] = field(
        default_factory=lambda: ["EXT_SOURCE_1", "EXT_SOURCE_2", "EXT_SOURCE_3"]
    )
    age_bin_edges: List[float] = field(default_factory=lambda: [18, 30, 40, 50, 60, 100])
    age_bin_labels: List[str] = field(
        default_factory=lambda: ["[18,30]", "(30,40]", "(40,50]", "(50,60]", "(60,100]"]
    )
    active_status: str = "Active"
    approved_status: str = "Approved"
    refused_status: str = "Refused"

    def __post_init__(self) -> None:
        if len(self.age_bin_labels) != len(self.age_bin_edges) - 1:
            raise ValueError(
                "age_bin_labels must contain exactly one label per bin "
                f"({len(self.age_bin_edges) - 1} expected, got {len(self.age_bin_labels)})."
            )


@dataclass
class ValidationConfig:
    """Validation and data-contract toggles."""

    enabled: bool = True
    enforce_raw_contracts: bool = True
    enforce_aggregate_contracts: bool = True
    enforce_feature_contracts: bool = True


@dataclass
class LoggingConfig:
    """Logging verbosity and output format."""

    level: str = "INFO"
    json: bool = False


@dataclass
class Config:
    """Container for all configuration sections."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    data: DataConfig = field(default_factory=DataConfig)
    features: FeaturesConfig = field(default_factory=FeaturesConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        with open(path, "r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}

        def build(section_cls, key):
            section_data = payload.get(key) or {}
            return section_cls(**section_data)

        return cls(
            paths=build(PathsConfig, "paths"),
            data=build(DataConfig, "data"),
            features=build(FeaturesConfig, "features"),
            validation=build(ValidationConfig, "validation"),
            logging=build(LoggingConfig, "logging"),
        )

    def to_dict(self) -> Dict[str, Any]:
        def as_str(value: Optional[Path]) -> Optional[str]:
            return str(value) if value else None

        return {
            "paths": {
                "train_application_path": str(self.paths.train_application_path),
                "test_application_path": as_str(self.paths.test_application_path),
                "bureau_path": as_str(self.paths.bureau_path),
                "previous_application_path": as_str(self.paths.previous_application_path),
                "installments_payments_path": as_str(self.paths.installments_payments_path),
                "output_dir": str(self.paths.output_dir),
                "train_features_filename": self.paths.train_features_filename,
                "test_features_filename": self.paths.test_features_filename,
                "params_file": str(self.paths.params_file),
                "lineage_file": str(self.paths.lineage_file),
            },
            "data": {
                "entity_id_column": self.data.entity_id_column,
                "target_column": self.data.target_column,
                "sample_rows": self.data.sample_rows,
            },
            "features": {
                "days_employed_anomaly_value": self.features.days_employed_anomaly_value,
                "days_per_year": self.features.days_per_year,
                "ext_source_columns": self.features.ext_source_columns,
                "age_bin_edges": self.features.age_bin_edges,
                "age_bin_labels": self.features.age_bin_labels,
                "active_status": self.features.active_status,
                "approved_status": self.features.approved_status,
                "refused_status": self.features.refused_status,
            },
            "validation": {
                "enabled": self.validation.enabled,
                "enforce_raw_contracts": self.validation.enforce_raw_contracts,
                "enforce_aggregate_contracts": self.validation.enforce_aggregate_contracts,
                "enforce_feature_contracts": self.validation.enforce_feature_contracts,
            },
            "logging": {
                "level": self.logging.level,
                "json": self.logging.json,
            },
        }
