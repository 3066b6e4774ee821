"""Configuration management with Pydantic validation."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PathConfig(BaseModel):
    """File paths configuration."""
    raw_data: Optional[Path] = None
    processed_data: Path = Path("data/processed")
    models: Path = Path("models")
    logs: Path = Path("logs")

    @field_validator("raw_data")
    @classmethod
    def check_raw_exists(cls, v: Optional[Path]) -> Optional[Path]:
        if v is not None and not v.exists():
            raise ValueError(f"Raw data not found: {v}")
        return v

    def ensure_dirs(self) -> None:
        """Create output directories."""
        self.processed_data.mkdir(parents=True, exist_ok=True)
        self.models.mkdir(parents=True, exist_ok=True)
        self.logs.mkdir(parents=True, exist_ok=True)


class DataConfig(BaseModel):
    """Dataset columns and synthetic fallback size."""
    target: str = "bad_loan"
    encode_column: str = "addr_state"
    exclude_columns: List[str] = Field(default_factory=list)
    synthetic_rows: int = Field(default=20000, gt=0)
    synthetic_seed: int = Field(default=42, ge=0)


class SplitConfig(BaseModel):
    """Train/test split and fold assignment."""
    test_ratio: float = Field(default=0.2, gt=0, lt=1)
    n_folds: int = Field(default=5, ge=2)
    fold_column: str = "fold"
    seed: int = Field(default=1234, ge=0)


class EncodingConfig(BaseModel):
    """Target encoding parameters."""
    holdout_type: str = Field(default="KFold", pattern="(?i)^(kfold|none|leaveoneout)$")
    blended_average: bool = True
    noise_level: float = Field(default=0.0, ge=0)
    seed: Optional[int] = 1234
    midpoint: float = 10.0
    smoothing: float = Field(default=20.0, gt=0)
    n_partitions: int = Field(default=1, ge=1)


class ModelParams(BaseModel):
    """Gradient-boosted tree hyperparameters."""
    random_state: int = Field(default=42, ge=0)
    n_estimators: int = Field(default=200, gt=0)
    max_depth: int = Field(default=5, gt=0)
    learning_rate: float = Field(default=0.1, gt=0, le=1)
    subsample: float = Field(default=0.8, gt=0, le=1)
    colsample_bytree: float = Field(default=0.8, gt=0, le=1)
    top_importances: int = Field(default=10, gt=0)

    def to_xgb_params(self) -> Dict[str, Any]:
        """Return XGBoost params dict."""
        return {
            "n_estimators": self.n_estimators,
            "max_depth": self.max_depth,
            "learning_rate": self.learning_rate,
            "subsample": self.subsample,
            "colsample_bytree": self.colsample_bytree,
            "random_state": self.random_state,
            "n_jobs": -1,
            "verbosity": 0
        }


class MLflowConfig(BaseSettings):
    """MLflow tracking configuration."""
    enabled: bool = True
    experiment_name: str = Field(default="loan-target-encoding")
    tracking_uri: str = Field(
        default="mlruns",
        validation_alias=AliasChoices("MLFLOW_TRACKING_URI", "tracking_uri")
    )
    model_config = SettingsConfigDict(
        env_prefix="MLFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


class Config(BaseModel):
    """Complete experiment configuration."""
    paths: PathConfig = PathConfig()
    data: DataConfig = DataConfig()
    split: SplitConfig = SplitConfig()
    encoding: EncodingConfig = EncodingConfig()
    model: ModelParams = ModelParams()
    mlflow: MLflowConfig = MLflowConfig()


def load_config(config_path: Path) -> Config:
    """Load and validate config from YAML file."""
    from loan_te.utils.exceptions import ConfigurationError

    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        config = Config(**raw)
        config.paths.ensure_dirs()

        return config

    except Exception as e:
        raise ConfigurationError(f"Invalid config: {e}") from e
