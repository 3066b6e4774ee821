"""Utility modules."""

from loan_te.utils.config import Config, load_config
from loan_te.utils.exceptions import (
    ConfigurationError,
    DataLoadError,
    DataValidationError,
    EmptyDatasetError,
    EncodingError,
    InvalidColumnError,
    MissingFoldColumnError,
    ModelTrainingError,
    TargetEncodingError,
    UnknownHoldoutTypeError,
    UnsupportedTargetTypeError,
)
from loan_te.utils.logger import get_logger

__all__ = [
    "Config",
    "load_config",
    "get_logger",
    "TargetEncodingError",
    "ConfigurationError",
    "DataLoadError",
    "DataValidationError",
    "EncodingError",
    "InvalidColumnError",
    "UnsupportedTargetTypeError",
    "EmptyDatasetError",
    "MissingFoldColumnError",
    "UnknownHoldoutTypeError",
    "ModelTrainingError",
]
