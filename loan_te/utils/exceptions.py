"""Custom exceptions for the loan target-encoding experiment."""


class TargetEncodingError(Exception):
    """Base exception for all package errors."""
    pass


class ConfigurationError(TargetEncodingError):
    """Invalid or missing configuration."""
    pass


class DataLoadError(TargetEncodingError):
    """Data loading failed."""
    pass


class DataValidationError(TargetEncodingError):
    """Data validation failed."""
    pass


class EncodingError(TargetEncodingError):
    """Target encoding rejected its inputs."""
    pass


class InvalidColumnError(EncodingError):
    """A required column is absent from the frame."""
    pass


class UnsupportedTargetTypeError(EncodingError):
    """Target column cannot be coerced to {0, 1}."""
    pass


class EmptyDatasetError(EncodingError):
    """Training frame has zero rows."""
    pass


class MissingFoldColumnError(EncodingError):
    """KFold holdout requested without fold ids."""
    pass


class UnknownHoldoutTypeError(EncodingError):
    """Holdout type is not one of KFold, None, LeaveOneOut."""
    pass


class ModelTrainingError(TargetEncodingError):
    """Model training failed."""
    pass
