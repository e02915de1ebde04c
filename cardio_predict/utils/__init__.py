"""Utility modules: errors, model output helpers and artifact loading."""

from .errors import (
    CardioPredictError,
    InputNotTabular,
    SchemaMissing,
    TypeMismatch,
    UnknownModelType,
    MissingColumns,
    InvalidScoreOutput,
)
from .model_utils import apply_threshold, labels_to_int

__all__ = [
    'CardioPredictError',
    'InputNotTabular',
    'SchemaMissing',
    'TypeMismatch',
    'UnknownModelType',
    'MissingColumns',
    'InvalidScoreOutput',
    'apply_threshold',
    'labels_to_int',
]
