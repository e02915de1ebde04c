"""
Cardiovascular disease prediction

Applies pre-trained gradient boosting, logistic regression and random forest
models to new patient records after aligning them with the training schema.
"""

__version__ = "1.0.0"

from .serving import (
    CardioPredictor,
    ModelType,
    PredictionContext,
    predict_cardio,
)
from .utils import (
    CardioPredictError,
    InputNotTabular,
    InvalidScoreOutput,
    MissingColumns,
    SchemaMissing,
    TypeMismatch,
    UnknownModelType,
)
from .utils.artifacts import load_context, load_settings

__all__ = [
    'predict_cardio',
    'CardioPredictor',
    'ModelType',
    'PredictionContext',
    'load_context',
    'load_settings',
    'CardioPredictError',
    'InputNotTabular',
    'SchemaMissing',
    'TypeMismatch',
    'UnknownModelType',
    'MissingColumns',
    'InvalidScoreOutput',
]
