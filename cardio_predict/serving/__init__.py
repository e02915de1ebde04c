"""Model dispatch and prediction entry points."""

from .scoring import ModelType, ScorePrediction, CategoricalPrediction
from .context import PredictionContext
from .predict import predict_cardio, CardioPredictor

__all__ = [
    'ModelType',
    'ScorePrediction',
    'CategoricalPrediction',
    'PredictionContext',
    'predict_cardio',
    'CardioPredictor',
]
