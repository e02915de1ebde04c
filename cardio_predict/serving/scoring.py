"""
Scoring adapters, one per model family.

Each adapter wraps a frozen model and returns a tagged result: either a
probability per row (`ScorePrediction`) or a class label per row
(`CategoricalPrediction`).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Union
import logging

import numpy as np
import pandas as pd
import xgboost as xgb
from sklearn.base import is_classifier

from ..utils.errors import UnknownModelType

logger = logging.getLogger(__name__)

# Short tags the fitted model files are named after
_ALIASES = {
    "xgboost": "boosting",
    "glm": "logistic-regression",
    "rf": "random-forest",
}


class ModelType(str, Enum):
    """Supported model families."""

    BOOSTING = "boosting"
    LOGISTIC_REGRESSION = "logistic-regression"
    RANDOM_FOREST = "random-forest"

    @classmethod
    def parse(cls, value) -> "ModelType":
        """Validate a selector tag; raises UnknownModelType for anything outside the set."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            if value in _ALIASES:
                return cls(_ALIASES[value])
            try:
                return cls(value)
            except ValueError:
                pass
        raise UnknownModelType(value, [m.value for m in cls] + list(_ALIASES))


@dataclass(frozen=True)
class ScorePrediction:
    """Continuous score in [0, 1] per row."""

    probabilities: np.ndarray


@dataclass(frozen=True)
class CategoricalPrediction:
    """Class label per row."""

    labels: np.ndarray


ScoringResult = Union[ScorePrediction, CategoricalPrediction]


def _positive_class_proba(model: Any, X: pd.DataFrame) -> np.ndarray:
    proba = np.asarray(model.predict_proba(X))
    if proba.ndim == 1:
        return proba.astype(float)

    classes = [str(c) for c in getattr(model, "classes_", [])]
    column = classes.index("1") if "1" in classes else proba.shape[1] - 1
    return proba[:, column].astype(float)


def score_boosting(model: Any, matrix: pd.DataFrame) -> ScorePrediction:
    """Score a dense design matrix with a booster (native or scikit-learn API)."""
    if isinstance(model, xgb.Booster):
        dtest = xgb.DMatrix(matrix.to_numpy(dtype=float),
                            feature_names=list(matrix.columns),
                            missing=np.nan)
        probabilities = model.predict(dtest)
    else:
        probabilities = _positive_class_proba(model, matrix)
    return ScorePrediction(np.asarray(probabilities, dtype=float).ravel())


def score_logistic_regression(model: Any, frame: pd.DataFrame) -> ScorePrediction:
    """Score the aligned frame; the model returns response-scale probabilities."""
    if hasattr(model, "predict_proba"):
        probabilities = _positive_class_proba(model, frame)
    else:
        probabilities = model.predict(frame)
    return ScorePrediction(np.asarray(probabilities, dtype=float).ravel())


def score_random_forest(model: Any, frame: pd.DataFrame) -> ScoringResult:
    """Classification forests give class labels, regression forests give scores."""
    predictions = np.asarray(model.predict(frame)).ravel()
    if is_classifier(model):
        return CategoricalPrediction(predictions)
    return ScorePrediction(predictions.astype(float))


SCORERS: Dict[ModelType, Callable[[Any, pd.DataFrame], ScoringResult]] = {
    ModelType.BOOSTING: score_boosting,
    ModelType.LOGISTIC_REGRESSION: score_logistic_regression,
    ModelType.RANDOM_FOREST: score_random_forest,
}
