"""
Cardiovascular disease prediction

Entry point that aligns new patient records with the training schema,
dispatches them to one of the frozen models and returns a 0/1 label per row.

Usage:
    >>> from cardio_predict import predict_cardio
    >>> patient = {
    ...     "age": 50, "gender": 1, "height": 165, "weight": 70,
    ...     "ap_hi": 120, "ap_lo": 80, "cholesterol": 1, "gluc": 1,
    ...     "smoke": 0, "alco": 0, "active": 1,
    ... }
    >>> labels = predict_cardio(patient, model_type="logistic-regression")
"""

import logging
import time
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd

from .context import PredictionContext
from .scoring import (
    SCORERS,
    CategoricalPrediction,
    ModelType,
    ScorePrediction,
    ScoringResult,
)
from ..pipeline.feature_engineering import create_design_pipeline
from ..pipeline.preprocessing import DataValidator
from ..utils.artifacts import get_default_context, load_context, load_settings
from ..utils.errors import InvalidScoreOutput
from ..utils.model_utils import apply_threshold, labels_to_int

logger = logging.getLogger(__name__)

ModelSelector = Union[ModelType, str]


def score_records(new_data,
                  model_type: ModelType,
                  context: PredictionContext) -> Tuple[ScoringResult, int]:
    """
    Align records and run the selected model.

    Returns:
        The tagged scoring result and the number of input rows
    """
    aligner, builder, reindexer = create_design_pipeline(
        context.prototype,
        context.train_columns,
        formula=context.formula,
        outcome_placeholder=context.outcome_placeholder,
        strict_columns=context.strict_columns,
    )
    aligned = aligner.transform(new_data)
    n_rows = len(aligned)
    if n_rows == 0:
        return ScorePrediction(np.empty(0, dtype=float)), 0

    model = context.model_for(model_type)
    if model_type is ModelType.BOOSTING:
        representation = reindexer.transform(builder.transform(aligned))
    else:
        # The outcome placeholder only exists for the formula step
        representation = aligned[context.prototype.names]

    result = SCORERS[model_type](model, representation)
    return result, n_rows


def resolve_labels(result: ScoringResult, threshold: float) -> np.ndarray:
    """Map a tagged scoring result to 0/1 labels."""
    if isinstance(result, ScorePrediction):
        return apply_threshold(result.probabilities, threshold)
    if isinstance(result, CategoricalPrediction):
        return labels_to_int(result.labels)
    raise TypeError(f"Unsupported scoring result: {type(result).__name__}")


def _check_row_count(values: np.ndarray, n_rows: int, model_type: ModelType):
    if len(values) != n_rows:
        raise InvalidScoreOutput(
            f"{model_type.value} model returned {len(values)} predictions for {n_rows} rows"
        )


def predict_cardio(new_data,
                   model_type: ModelSelector = ModelType.BOOSTING,
                   context: Optional[PredictionContext] = None) -> np.ndarray:
    """
    Predict cardiovascular disease (0 = no disease, 1 = disease) for each record.

    Args:
        new_data: DataFrame or mapping of column name to values. Must contain the
            training feature columns (age, gender, height, weight, ap_hi, ap_lo,
            cholesterol, gluc, smoke, alco, active); extra columns are ignored.
        model_type: 'boosting' (default), 'logistic-regression' or 'random-forest'
            ('xgboost', 'glm' and 'rf' are accepted as well)
        context: Loaded models and training schema; the process-wide default
            context is loaded on first use when omitted

    Returns:
        Integer array with one label per input row, in input order

    Raises:
        UnknownModelType: model_type is not a supported model family
        InputNotTabular: new_data is not a well-formed record set
        TypeMismatch: a numeric training column holds unparseable values

    Calls may run concurrently from several threads as long as the loaded
    model objects support concurrent read-only prediction.
    """
    model_type = ModelType.parse(model_type)
    if context is None:
        context = get_default_context()

    start_time = time.time()
    result, n_rows = score_records(new_data, model_type, context)
    labels = resolve_labels(result, context.threshold)
    _check_row_count(labels, n_rows, model_type)

    elapsed_time = time.time() - start_time
    logger.info(f"Predicted {n_rows} record(s) with {model_type.value} model: "
                f"{int(labels.sum())} positive, time={elapsed_time:.3f}s")
    return labels


class CardioPredictor:
    """
    Class-based interface bound to one prediction context.

    Usage:
        >>> predictor = CardioPredictor(model_dir="models/")
        >>> predictor.predict(patients_df, model_type="random-forest")
        >>> predictor.predict_frame(patients_df)
    """

    def __init__(self,
                 context: Optional[PredictionContext] = None,
                 model_dir: Optional[str] = None,
                 config_path: Optional[str] = None):
        if context is None:
            if model_dir is None and config_path is None:
                context = get_default_context()
            else:
                context = load_context(load_settings(config_path, model_dir=model_dir))
        self.context = context

    def predict(self, new_data, model_type: ModelSelector = ModelType.BOOSTING) -> np.ndarray:
        """Binary label per row."""
        return predict_cardio(new_data, model_type=model_type, context=self.context)

    def predict_proba(self, new_data, model_type: ModelSelector = ModelType.BOOSTING) -> np.ndarray:
        """
        Score per row before thresholding.

        A classification forest only returns labels; those are returned as 0.0/1.0.
        """
        model_type = ModelType.parse(model_type)
        result, n_rows = score_records(new_data, model_type, self.context)

        if isinstance(result, ScorePrediction):
            scores = np.asarray(result.probabilities, dtype=float)
        else:
            scores = labels_to_int(result.labels).astype(float)

        _check_row_count(scores, n_rows, model_type)
        return scores

    def predict_frame(self, new_data, model_type: ModelSelector = ModelType.BOOSTING,
                      column: str = "prediction") -> pd.DataFrame:
        """Copy of the input records with a prediction column appended."""
        model_type = ModelType.parse(model_type)
        frame = DataValidator.to_frame(new_data).copy()
        frame[column] = self.predict(frame, model_type=model_type)
        return frame
