"""
Model output utilities: thresholding and label normalisation.
"""

import numpy as np
import pandas as pd
import logging

from ..pipeline.prototype import canonical_level
from .errors import InvalidScoreOutput

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5


def apply_threshold(probabilities, threshold: float = DEFAULT_THRESHOLD) -> np.ndarray:
    """
    Convert scores to binary labels.

    Args:
        probabilities: Predicted probabilities, one per row
        threshold: Scores strictly above the threshold become 1

    Returns:
        Integer array of 0/1 labels
    """
    scores = np.asarray(probabilities, dtype=float)
    if scores.ndim != 1:
        raise InvalidScoreOutput(f"Expected one score per row, got array of shape {scores.shape}")

    n_missing = int(np.isnan(scores).sum())
    if n_missing:
        logger.warning(f"{n_missing} missing score(s) mapped to label 0")

    return (scores > threshold).astype(int)


def labels_to_int(labels) -> np.ndarray:
    """Parse class labels (0/1 as ints, floats, bools or strings) into an integer array."""
    values = np.asarray(labels, dtype=object)
    if values.ndim != 1:
        raise InvalidScoreOutput(f"Expected one label per row, got array of shape {values.shape}")

    parsed = pd.to_numeric(
        pd.Series([None if pd.isna(v) else canonical_level(v) for v in values], dtype=object),
        errors="coerce",
    )
    invalid = ~parsed.isin([0, 1])
    if invalid.any():
        bad = values[invalid.to_numpy()].tolist()
        raise InvalidScoreOutput(f"Class labels must be 0 or 1, got {bad[:5]}")

    return parsed.to_numpy().astype(int)
