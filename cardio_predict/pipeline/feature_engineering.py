"""
Design matrix construction

Expands aligned patient records into the dummy-encoded numeric matrix the
boosting model was trained on, and reshapes it to the exact training column
layout.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin

from .preprocessing import SchemaAligner
from .prototype import TrainingPrototype
from ..utils.errors import MissingColumns

logger = logging.getLogger(__name__)

DEFAULT_FORMULA = "cardio ~ . - 1"
INTERCEPT_COLUMN = "(Intercept)"

_TERM_PATTERN = re.compile(r"([+-])\s*([^\s+-]+)")


@dataclass(frozen=True)
class ModelFormula:
    """Parsed `response ~ . [- 1] [- column ...]` formula."""

    response: str
    intercept: bool = True
    excluded: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "ModelFormula":
        if not isinstance(text, str) or text.count("~") != 1:
            raise ValueError(f"Formula must have the form 'response ~ terms': {text!r}")

        lhs, rhs = (part.strip() for part in text.split("~"))
        if not lhs or not re.fullmatch(r"[\w.]+", lhs):
            raise ValueError(f"Formula has an invalid response: {text!r}")

        rhs = rhs if rhs[:1] in ("+", "-") else f"+ {rhs}"
        terms = _TERM_PATTERN.findall(rhs)
        if not terms or _TERM_PATTERN.sub("", rhs).strip():
            raise ValueError(f"Could not parse formula terms: {text!r}")

        intercept = True
        has_dot = False
        excluded: List[str] = []
        for sign, term in terms:
            if term == ".":
                if sign == "-":
                    raise ValueError(f"'.' cannot be removed from a formula: {text!r}")
                has_dot = True
            elif term in ("0", "1"):
                intercept = (sign == "+") == (term == "1")
            elif sign == "-":
                excluded.append(term)
            else:
                raise ValueError(f"Only '.' expansion is supported, got term {term!r} in {text!r}")

        if not has_dot:
            raise ValueError(f"Formula must expand '.' over the training columns: {text!r}")

        return cls(response=lhs, intercept=intercept, excluded=tuple(excluded))


class DesignMatrixBuilder(BaseEstimator, TransformerMixin):
    """Expand aligned records into numeric and indicator columns following a model formula."""

    def __init__(self, prototype: TrainingPrototype, formula: str = DEFAULT_FORMULA):
        """
        Args:
            prototype: Frozen training schema giving column order and factor levels
            formula: Model formula used at training time
        """
        self.prototype = prototype
        self.formula = formula

    def fit(self, X, y=None):
        ModelFormula.parse(self.formula)
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        """
        Build the design matrix.

        Categorical columns become `<column><level>` indicators. Without an
        intercept the first categorical column keeps every level; every other
        categorical column drops its reference (first) level. Values outside
        the level set give all-zero indicators.
        """
        formula = ModelFormula.parse(self.formula)
        if formula.response not in X.columns:
            raise MissingColumns([formula.response])

        n_rows = len(X)
        blocks = {}
        if formula.intercept:
            blocks[INTERCEPT_COLUMN] = np.ones(n_rows)

        full_levels = not formula.intercept
        for spec in self.prototype:
            if spec.name in formula.excluded or spec.name not in X.columns:
                continue

            if not spec.is_categorical:
                blocks[spec.name] = pd.to_numeric(X[spec.name]).to_numpy(dtype=float)
                continue

            codes = pd.Categorical(X[spec.name], categories=list(spec.levels)).codes
            for code, level in enumerate(spec.levels):
                if code == 0 and not full_levels:
                    continue
                blocks[f"{spec.name}{level}"] = (codes == code).astype(float)
            full_levels = False

        matrix = pd.DataFrame(blocks, index=X.index)
        logger.debug(f"Design matrix built with shape {matrix.shape}")
        return matrix


class ColumnReindexer(BaseEstimator, TransformerMixin):
    """Reshape a design matrix to the frozen training column layout."""

    def __init__(self, train_columns: Sequence[str]):
        self.train_columns = train_columns

    def fit(self, X, y=None):
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        """
        Zero-filled matrix with exactly the training columns, in training order.

        Columns only present in X are dropped; training columns absent from X
        stay zero.
        """
        required = list(self.train_columns)
        required_set = set(required)

        original_columns = set(X.columns)
        missing = [col for col in required if col not in original_columns]
        extra = [col for col in X.columns if col not in required_set]

        aligned = X.reindex(columns=required, fill_value=0.0).astype(float)

        if missing:
            logger.debug(f"Filled {len(missing)} training columns with zeros: {missing[:5]}")
        if extra:
            logger.debug(f"Dropped {len(extra)} columns unknown at training time: {extra[:5]}")

        return aligned


def create_design_pipeline(prototype: TrainingPrototype,
                           train_columns: Sequence[str],
                           formula: str = DEFAULT_FORMULA,
                           outcome_placeholder: float = 0,
                           strict_columns: bool = False) -> List[Any]:
    """Create the aligner, builder and reindexer steps for one prototype."""
    return [
        SchemaAligner(prototype, outcome_placeholder=outcome_placeholder, strict_columns=strict_columns),
        DesignMatrixBuilder(prototype, formula=formula),
        ColumnReindexer(train_columns),
    ]


class DesignMatrixTransformer(BaseEstimator, TransformerMixin):
    """
    Raw records to training-layout design matrix in one step.

    Intended as the first step of a scikit-learn Pipeline so that the
    logistic regression and random forest models can be scored on the
    aligned frame directly.
    """

    def __init__(self,
                 prototype: TrainingPrototype,
                 train_columns: Sequence[str],
                 formula: str = DEFAULT_FORMULA,
                 outcome_placeholder: float = 0):
        self.prototype = prototype
        self.train_columns = train_columns
        self.formula = formula
        self.outcome_placeholder = outcome_placeholder

    def fit(self, X, y=None):
        ModelFormula.parse(self.formula)
        return self

    def transform(self, X) -> pd.DataFrame:
        start_time = time.time()

        result = X
        for step in create_design_pipeline(self.prototype, self.train_columns,
                                           formula=self.formula,
                                           outcome_placeholder=self.outcome_placeholder):
            result = step.transform(result)

        elapsed_time = time.time() - start_time
        logger.debug(f"Design matrix transformation completed in {elapsed_time:.4f} seconds")
        return result

    def get_feature_names_out(self, input_features=None):
        return np.asarray(list(self.train_columns), dtype=object)
