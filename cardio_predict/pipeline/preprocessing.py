"""
Input validation and schema alignment against the training prototype.
"""

import logging
import time
from collections.abc import Mapping
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin

from .prototype import ColumnSpec, TrainingPrototype, canonical_level
from ..utils.errors import InputNotTabular, MissingColumns, TypeMismatch

logger = logging.getLogger(__name__)


class DataValidator:
    """Check that raw input is a well-formed record set and turn it into a DataFrame."""

    @staticmethod
    def _is_scalar(value: Any) -> bool:
        return value is None or value is pd.NA or np.isscalar(value)

    @staticmethod
    def _as_column(name: str, value: Any) -> List:
        """Values of any one-dimensional array-like (list, range, Series, Categorical, ...)."""
        if isinstance(value, (Mapping, set, frozenset)):
            raise InputNotTabular(
                f"Column '{name}' must be a sequence of values, got {type(value).__name__}"
            )

        column = np.asarray(value, dtype=object)
        if column.ndim != 1:
            raise InputNotTabular(
                f"Column '{name}' must be a one-dimensional sequence of values, "
                f"got {type(value).__name__} with shape {column.shape}"
            )
        return column.tolist()

    @classmethod
    def to_frame(cls, data) -> pd.DataFrame:
        """
        Convert a record set into a DataFrame.

        Accepts a DataFrame, a mapping of column name to equal-length sequences,
        or a mapping of column name to scalars (a single record).

        Raises:
            InputNotTabular: if the input cannot be read as a table
        """
        if isinstance(data, pd.DataFrame):
            if data.shape[1] == 0:
                raise InputNotTabular("Input DataFrame has no columns")
            if data.columns.duplicated().any():
                duplicated = data.columns[data.columns.duplicated()].tolist()
                raise InputNotTabular(f"Input DataFrame has duplicate columns: {duplicated}")
            return data

        if not isinstance(data, Mapping):
            raise InputNotTabular(
                f"Input must be a DataFrame or a mapping of column name to values, "
                f"got {type(data).__name__}"
            )

        if not data:
            raise InputNotTabular("Input mapping has no columns")

        non_string = [key for key in data if not isinstance(key, str)]
        if non_string:
            raise InputNotTabular(f"Column names must be strings, got {non_string[:5]}")

        scalars = [cls._is_scalar(value) for value in data.values()]
        if all(scalars):
            # One record
            return pd.DataFrame({name: [value] for name, value in data.items()})
        if any(scalars):
            mixed = [name for name, is_scalar in zip(data, scalars) if is_scalar]
            raise InputNotTabular(f"Columns mix scalars and sequences; scalar columns: {mixed[:5]}")

        columns = {name: cls._as_column(name, value) for name, value in data.items()}
        lengths = {name: len(values) for name, values in columns.items()}
        if len(set(lengths.values())) > 1:
            raise InputNotTabular(f"Columns have unequal lengths: {lengths}")

        return pd.DataFrame(columns)


class SchemaAligner(BaseEstimator, TransformerMixin):
    """Coerce new records to the column types and factor levels used at training time."""

    def __init__(self,
                 prototype: TrainingPrototype,
                 outcome_placeholder: float = 0,
                 strict_columns: bool = False):
        """
        Initialize schema aligner.

        Args:
            prototype: Frozen training schema
            outcome_placeholder: Constant written to the outcome column when the input has none
            strict_columns: Raise instead of backfilling when training columns are absent
        """
        self.prototype = prototype
        self.outcome_placeholder = outcome_placeholder
        self.strict_columns = strict_columns

    def fit(self, X, y=None):
        """Nothing is learned; the prototype is fixed at training time."""
        DataValidator.to_frame(X)
        return self

    def transform(self, X) -> pd.DataFrame:
        """Return a copy of X with prototype columns coerced, in prototype order, plus the outcome column."""
        start_time = time.time()
        df = DataValidator.to_frame(X)
        outcome = self.prototype.outcome

        missing = [name for name in self.prototype.names if name not in df.columns]
        if missing:
            if self.strict_columns:
                raise MissingColumns(missing)
            logger.warning(f"Backfilling {len(missing)} training column(s) absent from input: {missing}")

        extra = [col for col in df.columns if col not in self.prototype and col != outcome]
        if extra:
            logger.debug(f"Ignoring {len(extra)} column(s) not used at training time: {extra[:5]}")

        aligned: Dict[str, Any] = {}
        for spec in self.prototype:
            if spec.name in df.columns:
                aligned[spec.name] = self._coerce(df[spec.name], spec)
            else:
                aligned[spec.name] = self._backfill(spec, len(df))

        if outcome in df.columns:
            aligned[outcome] = df[outcome].to_numpy()
        else:
            aligned[outcome] = np.full(len(df), self.outcome_placeholder)

        result = pd.DataFrame(aligned, index=df.index)

        elapsed_time = time.time() - start_time
        logger.debug(f"Aligned {len(result)} rows to {len(self.prototype)} training columns "
                     f"in {elapsed_time:.4f} seconds")
        return result

    def _coerce(self, series: pd.Series, spec: ColumnSpec):
        if spec.is_categorical:
            return self._to_categorical(series, spec)
        return self._to_numeric(series, spec)

    @staticmethod
    def _to_numeric(series: pd.Series, spec: ColumnSpec) -> np.ndarray:
        raw = series.astype(object)
        converted = pd.to_numeric(raw, errors="coerce")
        bad = converted.isna() & raw.notna()
        if bad.any():
            raise TypeMismatch(spec.name, raw[bad].unique())
        return converted.to_numpy(dtype=float)

    @staticmethod
    def _to_categorical(series: pd.Series, spec: ColumnSpec) -> pd.Categorical:
        raw = series.astype(object)
        is_missing = raw.isna().to_numpy()
        values = [None if missing else canonical_level(value)
                  for value, missing in zip(raw, is_missing)]
        categorical = pd.Categorical(values, categories=list(spec.levels))

        unrepresented = ~is_missing & np.asarray(pd.isna(categorical))
        if unrepresented.any():
            unseen = sorted({values[i] for i in np.flatnonzero(unrepresented)})
            logger.warning(f"Column '{spec.name}': {int(unrepresented.sum())} value(s) outside training "
                           f"levels {list(spec.levels)} treated as absent: {unseen[:5]}")
        return categorical

    @staticmethod
    def _backfill(spec: ColumnSpec, n_rows: int):
        if spec.is_categorical:
            return pd.Categorical([None] * n_rows, categories=list(spec.levels))
        return np.zeros(n_rows, dtype=float)
