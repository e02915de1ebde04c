"""
Error taxonomy for cardiovascular predictions.
"""

from typing import Iterable


class CardioPredictError(Exception):
    """Base class for every error raised by the prediction pipeline."""


class InputNotTabular(CardioPredictError, TypeError):
    """Input is not a mapping of column name to equal-length sequences."""


# Alias for the same condition
SchemaMissing = InputNotTabular


class TypeMismatch(CardioPredictError, ValueError):
    """A column declared numeric at training time holds unparseable values."""

    def __init__(self, column: str, bad_values: Iterable):
        self.column = column
        self.bad_values = list(bad_values)
        preview = ", ".join(repr(v) for v in self.bad_values[:5])
        super().__init__(
            f"Column '{column}' is numeric in the training prototype but contains "
            f"{len(self.bad_values)} unparseable value(s): {preview}"
        )


class UnknownModelType(CardioPredictError, ValueError):
    """Model selector outside the supported set."""

    def __init__(self, value, allowed: Iterable[str]):
        self.value = value
        self.allowed = list(allowed)
        super().__init__(
            f"Unknown model type {value!r}; expected one of {', '.join(self.allowed)}"
        )


class MissingColumns(CardioPredictError, KeyError):
    """Training columns absent from the input while strict column checking is on."""

    def __init__(self, columns: Iterable[str]):
        self.columns = list(columns)
        super().__init__(f"Input is missing training columns: {self.columns}")

    def __str__(self):
        return self.args[0]


class InvalidScoreOutput(CardioPredictError, ValueError):
    """A scoring function returned output that cannot be mapped to one 0/1 label per row."""
