"""
Immutable prediction context shared by every prediction call.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Tuple

from .scoring import ModelType
from ..pipeline.feature_engineering import DEFAULT_FORMULA, ModelFormula
from ..pipeline.prototype import TrainingPrototype
from ..utils.model_utils import DEFAULT_THRESHOLD


@dataclass(frozen=True, eq=False)
class PredictionContext:
    """
    Frozen models, training prototype and training column list.

    Built once (see `cardio_predict.utils.artifacts.load_context`) and passed
    to every prediction call. Nothing in it is modified after construction.
    """

    prototype: TrainingPrototype
    train_columns: Tuple[str, ...]
    models: Mapping[ModelType, Any]
    threshold: float = DEFAULT_THRESHOLD
    formula: str = DEFAULT_FORMULA
    outcome_placeholder: float = 0
    strict_columns: bool = False

    def __post_init__(self):
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"Threshold must be within [0, 1], got {self.threshold}")

        formula = ModelFormula.parse(self.formula)
        if formula.response != self.prototype.outcome:
            raise ValueError(f"Formula response '{formula.response}' does not match "
                             f"the prototype outcome '{self.prototype.outcome}'")

        models = {ModelType.parse(key): model for key, model in dict(self.models).items()}
        object.__setattr__(self, "train_columns", tuple(self.train_columns))
        object.__setattr__(self, "models", MappingProxyType(models))

    @property
    def available_models(self) -> Tuple[ModelType, ...]:
        return tuple(self.models)

    def model_for(self, model_type: ModelType) -> Any:
        try:
            return self.models[model_type]
        except KeyError:
            raise KeyError(f"No {model_type.value} model loaded in this context") from None
