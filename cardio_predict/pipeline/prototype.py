"""
Training prototype: the frozen column schema captured when the models were fit.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import logging

import yaml

logger = logging.getLogger(__name__)

NUMERIC = "numeric"
CATEGORICAL = "categorical"


def canonical_level(value) -> str:
    """Canonical string form of a categorical value (1, 1.0 and "1" are the same level)."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if hasattr(value, "item") and not isinstance(value, str):
        # numpy scalar
        return canonical_level(value.item())
    return str(value).strip()


@dataclass(frozen=True)
class ColumnSpec:
    """Semantic type of one training column."""

    name: str
    kind: str
    levels: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.kind not in (NUMERIC, CATEGORICAL):
            raise ValueError(f"Column '{self.name}' has unknown kind: {self.kind}")
        if self.kind == CATEGORICAL and not self.levels:
            raise ValueError(f"Categorical column '{self.name}' needs at least one level")
        if self.kind == NUMERIC and self.levels:
            raise ValueError(f"Numeric column '{self.name}' cannot declare levels")
        if len(set(self.levels)) != len(self.levels):
            raise ValueError(f"Column '{self.name}' has duplicate levels: {list(self.levels)}")

    @property
    def is_categorical(self) -> bool:
        return self.kind == CATEGORICAL

    @property
    def reference_level(self) -> Optional[str]:
        return self.levels[0] if self.levels else None


@dataclass(frozen=True)
class TrainingPrototype:
    """Ordered, read-only schema of the training frame."""

    columns: Tuple[ColumnSpec, ...]
    outcome: str = "cardio"
    _index: Dict[str, ColumnSpec] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        names = [c.name for c in self.columns]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate prototype columns: {duplicates}")
        if self.outcome in names:
            raise ValueError(f"Outcome column '{self.outcome}' cannot also be a feature")
        object.__setattr__(self, "_index", {c.name: c for c in self.columns})

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def numeric_columns(self) -> List[str]:
        return [c.name for c in self.columns if not c.is_categorical]

    @property
    def categorical_columns(self) -> List[str]:
        return [c.name for c in self.columns if c.is_categorical]

    def __contains__(self, name) -> bool:
        return name in self._index

    def __getitem__(self, name: str) -> ColumnSpec:
        return self._index[name]

    def __iter__(self):
        return iter(self.columns)

    def __len__(self):
        return len(self.columns)

    @classmethod
    def from_dict(cls, payload: Dict) -> "TrainingPrototype":
        """Build a prototype from its yaml/dict form."""
        if not isinstance(payload, dict) or "columns" not in payload:
            raise ValueError("Prototype definition must be a mapping with a 'columns' list")

        columns = []
        for entry in payload["columns"]:
            levels = tuple(canonical_level(level) for level in entry.get("levels") or ())
            columns.append(ColumnSpec(name=str(entry["name"]), kind=entry["kind"], levels=levels))

        return cls(columns=tuple(columns), outcome=str(payload.get("outcome", "cardio")))


def load_prototype(path: Union[str, Path]) -> TrainingPrototype:
    """Load the training prototype from a yaml file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        payload = yaml.safe_load(f)

    prototype = TrainingPrototype.from_dict(payload)
    logger.info(f"Training prototype loaded from {path}: {len(prototype)} columns "
                f"({len(prototype.categorical_columns)} categorical)")
    return prototype


def load_train_columns(path: Union[str, Path]) -> Tuple[str, ...]:
    """Load the ordered design-matrix column list (one name per line)."""
    path = Path(path)
    names = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
    names = tuple(name for name in names if name)

    if not names:
        raise ValueError(f"Training column list is empty: {path}")
    if len(set(names)) != len(names):
        raise ValueError(f"Training column list has duplicate names: {path}")

    logger.info(f"Training column list loaded from {path}: {len(names)} columns")
    return names
