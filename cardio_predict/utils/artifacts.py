"""
Configuration and model artifact loading.

Artifacts are read once per process and handed out as an immutable
prediction context.
"""

import os
import logging
import time
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Union

import joblib
import xgboost as xgb
import yaml
from pydantic import BaseModel, Field, field_validator

from ..pipeline.feature_engineering import DEFAULT_FORMULA, ModelFormula
from ..pipeline.prototype import load_prototype, load_train_columns

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "config" / "predict_config.yaml"
DEFAULT_ARTIFACT_DIR = PACKAGE_DIR / "artifacts"

CONFIG_ENV_VAR = "CARDIO_CONFIG"
MODEL_DIR_ENV_VAR = "CARDIO_MODEL_DIR"


class ArtifactFiles(BaseModel):
    """File names inside the model directory."""

    prototype: str = "prototype.yaml"
    train_columns: str = "train_col_names.txt"
    boosting: List[str] = Field(default_factory=lambda: ["xgb_fit.json", "xgb_fit.ubj", "xgb_fit.joblib"])
    logistic_regression: List[str] = Field(default_factory=lambda: ["glm_fit.joblib"])
    random_forest: List[str] = Field(default_factory=lambda: ["rf_fit.joblib"])

    @field_validator("boosting", "logistic_regression", "random_forest", mode="before")
    @classmethod
    def validate_candidates(cls, v):
        """Accept a single file name as well as a list of candidates."""
        if isinstance(v, str):
            return [v]
        return v


class PredictorSettings(BaseModel):
    """Prediction settings loaded from yaml."""

    model_dir: Optional[Path] = Field(None, description="Directory holding the fitted models")
    threshold: float = Field(0.5, ge=0.0, le=1.0, description="Scores above this become label 1")
    formula: str = Field(DEFAULT_FORMULA, description="Model formula used for the design matrix")
    outcome_placeholder: float = Field(0, description="Outcome value written when the input has none")
    strict_columns: bool = Field(False, description="Fail instead of backfilling absent training columns")
    artifacts: ArtifactFiles = Field(default_factory=ArtifactFiles)

    @field_validator("formula")
    @classmethod
    def validate_formula(cls, v):
        ModelFormula.parse(v)
        return v

    @property
    def resolved_model_dir(self) -> Path:
        return Path(self.model_dir) if self.model_dir else DEFAULT_ARTIFACT_DIR


def load_settings(config_path: Optional[Union[str, Path]] = None, **overrides) -> PredictorSettings:
    """
    Load prediction settings.

    The file is `config_path`, else $CARDIO_CONFIG, else the packaged default.
    $CARDIO_MODEL_DIR overrides the configured model directory; keyword
    overrides that are not None take precedence over both.
    """
    path = Path(config_path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    payload = dict(config.get("prediction", {}))
    payload["artifacts"] = config.get("artifacts", {})

    env_model_dir = os.getenv(MODEL_DIR_ENV_VAR)
    if env_model_dir:
        payload["model_dir"] = env_model_dir

    payload.update({key: value for key, value in overrides.items() if value is not None})

    settings = PredictorSettings(**payload)
    logger.info(f"Prediction settings loaded from {path}")
    return settings


def _find_artifact(model_dir: Path, candidates: List[str], fallback_dir: Optional[Path] = None) -> Path:
    search_dirs = [model_dir] + ([fallback_dir] if fallback_dir and fallback_dir != model_dir else [])
    for directory in search_dirs:
        for name in candidates:
            path = directory / name
            if path.exists():
                return path
    raise FileNotFoundError(
        f"None of {candidates} found in {', '.join(str(d) for d in search_dirs)}"
    )


def load_boosting_model(path: Union[str, Path]) -> Any:
    """Load a booster saved natively (json/ubj) or with joblib."""
    path = Path(path)
    if path.suffix in (".json", ".ubj"):
        booster = xgb.Booster()
        booster.load_model(str(path))
        return booster
    return joblib.load(path)


def load_context(settings: Optional[PredictorSettings] = None):
    """
    Load the training prototype, the training column list and the three
    fitted models into a PredictionContext.

    The prototype and column list are looked up in the model directory first
    and fall back to the copies shipped with the package.

    Raises:
        FileNotFoundError: if a model file is missing
    """
    from ..serving.context import PredictionContext
    from ..serving.scoring import ModelType

    settings = settings or load_settings()
    start_time = time.time()

    model_dir = settings.resolved_model_dir
    files = settings.artifacts
    logger.info(f"Loading model artifacts from {model_dir}")

    prototype = load_prototype(_find_artifact(model_dir, [files.prototype], DEFAULT_ARTIFACT_DIR))
    train_columns = load_train_columns(_find_artifact(model_dir, [files.train_columns], DEFAULT_ARTIFACT_DIR))

    boosting_path = _find_artifact(model_dir, files.boosting)
    glm_path = _find_artifact(model_dir, files.logistic_regression)
    rf_path = _find_artifact(model_dir, files.random_forest)

    models = {
        ModelType.BOOSTING: load_boosting_model(boosting_path),
        ModelType.LOGISTIC_REGRESSION: joblib.load(glm_path),
        ModelType.RANDOM_FOREST: joblib.load(rf_path),
    }
    for model_type, model in models.items():
        logger.info(f"Loaded {model_type.value} model: {type(model).__name__}")

    context = PredictionContext(
        prototype=prototype,
        train_columns=train_columns,
        models=models,
        threshold=settings.threshold,
        formula=settings.formula,
        outcome_placeholder=settings.outcome_placeholder,
        strict_columns=settings.strict_columns,
    )

    elapsed_time = time.time() - start_time
    logger.info(f"Model artifacts loaded in {elapsed_time:.2f} seconds")
    return context


@lru_cache(maxsize=1)
def get_default_context():
    """Process-wide context built from the default settings, loaded on first use."""
    return load_context(load_settings())
