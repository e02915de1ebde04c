"""Test configuration and fixtures."""

import pytest
import pandas as pd
import numpy as np
import joblib
import xgboost as xgb
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline

from cardio_predict.pipeline import (
    DesignMatrixTransformer,
    create_design_pipeline,
    load_prototype,
    load_train_columns,
)
from cardio_predict.serving import ModelType, PredictionContext
from cardio_predict.utils.artifacts import DEFAULT_ARTIFACT_DIR

FEATURE_COLUMNS = [
    'age', 'gender', 'height', 'weight', 'ap_hi', 'ap_lo',
    'cholesterol', 'gluc', 'smoke', 'alco', 'active'
]


@pytest.fixture(scope="session")
def prototype():
    """Training prototype shipped with the package."""
    return load_prototype(DEFAULT_ARTIFACT_DIR / "prototype.yaml")


@pytest.fixture(scope="session")
def train_columns():
    """Training design-matrix column list shipped with the package."""
    return load_train_columns(DEFAULT_ARTIFACT_DIR / "train_col_names.txt")


@pytest.fixture(scope="session")
def sample_cardio_data():
    """Create sample cardiovascular data for testing."""
    rng = np.random.RandomState(42)
    n_patients = 300

    df = pd.DataFrame({
        'age': rng.randint(30, 66, n_patients),
        'gender': rng.choice([1, 2], n_patients),
        'height': rng.normal(165, 8, n_patients).round(),
        'weight': rng.normal(74, 14, n_patients).round(1),
        'ap_hi': rng.normal(128, 17, n_patients).round(),
        'ap_lo': rng.normal(82, 10, n_patients).round(),
        'cholesterol': rng.choice([1, 2, 3], n_patients, p=[0.7, 0.15, 0.15]),
        'gluc': rng.choice([1, 2, 3], n_patients, p=[0.8, 0.1, 0.1]),
        'smoke': rng.choice([0, 1], n_patients, p=[0.9, 0.1]),
        'alco': rng.choice([0, 1], n_patients, p=[0.95, 0.05]),
        'active': rng.choice([0, 1], n_patients, p=[0.2, 0.8]),
    })

    score = 0.06 * (df['ap_hi'] - 128) + 0.05 * (df['age'] - 48) + 0.7 * (df['cholesterol'] - 1)
    probability = 1 / (1 + np.exp(-score))
    df['cardio'] = (rng.rand(n_patients) < probability).astype(int)
    return df


@pytest.fixture
def single_patient():
    """One patient record as a mapping of scalars."""
    return {
        'age': 50, 'gender': 1, 'height': 165, 'weight': 70,
        'ap_hi': 120, 'ap_lo': 80, 'cholesterol': 1, 'gluc': 1,
        'smoke': 0, 'alco': 0, 'active': 1
    }


@pytest.fixture
def new_patients(sample_cardio_data):
    """A few unseen records without the outcome column."""
    return sample_cardio_data[FEATURE_COLUMNS].tail(5).reset_index(drop=True)


@pytest.fixture(scope="session")
def design_matrix(sample_cardio_data, prototype, train_columns):
    aligner, builder, reindexer = create_design_pipeline(prototype, train_columns)
    return reindexer.transform(builder.transform(aligner.transform(sample_cardio_data)))


@pytest.fixture(scope="session")
def boosting_model(design_matrix, sample_cardio_data):
    """Small booster trained on the design matrix."""
    dtrain = xgb.DMatrix(design_matrix.to_numpy(),
                         label=sample_cardio_data['cardio'].to_numpy(),
                         feature_names=list(design_matrix.columns))
    params = {'objective': 'binary:logistic', 'max_depth': 3, 'eta': 0.3, 'seed': 42}
    return xgb.train(params, dtrain, num_boost_round=20)


def _fit_design_pipeline(estimator, data, prototype, train_columns):
    pipeline = Pipeline([
        ('design', DesignMatrixTransformer(prototype, train_columns)),
        ('model', estimator),
    ])
    pipeline.fit(data[FEATURE_COLUMNS], data['cardio'])
    return pipeline


@pytest.fixture(scope="session")
def glm_model(sample_cardio_data, prototype, train_columns):
    return _fit_design_pipeline(LogisticRegression(max_iter=2000),
                                sample_cardio_data, prototype, train_columns)


@pytest.fixture(scope="session")
def rf_model(sample_cardio_data, prototype, train_columns):
    return _fit_design_pipeline(RandomForestClassifier(n_estimators=25, max_depth=5, random_state=42),
                                sample_cardio_data, prototype, train_columns)


@pytest.fixture(scope="session")
def rf_regressor(sample_cardio_data, prototype, train_columns):
    return _fit_design_pipeline(RandomForestRegressor(n_estimators=25, max_depth=5, random_state=42),
                                sample_cardio_data, prototype, train_columns)


@pytest.fixture(scope="session")
def prediction_context(prototype, train_columns, boosting_model, glm_model, rf_model):
    """Context holding the three fitted models."""
    return PredictionContext(
        prototype=prototype,
        train_columns=train_columns,
        models={
            ModelType.BOOSTING: boosting_model,
            ModelType.LOGISTIC_REGRESSION: glm_model,
            ModelType.RANDOM_FOREST: rf_model,
        },
    )


@pytest.fixture
def model_dir(tmp_path, boosting_model, glm_model, rf_model):
    """Directory with the fitted models saved the way the loader expects."""
    boosting_model.save_model(str(tmp_path / "xgb_fit.json"))
    joblib.dump(glm_model, tmp_path / "glm_fit.joblib")
    joblib.dump(rf_model, tmp_path / "rf_fit.joblib")
    return tmp_path
