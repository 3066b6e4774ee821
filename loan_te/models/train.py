"""Gradient-boosted tree training and fold-wise cross-validation."""

from pathlib import Path
from typing import Any, Dict, List, Tuple

import joblib
import numpy as np
import pandas as pd
import xgboost as xgb
from sklearn.compose import ColumnTransformer
from sklearn.model_selection import PredefinedSplit, cross_val_score
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder

from loan_te.utils import get_logger
from loan_te.utils.exceptions import ModelTrainingError

logger = get_logger(__name__)


def create_preprocessor(X: pd.DataFrame) -> ColumnTransformer:
    """One-hot encode categorical columns, pass numeric ones through."""

    num_cols = X.select_dtypes(include=["number", "bool"]).columns.tolist()
    cat_cols = [c for c in X.columns if c not in num_cols]

    transformers = []
    if cat_cols:
        transformers.append(
            ("cat", OneHotEncoder(handle_unknown="ignore", sparse_output=False), cat_cols)
        )
    if num_cols:
        transformers.append(("num", "passthrough", num_cols))

    return ColumnTransformer(transformers=transformers, remainder="drop")


def build_gbm(X: pd.DataFrame, params: Dict[str, Any]) -> Pipeline:
    """Unfitted preprocessing + XGBoost pipeline."""
    return Pipeline([
        ("preprocessor", create_preprocessor(X)),
        ("classifier", xgb.XGBClassifier(
            objective="binary:logistic",
            eval_metric="auc",
            **params
        ))
    ])


def train_gbm(X: pd.DataFrame, y: pd.Series, params: Dict[str, Any]) -> Pipeline:
    """Train a GBM on the given predictors."""

    logger.info(f"Training XGBoost on {X.shape[1]} predictors, {len(X):,} rows")

    pipeline = build_gbm(X, params)
    try:
        pipeline.fit(X, y)
    except Exception as e:
        raise ModelTrainingError(f"GBM training failed: {e}") from e

    return pipeline


def cross_validated_auc(
    X: pd.DataFrame,
    y: pd.Series,
    folds: pd.Series,
    params: Dict[str, Any]
) -> Tuple[float, List[float]]:
    """Mean AUC over the folds given by a fold id column."""

    cv = PredefinedSplit(test_fold=np.asarray(folds))
    try:
        scores = cross_val_score(build_gbm(X, params), X, y, cv=cv, scoring="roc_auc")
    except Exception as e:
        raise ModelTrainingError(f"Cross-validation failed: {e}") from e

    logger.info(f"CV AUC: {scores.mean():.4f} (+/- {scores.std():.4f}) over {len(scores)} folds")
    return float(scores.mean()), [float(s) for s in scores]


def save_model(model: Any, output_path: Path) -> None:
    """Save model to disk."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(model, output_path)
    logger.info(f"Saved: {output_path}")


def load_model(model_path: Path) -> Any:
    """Load model from disk."""
    if not model_path.exists():
        raise ModelTrainingError(f"Model not found: {model_path}")

    model = joblib.load(model_path)
    logger.info(f"Loaded: {model_path}")
    return model
