"""Model evaluation utilities."""

from typing import Any, List

import numpy as np
import pandas as pd
from sklearn.metrics import (
    average_precision_score,
    f1_score,
    log_loss,
    precision_score,
    recall_score,
    roc_auc_score,
)

from loan_te.utils import get_logger

logger = get_logger(__name__)


def calculate_metrics(y_true: np.ndarray, y_pred: np.ndarray, y_prob: np.ndarray) -> dict[str, float]:
    """Calculate all evaluation metrics."""
    return {
        "roc_auc": roc_auc_score(y_true, y_prob),
        "pr_auc": average_precision_score(y_true, y_prob),
        "logloss": log_loss(y_true, y_prob, labels=[0, 1]),
        "precision": precision_score(y_true, y_pred, zero_division=0),
        "recall": recall_score(y_true, y_pred, zero_division=0),
        "f1_score": f1_score(y_true, y_pred, zero_division=0),
    }


def evaluate_model(
    model: Any,
    X: pd.DataFrame,
    y: pd.Series,
    dataset_name: str = "dataset"
) -> tuple[dict[str, float], np.ndarray, np.ndarray]:
    """Evaluate model and return metrics."""

    y_pred = model.predict(X)
    y_prob = model.predict_proba(X)[:, 1]

    metrics = calculate_metrics(np.asarray(y), y_pred, y_prob)

    logger.info(f"{dataset_name} metrics:")
    for k, v in metrics.items():
        logger.info(f"  {k}: {v:.4f}")

    return metrics, y_pred, y_prob


def _source_columns(preprocessor: Any) -> List[str]:
    """Original column name behind every preprocessor output column."""
    names = []
    for name, transformer, columns in preprocessor.transformers_:
        if name == "remainder":
            continue
        if name == "cat":
            for col, cats in zip(columns, transformer.categories_):
                names.extend([col] * len(cats))
        else:
            names.extend(columns)
    return names


def feature_importance(model: Any, top_n: int = None) -> pd.DataFrame:
    """Importance per original predictor, one-hot columns summed back together."""

    if hasattr(model, "named_steps"):
        classifier = model.named_steps.get("classifier")
        preprocessor = model.named_steps.get("preprocessor")
    else:
        classifier, preprocessor = model, None

    if not hasattr(classifier, "feature_importances_"):
        logger.warning("Model doesn't have feature_importances_")
        return pd.DataFrame(columns=["feature", "importance"])

    importances = np.asarray(classifier.feature_importances_, dtype=float)

    if preprocessor is not None:
        features = _source_columns(preprocessor)
    else:
        features = list(getattr(classifier, "feature_names_in_", []))

    if len(features) != len(importances):
        features = [f"feature_{i}" for i in range(len(importances))]

    feat_df = (
        pd.DataFrame({"feature": features, "importance": importances})
        .groupby("feature", as_index=False, sort=False)["importance"].sum()
        .sort_values("importance", ascending=False)
        .reset_index(drop=True)
    )

    total = feat_df["importance"].sum()
    feat_df["percentage"] = feat_df["importance"] / total if total > 0 else 0.0

    if top_n:
        feat_df = feat_df.head(top_n)

    return feat_df
