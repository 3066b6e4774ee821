"""Model modules."""
from loan_te.models.train import (
    build_gbm,
    train_gbm,
    cross_validated_auc,
    save_model,
    load_model
)
from loan_te.models.evaluate import evaluate_model, calculate_metrics, feature_importance
