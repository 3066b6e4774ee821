"""
Target encoding experiment.

Trains the same GBM three times on a loan book and compares AUC:
1. with the raw high-cardinality column (one-hot encoded),
2. without it,
3. with its leakage-safe target encoding instead.
"""

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import joblib
import mlflow
import pandas as pd

from loan_te.data.generation import generate_loans
from loan_te.data.loading import check_schema, load_loans
from loan_te.features.encoders import TargetEncoder
from loan_te.features.engineering import (
    assign_folds,
    encode_train_test,
    get_predictors,
    prepare_modeling_data,
    split_train_test,
)
from loan_te.models.evaluate import evaluate_model, feature_importance
from loan_te.models.train import cross_validated_auc, save_model, train_gbm
from loan_te.utils import Config, get_logger, load_config
from loan_te.utils.logger import log_session_end, log_session_start, stage

logger = get_logger(__name__)


@dataclass
class ExperimentResult:
    """One summary row per model, plus the fitted artifacts."""
    summary: pd.DataFrame
    models: Dict[str, Any] = field(default_factory=dict)
    importances: Dict[str, pd.DataFrame] = field(default_factory=dict)
    encoder: TargetEncoder = None


# =============================================================================
# DATA
# =============================================================================

def load_dataset(config: Config) -> pd.DataFrame:
    """Read the configured loan file, or synthesise one when none is set."""
    if config.paths.raw_data is not None:
        df = load_loans(config.paths.raw_data)
    else:
        logger.info("No raw data configured, generating synthetic loans")
        df = generate_loans(config.data.synthetic_rows, config.data.synthetic_seed)

    check_schema(df, [config.data.target, config.data.encode_column])
    logger.info(
        f"'{config.data.encode_column}' has {df[config.data.encode_column].nunique():,} levels"
    )
    return df


# =============================================================================
# SINGLE MODEL
# =============================================================================

def log_run(
    name: str,
    predictors: List[str],
    test_metrics: Dict[str, float],
    cv_auc: float,
    importance: pd.DataFrame,
    config: Config
) -> None:
    """Track one model of the comparison in MLflow."""
    with mlflow.start_run(run_name=name) as run:
        mlflow.log_params({
            "model_type": "XGBoost",
            "n_predictors": len(predictors),
            "encode_column": config.data.encode_column,
            "n_estimators": config.model.n_estimators,
            "max_depth": config.model.max_depth,
            "learning_rate": config.model.learning_rate,
        })
        mlflow.log_metrics({**{f"test_{k}": v for k, v in test_metrics.items()}, "cv_auc": cv_auc})
        mlflow.log_text(importance.to_csv(index=False), "feature_importance.csv")
        logger.info(f"MLflow run ID: {run.info.run_id}")


def run_model(
    name: str,
    train_df: pd.DataFrame,
    test_df: pd.DataFrame,
    predictors: List[str],
    config: Config
) -> Dict[str, Any]:
    """Train, score on test, cross-validate on folds, rank importances."""
    target = config.data.target
    params = config.model.to_xgb_params()

    with stage(name):
        X_train, y_train = prepare_modeling_data(train_df, predictors, target)
        X_test, y_test = prepare_modeling_data(test_df, predictors, target)

        model = train_gbm(X_train, y_train, params)
        test_metrics, _, _ = evaluate_model(model, X_test, y_test, "Test")
        cv_auc, _ = cross_validated_auc(
            X_train, y_train, train_df[config.split.fold_column], params
        )

        importance = feature_importance(model, top_n=config.model.top_importances)
        logger.info("Top predictors:")
        for row in importance.itertuples(index=False):
            logger.info(f"  {row.feature:<24} {row.percentage:.3f}")

        if config.mlflow.enabled:
            log_run(name, predictors, test_metrics, cv_auc, importance, config)

    return {
        "name": name,
        "model": model,
        "importance": importance,
        "row": {
            "model": name,
            "n_predictors": len(predictors),
            "test_auc": test_metrics["roc_auc"],
            "cv_auc": cv_auc,
            "top_feature": importance["feature"].iloc[0] if len(importance) else None,
        },
    }


# =============================================================================
# EXPERIMENT
# =============================================================================

def run_experiment(config: Config) -> ExperimentResult:
    """Run the with / without / target-encoded comparison."""

    log_session_start(logger)

    column = config.data.encode_column
    target = config.data.target
    fold_column = config.split.fold_column

    if config.mlflow.enabled:
        mlflow.set_tracking_uri(config.mlflow.tracking_uri)
        mlflow.set_experiment(config.mlflow.experiment_name)

    logger.info("Step 1: Loading Data")
    df = load_dataset(config)

    logger.info("Step 2: Train/Test Split and Fold Assignment")
    train_df, test_df = split_train_test(
        df, config.split.test_ratio, config.split.seed, target
    )
    train_df = assign_folds(train_df, config.split.n_folds, config.split.seed, fold_column)

    base = get_predictors(
        train_df, target, exclude=list(config.data.exclude_columns) + [fold_column]
    )
    without = [p for p in base if p != column]

    logger.info(f"Step 3: GBM with '{column}'")
    runs = [run_model(f"with_{column}", train_df, test_df, base, config)]

    logger.info(f"Step 4: GBM without '{column}'")
    runs.append(run_model(f"without_{column}", train_df, test_df, without, config))

    logger.info(f"Step 5: Target encoding '{column}'")
    train_te, test_te, encoder = encode_train_test(train_df, test_df, config)

    logger.info(f"Step 6: GBM with '{encoder.output_column}'")
    runs.append(run_model(
        f"with_{encoder.output_column}", train_te, test_te,
        without + [encoder.output_column], config
    ))

    summary = pd.DataFrame([r["row"] for r in runs])

    logger.info("=" * 60)
    logger.info("EXPERIMENT COMPLETE")
    for row in summary.itertuples(index=False):
        logger.info(f"{row.model:<28} test AUC={row.test_auc:.4f} | CV AUC={row.cv_auc:.4f}")
    logger.info("=" * 60)

    log_session_end(logger)

    return ExperimentResult(
        summary=summary,
        models={r["name"]: r["model"] for r in runs},
        importances={r["name"]: r["importance"] for r in runs},
        encoder=encoder,
    )


def save_artifacts(result: ExperimentResult, config: Config) -> Dict[str, Path]:
    """Write the summary table, encoder and models."""
    out_dir = config.paths.processed_data
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "summary": out_dir / "experiment_summary.csv",
        "encoder": out_dir / "target_encoder.joblib",
    }
    result.summary.to_csv(paths["summary"], index=False)
    joblib.dump(result.encoder, paths["encoder"])

    for name, model in result.models.items():
        paths[name] = config.paths.models / f"{name}.joblib"
        save_model(model, paths[name])

    logger.info(f"Saved summary: {paths['summary']}")
    return paths


def main():
    parser = argparse.ArgumentParser(description="Compare GBMs with and without target encoding")
    parser.add_argument("--config", type=Path, default=Path("config/config.yaml"))
    args = parser.parse_args()

    config = load_config(args.config)
    result = run_experiment(config)
    save_artifacts(result, config)


if __name__ == "__main__":
    main()
