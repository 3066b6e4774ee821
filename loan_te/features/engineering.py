"""Splitting, fold assignment and leakage-safe target encoding of train/test."""

from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, train_test_split

from loan_te.features.encoders import HoldoutType, TargetEncoder, apply_map
from loan_te.utils import get_logger
from loan_te.utils.config import Config
from loan_te.utils.exceptions import DataValidationError

logger = get_logger(__name__)

# =============================================================================
# TRAIN/TEST SPLIT
# =============================================================================

def split_train_test(
    df: pd.DataFrame,
    test_ratio: float = 0.2,
    seed: int = 1234,
    target: str = "bad_loan"
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Stratified random split into train and test."""

    if target not in df.columns:
        raise DataValidationError(f"Target column not found: '{target}'")

    train_df, test_df = train_test_split(
        df,
        test_size=test_ratio,
        random_state=seed,
        stratify=df[target]
    )

    train_df = train_df.reset_index(drop=True)
    test_df = test_df.reset_index(drop=True)

    logger.info(f"Split: Train={len(train_df):,} | Test={len(test_df):,}")
    logger.info(f"Target rate: train={train_df[target].mean():.4f} | test={test_df[target].mean():.4f}")

    return train_df, test_df


# =============================================================================
# FOLD ASSIGNMENT
# =============================================================================

def assign_folds(
    df: pd.DataFrame,
    n_folds: int = 5,
    seed: int = 1234,
    fold_column: str = "fold"
) -> pd.DataFrame:
    """Return a copy with random fold ids 0..n_folds-1 of near-equal size."""

    if len(df) < n_folds:
        raise DataValidationError(f"Cannot assign {n_folds} folds to {len(df)} rows")

    folds = np.empty(len(df), dtype=np.int64)
    kf = KFold(n_splits=n_folds, shuffle=True, random_state=seed)
    for fold_id, (_, fold_idx) in enumerate(kf.split(df)):
        folds[fold_idx] = fold_id

    df = df.copy()
    df[fold_column] = folds

    sizes = np.bincount(folds).tolist()
    logger.info(f"Assigned {n_folds} folds to '{fold_column}', sizes={sizes}")
    return df


# =============================================================================
# TARGET ENCODING
# =============================================================================

def encode_train_test(
    train_df: pd.DataFrame,
    test_df: pd.DataFrame,
    config: Config
) -> Tuple[pd.DataFrame, pd.DataFrame, TargetEncoder]:
    """Fit on train only; encode train with its holdout scheme and test without."""

    enc = config.encoding
    holdout = HoldoutType.parse(enc.holdout_type)
    fold_column = config.split.fold_column if holdout is HoldoutType.KFOLD else None

    encoder = TargetEncoder(
        column=config.data.encode_column,
        target=config.data.target,
        fold_column=fold_column,
        holdout_type=holdout.value,
        blended_average=enc.blended_average,
        noise_level=enc.noise_level,
        seed=enc.seed,
        midpoint=enc.midpoint,
        smoothing=enc.smoothing,
        n_partitions=enc.n_partitions
    )

    encoder.fit(train_df)
    train_out = encoder.transform(train_df)

    # Held-out rows never contributed to the map, and get no noise
    test_out = apply_map(
        test_df,
        encoder.encoding_map,
        holdout_type=HoldoutType.NONE,
        blended_average=enc.blended_average,
        midpoint=enc.midpoint,
        smoothing=enc.smoothing,
        output_column=encoder.output_column
    )

    logger.info(
        f"'{encoder.output_column}': train mean={train_out[encoder.output_column].mean():.4f}, "
        f"test mean={test_out[encoder.output_column].mean():.4f}"
    )

    return train_out, test_out, encoder


# =============================================================================
# PREDICTOR SELECTION
# =============================================================================

def get_predictors(
    df: pd.DataFrame,
    target: str,
    exclude: Optional[Iterable[str]] = None
) -> List[str]:
    """Every column except the target and the excluded ones, in frame order."""
    excluded = set(exclude or []) | {target}
    return [c for c in df.columns if c not in excluded]


def prepare_modeling_data(
    df: pd.DataFrame,
    predictors: List[str],
    target: str
) -> Tuple[pd.DataFrame, pd.Series]:
    """Extract X and y for modeling."""

    X = df[predictors].copy()
    y = df[target].copy()

    return X, y
