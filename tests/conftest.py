"""Shared fixtures for all test modules."""

import pytest
import pandas as pd
import numpy as np

from loan_te.data.generation import generate_loans
from loan_te.features.engineering import assign_folds
from loan_te.utils.config import (
    Config,
    DataConfig,
    EncodingConfig,
    MLflowConfig,
    ModelParams,
    PathConfig,
    SplitConfig,
)

# =============================================================================
# ENCODER FIXTURES
# =============================================================================

@pytest.fixture
def four_row_df():
    """Category A with labels [1, 0, 1], category B with label [0]."""
    return pd.DataFrame({
        "cat": ["A", "A", "B", "A"],
        "y": [1, 0, 0, 1],
    })


@pytest.fixture
def two_fold_df():
    """Category A: label 1 in fold 0, labels [0, 1] in fold 1."""
    return pd.DataFrame({
        "cat": ["A", "A", "A", "B", "B"],
        "fold": [0, 1, 1, 0, 1],
        "y": [1, 0, 1, 0, 1],
    })


@pytest.fixture
def holdout_df():
    """Rows that never took part in building a map."""
    return pd.DataFrame({
        "cat": ["A", "C", "B", "A"],
        "amount": [10.0, 20.0, 30.0, 40.0],
    })


@pytest.fixture
def random_cat_df():
    """Larger frame with skewed categories, folds and missing levels."""
    rng = np.random.default_rng(42)
    n = 600
    weights = np.linspace(0.19, 0.01, 10)
    cats = rng.choice(list("ABCDEFGHIJ"), size=n, p=weights / weights.sum())
    df = pd.DataFrame({
        "cat": cats,
        "fold": rng.integers(0, 4, size=n),
        "y": rng.integers(0, 2, size=n),
        "x1": rng.normal(size=n),
    })
    df.loc[rng.random(n) < 0.05, "cat"] = None
    return df


# =============================================================================
# LOAN DATA FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def loans_df():
    """Synthetic loan book, generated once per session."""
    return generate_loans(n_rows=1500, seed=7)


@pytest.fixture
def loans_with_folds(loans_df):
    """Loans with a 3-fold id column."""
    return assign_folds(loans_df, n_folds=3, seed=11, fold_column="fold")


@pytest.fixture
def loans_csv(loans_df, tmp_path):
    """Loans saved as CSV."""
    path = tmp_path / "loan.csv"
    loans_df.to_csv(path, index=False)
    return path


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def small_config(tmp_path):
    """Fast configuration: few rows, few trees, no tracking."""
    return Config(
        paths=PathConfig(
            processed_data=tmp_path / "processed",
            models=tmp_path / "models",
            logs=tmp_path / "logs",
        ),
        data=DataConfig(synthetic_rows=1500, synthetic_seed=7),
        split=SplitConfig(test_ratio=0.25, n_folds=3, seed=5),
        encoding=EncodingConfig(holdout_type="KFold", blended_average=True, noise_level=0.01, seed=3),
        model=ModelParams(n_estimators=20, max_depth=3, top_importances=5),
        mlflow=MLflowConfig(enabled=False),
    )
