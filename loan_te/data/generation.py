"""Synthetic loan data with a high-cardinality state column."""

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

from loan_te.utils import get_logger, load_config

logger = get_logger(__name__)

STATES = [
    "AK", "AL", "AR", "AZ", "CA", "CO", "CT", "DC", "DE", "FL", "GA",
    "HI", "IA", "ID", "IL", "IN", "KS", "KY", "LA", "MA", "MD", "ME",
    "MI", "MN", "MO", "MS", "MT", "NC", "ND", "NE", "NH", "NJ", "NM",
    "NV", "NY", "OH", "OK", "OR", "PA", "RI", "SC", "SD", "TN", "TX",
    "UT", "VA", "VT", "WA", "WI", "WV", "WY",
]

PURPOSES = [
    "debt_consolidation", "credit_card", "home_improvement", "other",
    "major_purchase", "small_business", "car", "medical", "moving",
    "vacation", "house", "wedding", "educational", "renewable_energy",
]

HOME_OWNERSHIP = ["MORTGAGE", "RENT", "OWN", "OTHER"]
VERIFICATION = ["verified", "not verified"]

LOAN_COLUMNS = [
    "loan_amnt", "term", "int_rate", "emp_length", "home_ownership",
    "annual_inc", "purpose", "addr_state", "dti", "delinq_2yrs",
    "revol_util", "total_acc", "bad_loan", "longest_credit_length",
    "verification_status",
]


def add_borrower_attributes(df: pd.DataFrame, rng: np.random.Generator) -> None:
    """Add income, employment and credit history columns."""
    n = len(df)

    df["annual_inc"] = np.round(rng.lognormal(mean=11.0, sigma=0.5, size=n), -2)
    df["emp_length"] = rng.integers(0, 11, size=n).astype(float)
    df["home_ownership"] = rng.choice(HOME_OWNERSHIP, size=n, p=[0.45, 0.42, 0.12, 0.01])
    df["longest_credit_length"] = rng.integers(3, 40, size=n).astype(float)
    df["total_acc"] = rng.integers(2, 60, size=n).astype(float)
    df["delinq_2yrs"] = rng.poisson(0.25, size=n).astype(float)
    df["verification_status"] = rng.choice(VERIFICATION, size=n, p=[0.6, 0.4])

    # Sprinkle missing values where real loan books have them
    for col in ["emp_length", "longest_credit_length", "total_acc"]:
        df.loc[rng.random(n) < 0.03, col] = np.nan


def add_loan_attributes(df: pd.DataFrame, rng: np.random.Generator) -> None:
    """Add amount, term, rate, purpose and utilisation columns."""
    n = len(df)

    df["loan_amnt"] = np.round(rng.uniform(1000, 35000, size=n), -2)
    df["term"] = rng.choice(["36 months", "60 months"], size=n, p=[0.75, 0.25])
    df["int_rate"] = np.round(np.clip(rng.normal(13.0, 4.0, size=n), 5.0, 26.0), 2)
    df["purpose"] = rng.choice(PURPOSES, size=n)
    df["dti"] = np.round(np.clip(rng.normal(16.0, 7.5, size=n), 0.0, 40.0), 2)
    df["revol_util"] = np.round(np.clip(rng.normal(55.0, 25.0, size=n), 0.0, 150.0), 1)


def add_state(df: pd.DataFrame, rng: np.random.Generator) -> pd.Series:
    """Assign skewed state frequencies. Returns each state's logit offset."""
    weights = 1.0 / np.arange(1, len(STATES) + 1) ** 0.9
    weights = weights / weights.sum()
    order = rng.permutation(len(STATES))

    df["addr_state"] = rng.choice(np.array(STATES)[order], size=len(df), p=weights)

    offsets = pd.Series(rng.normal(0.0, 0.6, size=len(STATES)), index=STATES)
    logger.info(f"States: {df['addr_state'].nunique()} levels, "
                f"top={df['addr_state'].value_counts().index[0]}")
    return offsets


def add_default_label(df: pd.DataFrame, state_offsets: pd.Series, rng: np.random.Generator) -> None:
    """Draw bad_loan from a logistic model of the borrower and loan columns."""
    logit = (
        -1.9
        + 0.11 * (df["int_rate"] - 13.0)
        + 0.45 * (df["term"] == "60 months")
        + 0.025 * (df["dti"] - 16.0)
        - 0.35 * np.log(df["annual_inc"] / 60000.0)
        + 0.25 * df["delinq_2yrs"]
        + 0.006 * (df["revol_util"] - 55.0)
        + 0.2 * (df["purpose"] == "small_business")
        + df["addr_state"].map(state_offsets)
    )
    prob = 1.0 / (1.0 + np.exp(-logit))
    df["bad_loan"] = (rng.random(len(df)) < prob).astype(int)

    logger.info(f"Default rate: {df['bad_loan'].mean():.2%}")


def generate_loans(n_rows: int = 20000, seed: int = 42) -> pd.DataFrame:
    """Build a synthetic loan book with the standard loan columns."""
    rng = np.random.default_rng(seed)

    logger.info(f"Generating {n_rows:,} synthetic loans (seed={seed})")

    df = pd.DataFrame(index=pd.RangeIndex(n_rows))
    add_loan_attributes(df, rng)
    add_borrower_attributes(df, rng)
    offsets = add_state(df, rng)
    add_default_label(df, offsets, rng)

    return df[LOAN_COLUMNS]


def save(df: pd.DataFrame, path: Path) -> None:
    """Save to CSV or parquet, chosen by suffix."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".parquet":
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)
    logger.info(f"Saved: {path} ({path.stat().st_size / 1024 / 1024:.1f} MB)")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic loan dataset")
    parser.add_argument("--config", type=Path, default=Path("config/config.yaml"))
    parser.add_argument("--output", type=Path, default=Path("data/raw/loan.csv"))
    args = parser.parse_args()

    config = load_config(args.config)
    df = generate_loans(config.data.synthetic_rows, config.data.synthetic_seed)
    save(df, args.output)


if __name__ == "__main__":
    main()
