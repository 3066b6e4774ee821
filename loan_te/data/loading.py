"""Loan dataset loading and schema checks."""

from pathlib import Path
from typing import Iterable

import pandas as pd

from loan_te.utils import get_logger
from loan_te.utils.exceptions import DataLoadError, DataValidationError

logger = get_logger(__name__)


def load_loans(path: Path) -> pd.DataFrame:
    """Load a loan file (CSV or parquet)."""
    path = Path(path)
    if not path.exists():
        raise DataLoadError(f"File not found: {path}")

    try:
        if path.suffix == ".parquet":
            df = pd.read_parquet(path)
        elif path.suffix in (".csv", ".gz"):
            df = pd.read_csv(path)
        else:
            raise DataLoadError(f"Unsupported format: {path.suffix}")
    except DataLoadError:
        raise
    except Exception as e:
        raise DataLoadError(f"Failed to read {path}: {e}") from e

    logger.info(f"Loaded {len(df):,} rows, {len(df.columns)} columns from {path}")
    return df


def check_schema(df: pd.DataFrame, required: Iterable[str]) -> None:
    """Raise if any required column is missing."""
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataValidationError(f"Missing columns: {missing}")
