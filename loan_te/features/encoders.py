"""
Target encoding with leakage control.

A map of per-category ``(numerator, denominator)`` aggregates is built once
from training rows and applied to any number of frames afterwards. When a
fold column is given the map also carries leave-one-fold-out aggregates, so
training rows can be encoded without seeing their own fold's labels.

Blending (sigmoid shrinkage toward the global prior):

    weight  = 1 / (1 + exp(-(denominator - midpoint) / smoothing))
    encoded = weight * numerator / denominator + (1 - weight) * prior

Example
-------
>>> emap = build_map(train, "addr_state", "bad_loan", fold_column="fold")
>>> train = apply_map(train, emap, HoldoutType.KFOLD, noise_level=0.01, seed=7)
>>> test = apply_map(test, emap, HoldoutType.NONE)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator, TransformerMixin

from loan_te.utils import get_logger
from loan_te.utils.exceptions import (
    ConfigurationError,
    EmptyDatasetError,
    EncodingError,
    InvalidColumnError,
    MissingFoldColumnError,
    UnknownHoldoutTypeError,
    UnsupportedTargetTypeError,
)

logger = get_logger(__name__)

DEFAULT_MIDPOINT = 10.0
DEFAULT_SMOOTHING = 20.0

NUMERATOR = "numerator"
DENOMINATOR = "denominator"

# Missing category values are encoded as a level of their own
MISSING_LEVEL = "__NA__"


class HoldoutType(Enum):
    """How training rows are kept from seeing their own labels."""

    KFOLD = "KFold"
    NONE = "None"
    LEAVE_ONE_OUT = "LeaveOneOut"

    @classmethod
    def parse(cls, value: Union["HoldoutType", str, None]) -> "HoldoutType":
        """Accept an enum member, its name or its value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NONE
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member
        valid = [m.value for m in cls]
        raise UnknownHoldoutTypeError(f"Unknown holdout type {value!r}, expected one of {valid}")


@dataclass(frozen=True, eq=False)
class EncodingMap:
    """Aggregates for one categorical column, built from training rows only.

    ``totals`` is indexed by category. ``folds`` (only when built with a fold
    column) is indexed by ``(fold id, category)`` and holds the aggregate over
    all rows of that category outside the fold.
    """

    column: str
    target: str
    prior: float
    totals: pd.DataFrame
    fold_column: Optional[str] = None
    folds: Optional[pd.DataFrame] = None

    @property
    def has_folds(self) -> bool:
        return self.folds is not None

    @property
    def categories(self) -> List[Any]:
        return list(self.totals.index)

    @property
    def fold_ids(self) -> List[Any]:
        if self.folds is None:
            return []
        return list(self.folds.index.get_level_values(0).unique())

    def lookup(self, category: Any, fold: Any = None) -> Tuple[float, float]:
        """Return ``(numerator, denominator)``; ``(0, 0)`` for unseen keys."""
        key = MISSING_LEVEL if pd.isna(category) else category
        if fold is None:
            table, label = self.totals, key
        else:
            if self.folds is None:
                raise MissingFoldColumnError(f"Map for '{self.column}' was built without folds")
            table, label = self.folds, (fold, key)
        if label not in table.index:
            return 0.0, 0.0
        row = table.loc[label]
        return float(row[NUMERATOR]), float(row[DENOMINATOR])


# =============================================================================
# HELPERS
# =============================================================================

def _category_keys(values: pd.Series) -> pd.Series:
    """Object-typed category keys with missing values folded into one level."""
    keys = values.astype(object)
    return keys.where(values.notna(), MISSING_LEVEL)


def binarize_target(y: pd.Series) -> pd.Series:
    """Coerce a target column to int {0, 1}.

    Booleans and numeric 0/1 are taken as-is. Exactly two non-numeric
    levels are sorted and the second one becomes the positive class.
    """
    n_missing = int(y.isna().sum())
    if n_missing:
        raise UnsupportedTargetTypeError(f"Target '{y.name}' has {n_missing} missing values")

    if pd.api.types.is_bool_dtype(y):
        return y.astype(np.int64)

    if pd.api.types.is_numeric_dtype(y):
        if not y.isin([0, 1]).all():
            bad = sorted(set(pd.unique(y)) - {0, 1})[:5]
            raise UnsupportedTargetTypeError(f"Target '{y.name}' is not binary, found values {bad}")
        return y.astype(np.int64)

    levels = sorted(pd.unique(y.astype(str)))
    if len(levels) != 2:
        raise UnsupportedTargetTypeError(
            f"Target '{y.name}' needs exactly 2 levels to binarize, found {len(levels)}"
        )
    return (y.astype(str) == levels[1]).astype(np.int64)


def _aggregate(keys: List[pd.Series], y: pd.Series) -> pd.DataFrame:
    """Sum and count of y per key."""
    agg = y.groupby(keys, sort=False).agg(["sum", "count"])
    agg.columns = [NUMERATOR, DENOMINATOR]
    return agg.astype(np.int64)


def _partitioned_aggregate(keys: List[pd.Series], y: pd.Series, n_partitions: int) -> pd.DataFrame:
    """Aggregate contiguous row chunks in parallel, then merge by addition."""
    chunks = [idx for idx in np.array_split(np.arange(len(y)), n_partitions) if len(idx)]

    parts = Parallel(n_jobs=len(chunks), prefer="threads")(
        delayed(_aggregate)([k.iloc[idx] for k in keys], y.iloc[idx]) for idx in chunks
    )

    levels = list(range(len(keys)))
    return pd.concat(parts).groupby(level=levels, sort=False).sum()


# =============================================================================
# BUILD
# =============================================================================

def build_map(
    frame: pd.DataFrame,
    column: str,
    target: str,
    fold_column: Optional[str] = None,
    n_partitions: int = 1
) -> EncodingMap:
    """Build the encoding map for `column` from training rows."""

    required = [c for c in (column, target, fold_column) if c is not None]
    missing = [c for c in required if c not in frame.columns]
    if missing:
        raise InvalidColumnError(f"Columns not found: {missing}")

    if len(frame) == 0:
        raise EmptyDatasetError("Cannot build an encoding map from zero rows")

    if n_partitions < 1:
        raise ConfigurationError(f"n_partitions must be >= 1, got {n_partitions}")

    y = binarize_target(frame[target]).rename(target).reset_index(drop=True)
    categories = _category_keys(frame[column]).rename(column).reset_index(drop=True)
    prior = float(y.sum()) / len(y)

    if fold_column is None:
        keys = [categories]
    else:
        fold_ids = frame[fold_column]
        if fold_ids.isna().any():
            raise MissingFoldColumnError(f"Fold column '{fold_column}' has missing ids")
        keys = [fold_ids.rename(fold_column).reset_index(drop=True), categories]

    if n_partitions > 1:
        partial = _partitioned_aggregate(keys, y, n_partitions)
    else:
        partial = _aggregate(keys, y)

    if fold_column is None:
        logger.info(f"Built map for '{column}': {len(partial):,} categories, prior={prior:.4f}")
        return EncodingMap(column=column, target=target, prior=prior, totals=partial)

    totals = partial.groupby(level=column, sort=False).sum()

    # Leave-one-fold-out = category total - in-fold partial, over every (fold, category)
    fold_values = sorted(pd.unique(frame[fold_column]))
    full_index = pd.MultiIndex.from_product([fold_values, totals.index], names=[fold_column, column])
    in_fold = partial.reindex(full_index, fill_value=0)
    category_totals = totals.reindex(full_index.get_level_values(column)).to_numpy()

    out_of_fold = pd.DataFrame(
        category_totals - in_fold.to_numpy(),
        index=full_index,
        columns=[NUMERATOR, DENOMINATOR]
    )

    logger.info(
        f"Built k-fold map for '{column}': {len(totals):,} categories x "
        f"{len(fold_values)} folds, prior={prior:.4f}"
    )

    return EncodingMap(
        column=column,
        target=target,
        prior=prior,
        totals=totals,
        fold_column=fold_column,
        folds=out_of_fold
    )


# =============================================================================
# APPLY
# =============================================================================

def blend_weight(
    denominator: np.ndarray,
    midpoint: float = DEFAULT_MIDPOINT,
    smoothing: float = DEFAULT_SMOOTHING
) -> np.ndarray:
    """Sigmoid trust in the category rate; grows with the row count."""
    return 1.0 / (1.0 + np.exp(-(np.asarray(denominator, dtype=float) - midpoint) / smoothing))


def encode_values(
    numerator: np.ndarray,
    denominator: np.ndarray,
    prior: float,
    blended_average: bool = True,
    midpoint: float = DEFAULT_MIDPOINT,
    smoothing: float = DEFAULT_SMOOTHING
) -> np.ndarray:
    """Turn aggregates into encoded rates; zero denominators give the prior."""
    numerator = np.asarray(numerator, dtype=float)
    denominator = np.asarray(denominator, dtype=float)
    seen = denominator > 0

    raw = np.full(denominator.shape, prior, dtype=float)
    np.divide(numerator, denominator, out=raw, where=seen)

    if not blended_average:
        return raw

    weight = blend_weight(denominator, midpoint, smoothing)
    return np.where(seen, weight * raw + (1.0 - weight) * prior, prior)


def apply_map(
    frame: pd.DataFrame,
    encoding_map: EncodingMap,
    holdout_type: Union[HoldoutType, str] = HoldoutType.NONE,
    fold_column: Optional[str] = None,
    blended_average: bool = True,
    noise_level: float = 0.0,
    seed: Optional[int] = None,
    midpoint: float = DEFAULT_MIDPOINT,
    smoothing: float = DEFAULT_SMOOTHING,
    output_column: Optional[str] = None
) -> pd.DataFrame:
    """Return a copy of `frame` with the encoded column appended."""

    holdout = HoldoutType.parse(holdout_type)
    column = encoding_map.column
    output_column = output_column or f"{column}_te"

    if column not in frame.columns:
        raise InvalidColumnError(f"Column not found: '{column}'")
    if output_column in frame.columns:
        raise InvalidColumnError(f"Output column already exists: '{output_column}'")
    if noise_level < 0:
        raise ConfigurationError(f"noise_level must be >= 0, got {noise_level}")
    if smoothing <= 0:
        raise ConfigurationError(f"smoothing must be > 0, got {smoothing}")

    keys = _category_keys(frame[column])

    if holdout is HoldoutType.KFOLD:
        fold_column = fold_column or encoding_map.fold_column
        if fold_column is None or fold_column not in frame.columns:
            raise MissingFoldColumnError(f"KFold holdout needs fold column '{fold_column}' on the frame")
        if not encoding_map.has_folds:
            raise MissingFoldColumnError(f"Map for '{column}' was built without a fold column")
        index = pd.MultiIndex.from_arrays([frame[fold_column].to_numpy(), keys.to_numpy()])
        stats = encoding_map.folds.reindex(index)
    else:
        stats = encoding_map.totals.reindex(pd.Index(keys.to_numpy(), dtype=object))

    numerator = stats[NUMERATOR].fillna(0).to_numpy(dtype=float)
    denominator = stats[DENOMINATOR].fillna(0).to_numpy(dtype=float)

    if holdout is HoldoutType.LEAVE_ONE_OUT:
        target = encoding_map.target
        if target not in frame.columns:
            raise InvalidColumnError(f"LeaveOneOut holdout needs target '{target}' on the frame")
        own = binarize_target(frame[target]).to_numpy(dtype=float)
        seen = denominator > 0
        numerator = np.where(seen, numerator - own, 0.0)
        denominator = np.where(seen, denominator - 1.0, 0.0)

    values = encode_values(
        numerator, denominator, encoding_map.prior,
        blended_average=blended_average, midpoint=midpoint, smoothing=smoothing
    )

    if noise_level > 0:
        if holdout is HoldoutType.NONE:
            logger.warning(f"Ignoring noise_level={noise_level} for holdout type None")
        else:
            rng = np.random.default_rng(seed)
            values = values + rng.normal(0.0, noise_level, size=len(values))

    n_unseen = int((denominator == 0).sum())
    logger.info(
        f"Encoded '{column}' -> '{output_column}' ({holdout.value}): "
        f"{len(frame):,} rows, {n_unseen:,} fell back to prior"
    )

    out = frame.copy()
    out[output_column] = values
    return out


# =============================================================================
# SKLEARN WRAPPER
# =============================================================================

class TargetEncoder(BaseEstimator, TransformerMixin):
    """Target encode one categorical column with leakage control."""

    def __init__(
        self,
        column: str,
        target: str = "bad_loan",
        fold_column: Optional[str] = None,
        holdout_type: str = "None",
        blended_average: bool = True,
        noise_level: float = 0.0,
        seed: Optional[int] = None,
        midpoint: float = DEFAULT_MIDPOINT,
        smoothing: float = DEFAULT_SMOOTHING,
        n_partitions: int = 1
    ):
        self.column = column
        self.target = target
        self.fold_column = fold_column
        self.holdout_type = holdout_type
        self.blended_average = blended_average
        self.noise_level = noise_level
        self.seed = seed
        self.midpoint = midpoint
        self.smoothing = smoothing
        self.n_partitions = n_partitions
        self.encoding_map: Optional[EncodingMap] = None

    @property
    def output_column(self) -> str:
        return f"{self.column}_te"

    def fit(self, X: pd.DataFrame, y: Optional[pd.Series] = None):
        df = X
        if y is not None:
            df = X.copy()
            df[self.target] = np.asarray(y)

        self.encoding_map = build_map(
            df, self.column, self.target,
            fold_column=self.fold_column,
            n_partitions=self.n_partitions
        )
        return self

    def transform(
        self,
        X: pd.DataFrame,
        holdout_type: Union[HoldoutType, str, None] = None
    ) -> pd.DataFrame:
        if self.encoding_map is None:
            raise EncodingError("TargetEncoder is not fitted yet, call fit() first")

        holdout = HoldoutType.parse(self.holdout_type if holdout_type is None else holdout_type)

        return apply_map(
            X,
            self.encoding_map,
            holdout_type=holdout,
            fold_column=self.fold_column,
            blended_average=self.blended_average,
            noise_level=self.noise_level,
            seed=self.seed,
            midpoint=self.midpoint,
            smoothing=self.smoothing,
            output_column=self.output_column
        )
