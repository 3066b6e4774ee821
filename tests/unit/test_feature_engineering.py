# test_feature_engineering.py
"""Tests for splitting, fold assignment and train/test encoding."""

import pytest
import numpy as np
import pandas as pd

from loan_te.features.encoders import HoldoutType, apply_map
from loan_te.features.engineering import (
    assign_folds,
    encode_train_test,
    get_predictors,
    prepare_modeling_data,
    split_train_test,
)
from loan_te.utils.exceptions import DataValidationError


class TestSplit:
    """Tests for the stratified train/test split."""

    def test_no_data_loss(self, loans_df):
        """Verify total rows after split equals original."""
        train, test = split_train_test(loans_df, test_ratio=0.2, seed=1)
        assert len(train) + len(test) == len(loans_df), "Split must not drop rows"
        assert len(test) == pytest.approx(0.2 * len(loans_df), abs=1), "Test size must follow the ratio"

    def test_stratified_target_rate(self, loans_df):
        """Verify both sides keep the overall default rate."""
        train, test = split_train_test(loans_df, test_ratio=0.2, seed=1)
        rate = loans_df["bad_loan"].mean()
        assert train["bad_loan"].mean() == pytest.approx(rate, abs=0.01), "Train rate drifted"
        assert test["bad_loan"].mean() == pytest.approx(rate, abs=0.01), "Test rate drifted"

    def test_missing_target_raises(self, loans_df):
        """Verify a split without a target column is rejected."""
        with pytest.raises(DataValidationError):
            split_train_test(loans_df, target="not_a_column")


class TestAssignFolds:
    """Tests for random k-fold id assignment."""

    def test_fold_ids_in_range_and_balanced(self, loans_df):
        """Verify ids are 0..k-1 with near-equal group sizes."""
        df = assign_folds(loans_df, n_folds=4, seed=3)
        sizes = df["fold"].value_counts()
        assert sorted(sizes.index) == [0, 1, 2, 3], "Fold ids must be 0..3"
        assert sizes.max() - sizes.min() <= 1, "Fold sizes must differ by at most one"

    def test_reproducible_and_not_mutating(self, loans_df):
        """Verify same seed gives same folds and input is untouched."""
        original = loans_df.copy()
        a = assign_folds(loans_df, n_folds=3, seed=9)
        b = assign_folds(loans_df, n_folds=3, seed=9)
        pd.testing.assert_series_equal(a["fold"], b["fold"])
        pd.testing.assert_frame_equal(loans_df, original, obj="Input DataFrame")

    def test_too_few_rows_raises(self):
        """Verify folds cannot outnumber rows."""
        with pytest.raises(DataValidationError):
            assign_folds(pd.DataFrame({"a": [1, 2]}), n_folds=3)


class TestEncodeTrainTest:
    """Tests for leakage-safe encoding of the train and test frames."""

    def test_encoded_column_added_to_both(self, loans_with_folds, loans_df, small_config):
        """Verify both frames gain exactly the encoded column."""
        train, test = loans_with_folds, loans_df.head(200)
        train_out, test_out, encoder = encode_train_test(train, test, small_config)
        assert list(train_out.columns) == list(train.columns) + ["addr_state_te"]
        assert list(test_out.columns) == list(test.columns) + ["addr_state_te"]
        assert encoder.encoding_map.has_folds, "KFold config must build a fold map"

    def test_test_frame_uses_full_map_without_noise(self, loans_with_folds, loans_df, small_config):
        """Verify test rows get the unconditioned, noise-free encoding."""
        test = loans_df.tail(300).reset_index(drop=True)
        _, test_out, encoder = encode_train_test(loans_with_folds, test, small_config)
        expected = apply_map(test, encoder.encoding_map, HoldoutType.NONE, blended_average=True)
        np.testing.assert_allclose(test_out["addr_state_te"], expected["addr_state_te"])

    def test_train_frame_uses_out_of_fold_map(self, loans_with_folds, loans_df, small_config):
        """Verify train rows are encoded from other folds, with noise."""
        small_config.encoding.noise_level = 0.0
        train_out, _, encoder = encode_train_test(loans_with_folds, loans_df.head(10), small_config)
        leaky = apply_map(loans_with_folds, encoder.encoding_map, HoldoutType.NONE)
        safe = apply_map(loans_with_folds, encoder.encoding_map, HoldoutType.KFOLD)
        np.testing.assert_allclose(train_out["addr_state_te"], safe["addr_state_te"])
        assert not np.allclose(train_out["addr_state_te"], leaky["addr_state_te"]), \
            "Train encoding must not use in-fold labels"


class TestPredictors:
    """Tests for predictor selection."""

    def test_excludes_target_and_listed_columns(self, loans_with_folds):
        """Verify target and excluded columns never become predictors."""
        predictors = get_predictors(loans_with_folds, "bad_loan", exclude=["fold", "addr_state"])
        for col in ["bad_loan", "fold", "addr_state"]:
            assert col not in predictors, f"{col} must be excluded"
        assert predictors[0] == loans_with_folds.columns[0], "Frame order must be kept"

    def test_prepare_modeling_data(self, loans_df):
        """Verify X/y extraction keeps lengths and drops the target from X."""
        predictors = get_predictors(loans_df, "bad_loan")
        X, y = prepare_modeling_data(loans_df, predictors, "bad_loan")
        assert len(X) == len(y) == len(loans_df)
        assert "bad_loan" not in X.columns, "Target leaked into features"
