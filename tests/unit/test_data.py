# test_data.py
"""Tests for loan data generation and loading."""

import pytest
import pandas as pd

from loan_te.data.generation import LOAN_COLUMNS, generate_loans, save
from loan_te.data.loading import check_schema, load_loans
from loan_te.utils.exceptions import DataLoadError, DataValidationError


class TestGeneration:
    """Tests for synthetic loan generation."""

    def test_schema_and_size(self, loans_df):
        """Verify the standard loan columns in the standard order."""
        assert list(loans_df.columns) == LOAN_COLUMNS
        assert len(loans_df) == 1500

    def test_target_is_binary_with_defaults(self, loans_df):
        """Verify bad_loan is 0/1 and not degenerate."""
        assert loans_df["bad_loan"].isin([0, 1]).all(), "bad_loan must be binary"
        assert 0.05 < loans_df["bad_loan"].mean() < 0.5, "Default rate must be realistic"

    def test_state_is_high_cardinality(self):
        """Verify addr_state has many skewed levels."""
        df = generate_loans(n_rows=5000, seed=1)
        counts = df["addr_state"].value_counts()
        assert len(counts) > 40, "addr_state must be high-cardinality"
        assert counts.iloc[0] > 5 * counts.iloc[-1], "State frequencies must be skewed"

    def test_reproducible(self):
        """Verify the same seed gives the same loans."""
        pd.testing.assert_frame_equal(generate_loans(200, seed=3), generate_loans(200, seed=3))


class TestLoading:
    """Tests for loan file loading."""

    def test_load_csv(self, loans_csv, loans_df):
        """Verify CSV round trip keeps shape and columns."""
        df = load_loans(loans_csv)
        assert df.shape == loans_df.shape
        assert list(df.columns) == list(loans_df.columns)

    def test_load_parquet(self, loans_df, tmp_path):
        """Verify parquet files are read as well."""
        path = tmp_path / "loan.parquet"
        save(loans_df, path)
        pd.testing.assert_frame_equal(load_loans(path), loans_df)

    def test_missing_file_raises(self, tmp_path):
        """Verify a missing file is reported as a load error."""
        with pytest.raises(DataLoadError):
            load_loans(tmp_path / "nope.csv")

    def test_unsupported_suffix_raises(self, tmp_path):
        """Verify unknown formats are rejected."""
        path = tmp_path / "loan.xlsx"
        path.write_text("x")
        with pytest.raises(DataLoadError):
            load_loans(path)

    def test_check_schema(self, loans_df):
        """Verify missing required columns are listed."""
        check_schema(loans_df, ["bad_loan", "addr_state"])
        with pytest.raises(DataValidationError, match="zip_code"):
            check_schema(loans_df, ["bad_loan", "zip_code"])
