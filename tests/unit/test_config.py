# test_config.py
"""Tests for configuration loading."""

import pytest
import yaml

from loan_te.utils.config import Config, load_config
from loan_te.utils.exceptions import ConfigurationError


@pytest.fixture
def write_config(tmp_path):
    def _write(overrides):
        raw = {
            "paths": {
                "processed_data": str(tmp_path / "processed"),
                "models": str(tmp_path / "models"),
                "logs": str(tmp_path / "logs"),
            }
        }
        raw.update(overrides)
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(raw))
        return path
    return _write


class TestLoadConfig:
    """Tests for YAML config validation."""

    def test_defaults_fill_missing_sections(self, write_config, tmp_path):
        """Verify a minimal file yields the documented defaults."""
        config = load_config(write_config({}))
        assert config.data.encode_column == "addr_state"
        assert config.encoding.midpoint == 10.0
        assert config.encoding.smoothing == 20.0
        assert config.paths.raw_data is None, "No raw data means synthetic loans"
        assert (tmp_path / "processed").is_dir(), "Output directories must be created"

    def test_overrides_are_applied(self, write_config):
        """Verify nested values override defaults."""
        config = load_config(write_config({
            "encoding": {"holdout_type": "none", "noise_level": 0.02},
            "mlflow": {"enabled": False, "tracking_uri": "sqlite:///x.db"},
        }))
        assert config.encoding.holdout_type == "none"
        assert config.encoding.noise_level == 0.02
        assert config.mlflow.enabled is False
        assert config.mlflow.tracking_uri == "sqlite:///x.db"

    @pytest.mark.parametrize("overrides", [
        {"encoding": {"holdout_type": "Bootstrap"}},
        {"encoding": {"noise_level": -1}},
        {"split": {"n_folds": 1}},
        {"paths": {"raw_data": "/does/not/exist.csv"}},
    ])
    def test_invalid_values_raise(self, write_config, overrides):
        """Verify invalid settings are reported as configuration errors."""
        with pytest.raises(ConfigurationError):
            load_config(write_config(overrides))

    def test_missing_file_raises(self, tmp_path):
        """Verify a missing config file is reported."""
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "absent.yaml")

    def test_xgb_params(self):
        """Verify model params map onto XGBoost keyword arguments."""
        params = Config().model.to_xgb_params()
        assert params["n_estimators"] == 200
        assert params["verbosity"] == 0
