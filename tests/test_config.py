"""Tests for configuration loading utilities."""

import json
import os
from unittest import mock

import pytest
import yaml

from kontrol.controllers import LQRController, PIDController
from kontrol.utils import get_default_config, load_config, load_matrix_file


def test_get_default_config_has_required_keys():
    """Test that default config has all required sections and keys."""
    config = get_default_config()

    assert "riccati" in config
    assert "lqr" in config
    assert "pid" in config
    assert "epsilon" in config["riccati"]
    assert "max_iterations" in config["riccati"]
    assert "y_epsilon" in config["lqr"]
    assert "output_limit" in config["pid"]


def test_get_default_config_values():
    """Test that default config has expected values."""
    config = get_default_config()

    assert config["riccati"]["epsilon"] == 1e-6
    assert config["riccati"]["max_iterations"] == 10000
    assert config["riccati"]["method"] == "fixed_point"
    assert config["lqr"]["ki"] == 0.0
    assert config["pid"]["kp"] == 1.0
    assert config["pid"]["i_limit"] is None


def test_load_config_without_file():
    """Test config loading with defaults only."""
    config = load_config(config_path=None, load_env=False)
    assert config == get_default_config()


def test_load_config_yaml_file(tmp_path):
    """Test values from a YAML file are deep-merged over defaults."""
    path = tmp_path / "kontrol.yaml"
    path.write_text(yaml.safe_dump({"pid": {"kp": 0.6, "i_limit": 2.0}}))

    config = load_config(config_path=path, load_env=False)

    assert config["pid"]["kp"] == 0.6
    assert config["pid"]["i_limit"] == 2.0
    assert config["pid"]["kd"] == 0.0
    assert config["riccati"]["epsilon"] == 1e-6


def test_load_config_json_file(tmp_path):
    """Test JSON configuration files are supported."""
    path = tmp_path / "kontrol.json"
    path.write_text(json.dumps({"riccati": {"method": "doubling"}}))

    config = load_config(config_path=path, load_env=False)

    assert config["riccati"]["method"] == "doubling"
    assert config["riccati"]["max_iterations"] == 10000


def test_load_config_missing_file(tmp_path):
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="not found"):
        load_config(config_path=tmp_path / "missing.yaml", load_env=False)


def test_load_config_directory_raises(tmp_path):
    """Test a directory path raises ValueError."""
    with pytest.raises(ValueError, match="not a file"):
        load_config(config_path=tmp_path, load_env=False)


def test_load_config_unsupported_format(tmp_path):
    """Test an unsupported suffix raises ValueError."""
    path = tmp_path / "kontrol.toml"
    path.write_text("[pid]\nkp = 1.0\n")
    with pytest.raises(ValueError, match="Unsupported config format"):
        load_config(config_path=path, load_env=False)


def test_load_config_malformed_yaml(tmp_path):
    """Test malformed YAML raises ValueError."""
    path = tmp_path / "kontrol.yaml"
    path.write_text("pid: [unclosed\n")
    with pytest.raises(ValueError, match="Malformed configuration file"):
        load_config(config_path=path, load_env=False)


def test_load_config_env_override():
    """Test that environment variables override defaults."""
    with mock.patch.dict(os.environ, {"KONTROL_PID_KP": "2.5"}):
        config = load_config(config_path=None, load_env=True)
        assert config["pid"]["kp"] == 2.5


def test_load_config_riccati_env_override():
    """Test that solver env vars are applied with their types."""
    env = {
        "KONTROL_RICCATI_MAX_ITERATIONS": "250",
        "KONTROL_RICCATI_METHOD": "doubling",
    }
    with mock.patch.dict(os.environ, env):
        config = load_config(config_path=None, load_env=True)
        assert config["riccati"]["max_iterations"] == 250
        assert config["riccati"]["method"] == "doubling"


def test_load_config_invalid_env_value_ignored(caplog):
    """Test an unparseable env var is logged and ignored."""
    with mock.patch.dict(os.environ, {"KONTROL_LQR_KI": "not-a-number"}):
        config = load_config(config_path=None, load_env=True)

    assert config["lqr"]["ki"] == 0.0
    assert "Invalid value for KONTROL_LQR_KI" in caplog.text


def test_env_overrides_file(tmp_path):
    """Test env vars take precedence over file values."""
    path = tmp_path / "kontrol.yaml"
    path.write_text(yaml.safe_dump({"lqr": {"ki": 0.1}}))

    with mock.patch.dict(os.environ, {"KONTROL_LQR_KI": "0.4"}):
        config = load_config(config_path=path, load_env=True)

    assert config["lqr"]["ki"] == 0.4


def test_controllers_from_loaded_config(tmp_path):
    """Test controllers can be built from a loaded configuration."""
    path = tmp_path / "kontrol.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "riccati": {"method": "doubling"},
                "lqr": {"ki": 0.2},
                "pid": {"kp": 0.6, "output_limit": 1.0},
            }
        )
    )
    config = load_config(config_path=path, load_env=False)

    lqr = LQRController.from_config(config)
    pid = PIDController.from_config(config)

    assert lqr.method == "doubling"
    assert lqr.ki == 0.2
    assert pid.kp == 0.6
    assert pid.output_limit == 1.0


def test_load_matrix_file(tmp_path):
    """Test loading the A, B, Q, R matrices."""
    path = tmp_path / "system.yaml"
    path.write_text(
        yaml.safe_dump({"A": [[1.0]], "B": [[1.0]], "Q": [[1.0]], "R": [[1.0]]})
    )

    matrices = load_matrix_file(path)

    assert set(matrices) == {"A", "B", "Q", "R"}


def test_load_matrix_file_missing_key(tmp_path):
    """Test a matrix file without R raises ValueError."""
    path = tmp_path / "system.json"
    path.write_text(json.dumps({"A": [[1.0]], "B": [[1.0]], "Q": [[1.0]]}))

    with pytest.raises(ValueError, match="missing: R"):
        load_matrix_file(path)
