"""
Kontrol Utilities Package

Configuration loading for the control core:
- Default solver, LQR and PID parameters
- YAML/JSON configuration files
- Environment variable overrides (optionally from a .env file)

Design Philosophy:
- Utilities are stateless
- Configuration supports both file-based and environment variable sources
"""

import json
import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

__all__ = [
    "load_config",
    "get_default_config",
    "load_matrix_file",
]

logger = logging.getLogger(__name__)


def get_default_config() -> dict:
    """
    Get default configuration values.

    Returns:
        Dictionary with 'riccati', 'lqr' and 'pid' sections.
    """
    return {
        "riccati": {
            "epsilon": 1e-6,  # relative Frobenius tolerance
            "max_iterations": 10000,
            "method": "fixed_point",  # 'fixed_point', 'doubling' or 'scipy'
        },
        "lqr": {
            "ki": 0.0,  # lateral integral gain
            "y_epsilon": 1e-3,  # lateral deadband
        },
        "pid": {
            "kp": 1.0,
            "ki": 0.0,
            "kd": 0.0,
            "p_limit": None,  # None = unbounded
            "i_limit": None,
            "d_limit": None,
            "output_limit": None,
            "set_point": 0.0,
        },
    }


def _read_structured_file(path: Path) -> dict | None:
    """
    Read a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        PermissionError: If the file cannot be read.
        ValueError: If the path is not a file, the format is unsupported or
            the content is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Configuration path is not a file: {path}")

    if path.suffix not in (".yaml", ".yml", ".json"):
        raise ValueError(f"Unsupported config format: {path.suffix}")

    try:
        with open(path) as f:
            if path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            return json.load(f)
    except PermissionError as e:
        raise PermissionError(f"Cannot read configuration file: {path}") from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Malformed configuration file: {path}") from e


def load_config(
    config_path: str | Path | None = None,
    load_env: bool = True,
) -> dict:
    """
    Load configuration from file with environment variable overrides.

    Configuration loading follows this priority (highest to lowest):
    1. Environment variables (from .env file or system)
    2. Config file (YAML or JSON)
    3. Default values

    Environment variables override config values using a naming convention:
    - KONTROL_RICCATI_EPSILON -> config["riccati"]["epsilon"]
    - KONTROL_LQR_KI -> config["lqr"]["ki"]
    - KONTROL_PID_KP -> config["pid"]["kp"]

    Args:
        config_path: Path to YAML or JSON configuration file.
                    If None, only defaults and env vars are used.
        load_env: Whether to load .env file and apply env var overrides.

    Returns:
        Merged configuration dictionary.

    Raises:
        FileNotFoundError: If config_path is specified but file doesn't exist.
        PermissionError: If config file cannot be read.
        ValueError: If config file format is unsupported or malformed.
    """
    config = get_default_config()

    if config_path is not None:
        file_config = _read_structured_file(Path(config_path))
        if file_config:
            if not isinstance(file_config, dict):
                raise ValueError(
                    f"Configuration file must contain a mapping: {config_path}"
                )
            config = _deep_merge(config, file_config)

    if load_env:
        load_dotenv()
        config = _apply_env_overrides(config)

    return config


def load_matrix_file(path: str | Path) -> dict:
    """
    Load the system and cost matrices A, B, Q, R from a YAML or JSON file.

    Args:
        path: Path to the matrix file.

    Returns:
        Dictionary with keys 'A', 'B', 'Q', 'R' (nested lists as stored).

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file is malformed or a matrix is missing.
    """
    data = _read_structured_file(Path(path))
    if not isinstance(data, dict):
        raise ValueError(f"Matrix file must contain a mapping: {path}")

    missing = [key for key in ("A", "B", "Q", "R") if key not in data]
    if missing:
        raise ValueError(f"Matrix file {path} is missing: {', '.join(missing)}")

    return {key: data[key] for key in ("A", "B", "Q", "R")}


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary (values take precedence).

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Environment variable -> (section, key, type)
_ENV_MAPPINGS = {
    "KONTROL_RICCATI_EPSILON": ("riccati", "epsilon", float),
    "KONTROL_RICCATI_MAX_ITERATIONS": ("riccati", "max_iterations", int),
    "KONTROL_RICCATI_METHOD": ("riccati", "method", str),
    "KONTROL_LQR_KI": ("lqr", "ki", float),
    "KONTROL_LQR_Y_EPSILON": ("lqr", "y_epsilon", float),
    "KONTROL_PID_KP": ("pid", "kp", float),
    "KONTROL_PID_KI": ("pid", "ki", float),
    "KONTROL_PID_KD": ("pid", "kd", float),
    "KONTROL_PID_OUTPUT_LIMIT": ("pid", "output_limit", float),
}


def _apply_env_overrides(config: dict) -> dict:
    """
    Apply environment variable overrides to configuration.

    Args:
        config: Configuration dictionary.

    Returns:
        Configuration with env var overrides applied.
    """
    for env_var, (section, config_key, type_fn) in _ENV_MAPPINGS.items():
        value = os.getenv(env_var)
        if value is not None:
            try:
                config.setdefault(section, {})[config_key] = type_fn(value)
            except ValueError:
                logger.warning(
                    "Invalid value for %s: '%s', using default", env_var, value
                )

    return config
