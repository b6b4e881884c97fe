"""
config_loader.py
-----------------
Singleton config loader. Reads config.yaml once and caches it.
All modules access detection policy through this. Never hardcoded values.
"""

import os
import yaml
from typing import Any, Dict


_CONFIG_CACHE: Dict[str, Any] = {}


def load_config(config_path: str | None = None) -> Dict[str, Any]:
    """
    Load and cache the YAML configuration file.

    Args:
        config_path: Path to config.yaml. Defaults to config/ relative to this file.

    Returns:
        Full config dictionary.
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE:
        return _CONFIG_CACHE

    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "config.yaml")

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        _CONFIG_CACHE = yaml.safe_load(f)

    return _CONFIG_CACHE


def get_recurring_detection_config() -> Dict[str, Any]:
    """Returns the recurring_detection block."""
    return load_config()["recurring_detection"]


def get_cadence_config(cadence: str, detection_config: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """
    Returns the gap window and support requirements for one cadence.

    Args:
        cadence: "monthly" or "yearly".
        detection_config: A recurring_detection block to read from instead
            of the loaded file.

    Raises:
        KeyError: If the cadence is not configured.
    """
    cadences = (detection_config or get_recurring_detection_config())["cadences"]
    if cadence not in cadences:
        raise KeyError(
            f"No cadence config for '{cadence}'. "
            f"Available: {list(cadences.keys())}"
        )
    return cadences[cadence]


def get_currency_config() -> Dict[str, Any]:
    """Returns the currency block (supported currencies, default FX rate)."""
    return load_config()["currency"]


def get_preferences_config() -> Dict[str, Any]:
    """Returns the preference store block."""
    return load_config()["preferences"]


def get_logging_config() -> Dict[str, Any]:
    """Returns the logging block used by the CLI."""
    return load_config()["logging"]


def reset_config() -> None:
    """Clears cached config. Useful for testing."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = {}
