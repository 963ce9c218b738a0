from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = Path("ensinor.config.yaml")

BASE_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "storage": {
        "sqlite_path": "ensinor.db",
    },
    "pagination": {
        "default_limit": 10,
        "max_limit": 100,
    },
    "scheduler": {
        "timezone": "UTC",
        "subscription_sweep_hours": 12,
        "user_cleanup_hours": 12,
        "course_cleanup_hours": 12,
        "unpublished_course_max_age_hours": 12,
        "code_cleanup_hour": 2,
        "expiry_warning_hours": 24,
    },
    "achievements": {
        "base_points": 300,
        "multiplier": 3,
    },
    "logging": {
        "level": "INFO",
    },
}

_POSITIVE_INT_SETTINGS = (
    "pagination.default_limit",
    "pagination.max_limit",
    "scheduler.subscription_sweep_hours",
    "scheduler.user_cleanup_hours",
    "scheduler.course_cleanup_hours",
    "scheduler.unpublished_course_max_age_hours",
    "scheduler.expiry_warning_hours",
    "achievements.base_points",
    "achievements.multiplier",
)


def _merge_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay user sections on the built-in defaults (one level deep)."""
    merged = deepcopy(BASE_DEFAULTS)
    for section, values in config.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section] = {**merged[section], **values}
        else:
            merged[section] = values
    return merged


def get_setting(config: Dict[str, Any], dotted_key: str, default: Any = None) -> Any:
    """
    Look up a nested setting with a dotted key, e.g. ``"pagination.max_limit"``.

    Args:
        config: Config dictionary (usually from load_config)
        dotted_key: Dot separated path
        default: Value returned when any segment is missing

    Returns:
        The setting value or default
    """
    node: Any = config
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate setting types that the rest of the code relies on.

    Raises:
        ValueError: If a setting has the wrong type or range
    """
    for key in _POSITIVE_INT_SETTINGS:
        value = get_setting(config, key)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"Config '{key}' must be a positive integer, got {value!r}")

    default_limit = get_setting(config, "pagination.default_limit")
    max_limit = get_setting(config, "pagination.max_limit")
    if default_limit > max_limit:
        raise ValueError("Config 'pagination.default_limit' cannot exceed 'pagination.max_limit'")

    hour = get_setting(config, "scheduler.code_cleanup_hour")
    if not isinstance(hour, int) or not 0 <= hour <= 23:
        raise ValueError(f"Config 'scheduler.code_cleanup_hour' must be 0-23, got {hour!r}")

    sqlite_path = get_setting(config, "storage.sqlite_path")
    if not sqlite_path or not isinstance(sqlite_path, str):
        raise ValueError("Config 'storage.sqlite_path' must be a non-empty string")

    return config


def default_config() -> Dict[str, Any]:
    """Built-in configuration, used when no config file is present."""
    return deepcopy(BASE_DEFAULTS)


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load configuration from YAML and merge it over the built-in defaults.

    Args:
        path: Optional path to the config file. Defaults to ensinor.config.yaml

    Returns:
        Validated configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")

    return validate_config(_merge_defaults(config))
