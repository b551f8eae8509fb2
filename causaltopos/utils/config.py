# Config Utilities
import logging
import os
from typing import Any, Dict, Optional

import yaml

from causaltopos.config.schema import ConfigSchema
from causaltopos.config_models import AnalyticsSettings, RefinerSettings, SliceSettings

# Default config shipped inside the package
PACKAGE_CONFIG_PATH = os.path.abspath(
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "config.yaml")
)

DEFAULT_CONFIG_PATH = PACKAGE_CONFIG_PATH

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load and validate the YAML configuration file.

    The path is resolved from ``config_path``, then the ``CAUSALTOPOS_CONFIG``
    environment variable and finally the packaged ``config.yaml``.
    """
    if config_path is None:
        config_path = os.environ.get("CAUSALTOPOS_CONFIG", DEFAULT_CONFIG_PATH)

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    logger.info("Loading config from: %s", config_path)
    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return ConfigSchema.model_validate(config).model_dump()


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries"""
    result = base_config.copy()
    for key, value in override_config.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config_with_overrides(
    config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Load configuration and apply ``overrides`` on top of it."""
    config = load_config(config_path)
    if overrides:
        config = merge_configs(config, overrides)
        config = ConfigSchema.model_validate(config).model_dump()
    return config


def get_analytics_settings(config: Dict[str, Any]) -> AnalyticsSettings:
    """Return centrality configuration as :class:`AnalyticsSettings`."""
    return AnalyticsSettings.from_dict(config.get("analytics", {}))


def get_refiner_settings(config: Dict[str, Any]) -> RefinerSettings:
    """Return refiner configuration as :class:`RefinerSettings`."""
    settings = RefinerSettings.from_dict(config.get("refiner", {}))
    logger.debug("refiner settings: %s", settings)
    return settings


def get_slice_settings(config: Dict[str, Any]) -> SliceSettings:
    """Return analogy matching configuration as :class:`SliceSettings`."""
    return SliceSettings.from_dict(config.get("slices", {}))
