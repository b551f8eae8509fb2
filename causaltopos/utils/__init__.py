"""Utility helpers for causaltopos."""

from .config import (
    get_analytics_settings,
    get_refiner_settings,
    get_slice_settings,
    load_config,
    load_config_with_overrides,
    merge_configs,
)
from .progress import create_progress, progress_context, refinement_progress

__all__ = [
    "create_progress",
    "get_analytics_settings",
    "get_refiner_settings",
    "get_slice_settings",
    "load_config",
    "load_config_with_overrides",
    "merge_configs",
    "progress_context",
    "refinement_progress",
]
