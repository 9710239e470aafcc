"""
Configuration package for the office resolver.
"""

from .merge_config import (
    DEFAULT_MERGE_CONFIG,
    VERSION_POLICY_CHANGE,
    VERSION_POLICY_RESCRAPE,
    MergeConfig,
    load_merge_config,
)

__all__ = [
    "DEFAULT_MERGE_CONFIG",
    "VERSION_POLICY_CHANGE",
    "VERSION_POLICY_RESCRAPE",
    "MergeConfig",
    "load_merge_config",
]
