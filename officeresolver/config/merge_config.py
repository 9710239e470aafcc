"""
Merge configuration settings.

This module provides configuration options for entity resolution and
incremental merging, including factor weights, rule thresholds, the keyword
groups used by the categorical comparators, and version-bump policy.
"""

import contextlib
import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

VERSION_POLICY_RESCRAPE = "rescrape"
VERSION_POLICY_CHANGE = "change"
VERSION_POLICIES = (VERSION_POLICY_RESCRAPE, VERSION_POLICY_CHANGE)

DEFAULT_FACTOR_WEIGHTS = {
    "name": 0.25,
    "description": 0.20,
    "location": 0.20,
    "use_case": 0.15,
    "size": 0.15,
    "status": 0.05,
}

DEFAULT_USE_CASE_GROUPS = {
    "residential": ["housing", "apartment", "home", "residential"],
    "commercial": ["office", "business", "commercial", "retail"],
    "cultural": ["museum", "theater", "theatre", "cultural", "art"],
    "sports": ["sports", "gym", "fitness", "pool", "stadium"],
    "educational": ["school", "university", "education", "academic"],
    "healthcare": ["hospital", "clinic", "medical", "healthcare"],
    "public": ["public", "municipal", "government", "civic"],
}

DEFAULT_STATUS_GROUPS = {
    "active": ["completed", "in-progress", "active", "ongoing"],
    "planning": ["planning", "design", "proposed", "planned"],
    "inactive": ["cancelled", "on-hold", "suspended", "inactive"],
}

DEFAULT_STOPWORDS = [
    "the", "a", "an", "and", "or", "but", "in", "on",
    "at", "to", "for", "of", "with", "by",
]

DEFAULT_ABBREVIATIONS = [
    ("center", "centre"),
    ("theater", "theatre"),
    ("parking", "park"),
    ("building", "bldg"),
    ("street", "st"),
    ("avenue", "ave"),
    ("boulevard", "blvd"),
]

DEFAULT_GENERIC_NAME_TERMS = [
    "building", "complex", "center", "tower", "house", "home", "office",
]


class MergeConfig:
    """Configuration for office resolution and analysis merging."""

    def __init__(
        self,
        factor_weights: Optional[Dict[str, float]] = None,
        exact_name_threshold: float = 0.90,
        exact_description_threshold: float = 0.80,
        similar_name_threshold: float = 0.85,
        name_overlap_threshold: float = 0.70,
        description_similarity_threshold: float = 0.80,
        description_factor_threshold: float = 0.75,
        location_use_case_threshold: float = 0.80,
        significant_size_difference: float = 0.50,
        min_description_length: int = 10,
        match_identical_content: bool = True,
        use_case_groups: Optional[Dict[str, List[str]]] = None,
        status_groups: Optional[Dict[str, List[str]]] = None,
        stopwords: Optional[List[str]] = None,
        abbreviations: Optional[List[Tuple[str, str]]] = None,
        generic_name_terms: Optional[List[str]] = None,
        version_policy: str = VERSION_POLICY_RESCRAPE,
        default_project_status: str = "planning",
        notes_separator: str = "\n\n--- New Analysis ---\n",
        max_workers: int = 4,
    ):
        """Initialize merge configuration."""
        if version_policy not in VERSION_POLICIES:
            raise ValueError(
                f"Unknown version policy {version_policy!r}, expected one of {VERSION_POLICIES}"
            )

        # Overall factor score
        self.factor_weights = dict(factor_weights or DEFAULT_FACTOR_WEIGHTS)

        # Project matcher rule thresholds, in rule order
        self.exact_name_threshold = exact_name_threshold
        self.exact_description_threshold = exact_description_threshold
        self.similar_name_threshold = similar_name_threshold
        self.name_overlap_threshold = name_overlap_threshold
        self.description_similarity_threshold = description_similarity_threshold
        self.description_factor_threshold = description_factor_threshold
        self.location_use_case_threshold = location_use_case_threshold
        self.significant_size_difference = significant_size_difference
        self.min_description_length = min_description_length
        # Identical incoming content updates without the rule ladder
        self.match_identical_content = match_identical_content

        # Keyword tables for the comparators
        self.use_case_groups = use_case_groups or DEFAULT_USE_CASE_GROUPS
        self.status_groups = status_groups or DEFAULT_STATUS_GROUPS
        self.stopwords = list(stopwords or DEFAULT_STOPWORDS)
        self.abbreviations = [
            tuple(pair) for pair in (abbreviations or DEFAULT_ABBREVIATIONS)
        ]
        self.generic_name_terms = list(generic_name_terms or DEFAULT_GENERIC_NAME_TERMS)

        # Merge behaviour
        self.version_policy = version_policy
        self.default_project_status = default_project_status
        self.notes_separator = notes_separator
        self.max_workers = max_workers

    @property
    def bump_on_every_rescrape(self) -> bool:
        return self.version_policy == VERSION_POLICY_RESCRAPE

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "MergeConfig":
        """Create configuration from dictionary."""
        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "factor_weights": self.factor_weights,
            "exact_name_threshold": self.exact_name_threshold,
            "exact_description_threshold": self.exact_description_threshold,
            "similar_name_threshold": self.similar_name_threshold,
            "name_overlap_threshold": self.name_overlap_threshold,
            "description_similarity_threshold": self.description_similarity_threshold,
            "description_factor_threshold": self.description_factor_threshold,
            "location_use_case_threshold": self.location_use_case_threshold,
            "significant_size_difference": self.significant_size_difference,
            "min_description_length": self.min_description_length,
            "match_identical_content": self.match_identical_content,
            "use_case_groups": self.use_case_groups,
            "status_groups": self.status_groups,
            "stopwords": self.stopwords,
            "abbreviations": [list(pair) for pair in self.abbreviations],
            "generic_name_terms": self.generic_name_terms,
            "version_policy": self.version_policy,
            "default_project_status": self.default_project_status,
            "notes_separator": self.notes_separator,
            "max_workers": self.max_workers,
        }


# Default configuration
DEFAULT_MERGE_CONFIG = MergeConfig()


def load_merge_config(config_path: Optional[str] = None) -> MergeConfig:
    """
    Load merge configuration from file or environment.

    Args:
        config_path: Optional path to JSON configuration file

    Returns:
        MergeConfig instance
    """
    config_dict = {}

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path) as f:
                config_dict = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable merge config {config_path}: {e}")
            config_dict = {}

    env_mappings = {
        "MERGE_EXACT_NAME_THRESHOLD": ("exact_name_threshold", float),
        "MERGE_EXACT_DESCRIPTION_THRESHOLD": ("exact_description_threshold", float),
        "MERGE_SIMILAR_NAME_THRESHOLD": ("similar_name_threshold", float),
        "MERGE_NAME_OVERLAP_THRESHOLD": ("name_overlap_threshold", float),
        "MERGE_DESCRIPTION_SIMILARITY_THRESHOLD": (
            "description_similarity_threshold",
            float,
        ),
        "MERGE_DESCRIPTION_FACTOR_THRESHOLD": ("description_factor_threshold", float),
        "MERGE_LOCATION_USE_CASE_THRESHOLD": ("location_use_case_threshold", float),
        "MERGE_SIGNIFICANT_SIZE_DIFFERENCE": ("significant_size_difference", float),
        "MERGE_MIN_DESCRIPTION_LENGTH": ("min_description_length", int),
        "MERGE_MATCH_IDENTICAL_CONTENT": (
            "match_identical_content",
            lambda x: x.strip().lower() == "true",
        ),
        "MERGE_VERSION_POLICY": ("version_policy", lambda x: x.strip().lower()),
        "MERGE_DEFAULT_PROJECT_STATUS": ("default_project_status", str),
        "MERGE_MAX_WORKERS": ("max_workers", int),
    }

    for env_var, (config_key, converter) in env_mappings.items():
        if env_var in os.environ:
            with contextlib.suppress(ValueError):
                config_dict[config_key] = converter(os.environ[env_var])

    return MergeConfig.from_dict(config_dict) if config_dict else DEFAULT_MERGE_CONFIG
