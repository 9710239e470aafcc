"""
Office resolver package.

Entity resolution and incremental merging for re-scraped office listings
and their free-text project analyses.
"""

__version__ = "0.1.0"

from . import config, pipeline, utils

from .config import load_merge_config
from .pipeline.input_cleaning import clean_analysis_input
from .pipeline.resolver import (
    resolve_analyses_parallel,
    resolve_and_merge_analysis,
    resolve_offices,
    resolve_offices_with_lookup,
)

__all__ = [
    "config",
    "pipeline",
    "utils",
    "load_merge_config",
    "clean_analysis_input",
    "resolve_offices",
    "resolve_offices_with_lookup",
    "resolve_and_merge_analysis",
    "resolve_analyses_parallel",
    "__version__",
]
