"""
Pipeline package for the office resolver.

This package contains the matching and merge modules: similarity scoring,
office and project matching, field merge rules, the merge engine and the
resolver entry points.
"""

from . import (
    feedback,
    field_policies,
    input_cleaning,
    merge_engine,
    models,
    office_matcher,
    project_matcher,
    resolver,
    similarity,
    user_edits,
)

__all__ = [
    "similarity",
    "models",
    "office_matcher",
    "project_matcher",
    "field_policies",
    "merge_engine",
    "feedback",
    "resolver",
    "input_cleaning",
    "user_edits",
]
