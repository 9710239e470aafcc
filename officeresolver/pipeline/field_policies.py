"""
Per-field merge rules.

This module states, for every field the engine merges, which side wins when
an existing record and an incoming observation disagree, and records the
values that actually changed.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from officeresolver.utils.string_utils import dedupe_case_insensitive

logger = logging.getLogger(__name__)


class ResolutionStrategy(Enum):
    """Strategies for resolving a field between existing and incoming values."""

    KEEP_EXISTING = "keep_existing"
    PREFER_EXISTING = "prefer_existing"
    PREFER_INCOMING = "prefer_incoming"
    PREFER_INCOMING_COUNT = "prefer_incoming_count"
    UNION_CASE_INSENSITIVE = "union_case_insensitive"


# Office attributes. Listing data follows the latest scrape, identifiers are
# fixed on first assignment, user-owned fields are never touched by a merge.
OFFICE_FIELD_RULES: Dict[str, ResolutionStrategy] = {
    "name": ResolutionStrategy.PREFER_INCOMING,
    "address": ResolutionStrategy.PREFER_INCOMING,
    "category": ResolutionStrategy.PREFER_INCOMING,
    "phone": ResolutionStrategy.PREFER_INCOMING,
    "website": ResolutionStrategy.PREFER_INCOMING,
    "email": ResolutionStrategy.PREFER_INCOMING,
    "rating": ResolutionStrategy.PREFER_INCOMING,
    "reviews": ResolutionStrategy.PREFER_INCOMING,
    "hours": ResolutionStrategy.PREFER_INCOMING,
    "description": ResolutionStrategy.PREFER_INCOMING,
    "city": ResolutionStrategy.PREFER_INCOMING,
    "business_labels": ResolutionStrategy.PREFER_INCOMING,
    "place_id": ResolutionStrategy.PREFER_EXISTING,
    "unique_id": ResolutionStrategy.PREFER_EXISTING,
    "modified_name": ResolutionStrategy.KEEP_EXISTING,
    "custom_data": ResolutionStrategy.KEEP_EXISTING,
}

# Project attributes on an auto-merge. Status is resolved separately because
# it falls back to the default status.
PROJECT_FIELD_RULES: Dict[str, ResolutionStrategy] = {
    "name": ResolutionStrategy.PREFER_INCOMING,
    "description": ResolutionStrategy.PREFER_INCOMING,
    "location": ResolutionStrategy.PREFER_INCOMING,
    "use_case": ResolutionStrategy.PREFER_INCOMING,
    "size": ResolutionStrategy.PREFER_INCOMING,
}


@dataclass
class FieldChange:
    """A field whose merged value differs from the existing one."""

    field: str
    previous: Any
    resolved: Any
    strategy: ResolutionStrategy


def is_present(value: Any) -> bool:
    """A value counts as present when it carries information."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


def resolve_value(
    existing_value: Any, incoming_value: Any, strategy: ResolutionStrategy
) -> Any:
    """Resolve a single field according to its strategy."""
    if strategy == ResolutionStrategy.KEEP_EXISTING:
        return existing_value

    if strategy == ResolutionStrategy.PREFER_EXISTING:
        return existing_value if is_present(existing_value) else incoming_value

    if strategy == ResolutionStrategy.PREFER_INCOMING:
        return incoming_value if is_present(incoming_value) else existing_value

    if strategy == ResolutionStrategy.PREFER_INCOMING_COUNT:
        # 0 means the count was not reported
        if is_present(incoming_value) and incoming_value > 0:
            return incoming_value
        return existing_value

    if strategy == ResolutionStrategy.UNION_CASE_INSENSITIVE:
        if not is_present(incoming_value):
            return existing_value
        return dedupe_case_insensitive(list(existing_value or []) + list(incoming_value))

    raise ValueError(f"Unsupported resolution strategy: {strategy}")


def resolve_fields(
    existing: Any,
    incoming: Any,
    rules: Dict[str, ResolutionStrategy],
) -> Tuple[Dict[str, Any], List[FieldChange]]:
    """
    Resolve every field named in ``rules`` between two records.

    Args:
        existing: Record already on file
        incoming: Freshly observed record of the same type
        rules: Field name to resolution strategy

    Returns:
        Tuple of (resolved values by field, list of fields that changed)
    """
    resolved = {}
    changes = []

    for field_name, strategy in rules.items():
        existing_value = getattr(existing, field_name)
        incoming_value = getattr(incoming, field_name)
        value = resolve_value(existing_value, incoming_value, strategy)
        resolved[field_name] = value

        if value != existing_value:
            changes.append(FieldChange(field_name, existing_value, value, strategy))

    return resolved, changes


def merge_extra(
    existing_extra: Optional[Dict[str, Any]], incoming_extra: Optional[Dict[str, Any]]
) -> Tuple[Dict[str, Any], List[FieldChange]]:
    """Shallow-merge free-form fields, letting present incoming values win."""
    merged = dict(existing_extra or {})
    changes = []

    for key, value in (incoming_extra or {}).items():
        previous = merged.get(key)
        resolved = resolve_value(previous, value, ResolutionStrategy.PREFER_INCOMING)
        merged[key] = resolved
        if resolved != previous:
            changes.append(
                FieldChange(key, previous, resolved, ResolutionStrategy.PREFER_INCOMING)
            )

    return merged, changes


def section_rules(section: Any) -> Dict[str, ResolutionStrategy]:
    """Array-valued section fields are unioned, scalars overwritten when present."""
    rules = {}
    for f in fields(section):
        if f.default_factory is list:
            rules[f.name] = ResolutionStrategy.UNION_CASE_INSENSITIVE
        elif f.type is int:
            rules[f.name] = ResolutionStrategy.PREFER_INCOMING_COUNT
        else:
            rules[f.name] = ResolutionStrategy.PREFER_INCOMING
    return rules
