"""
Explicit user edits of the protected office fields.

These are the only operations allowed to write ``modified_name`` and
``custom_data``; the merge engine copies both from the existing record.
"""

import dataclasses
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from officeresolver.pipeline.merge_engine import utc_now
from officeresolver.pipeline.models import Office

logger = logging.getLogger(__name__)


def find_office(offices: Sequence[Office], unique_id: str) -> Optional[Office]:
    """Look up an office by its unique id."""
    for office in offices:
        if office.unique_id == unique_id:
            return office
    return None


def update_office_custom_data(
    office: Office, custom_data: Dict[str, Any], now: Optional[datetime] = None
) -> Office:
    """
    Replace an office's custom data with a user-supplied mapping.

    Args:
        office: Office to edit
        custom_data: The user's custom fields
        now: Edit timestamp (defaults to the current UTC time)

    Returns:
        A new Office; ``office`` is left unchanged
    """
    if not isinstance(custom_data, dict):
        raise ValueError("Custom data must be a mapping")

    now = now or utc_now()
    metadata = dataclasses.replace(
        office.metadata, last_updated=now, custom_data_exists=True
    )
    logger.info(f"Updated custom data for office {office.unique_id or office.name}")
    return dataclasses.replace(
        office,
        custom_data={**custom_data, "lastModified": now},
        metadata=metadata,
    )


def update_office_name(
    office: Office, modified_name: str, now: Optional[datetime] = None
) -> Office:
    """Set the user's display name for an office."""
    if not isinstance(modified_name, str) or not modified_name.strip():
        raise ValueError("Modified name is required")

    now = now or utc_now()
    logger.info(f"Updated office name for {office.unique_id or office.name}")
    return dataclasses.replace(
        office,
        modified_name=modified_name.strip(),
        extra={**office.extra, "modifiedAt": now.isoformat()},
    )
