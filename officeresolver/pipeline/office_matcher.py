"""
Identity matching for office listings.

An incoming office is the same listing as an existing one when both carry
the same place id, or when their case-folded names and addresses are both
equal. There is no fuzzy tier for offices.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from officeresolver.pipeline.models import Office
from officeresolver.utils.string_utils import fold


class OfficeMatchRule(Enum):
    """Which identity rule classified an office."""

    PLACE_ID = "place_id"
    NAME_ADDRESS = "name_address"
    NONE = "none"


@dataclass
class OfficeMatch:
    """Verdict for one incoming office."""

    rule: OfficeMatchRule
    index: int = -1
    existing: Optional[Office] = None

    @property
    def is_duplicate(self) -> bool:
        return self.existing is not None


def name_address_key(office: Office) -> Optional[Tuple[str, str]]:
    """Folded (name, address) pair, or None when either part is missing."""
    name, address = fold(office.name), fold(office.address)
    if not name or not address:
        return None
    return name, address


class OfficeMatcher:
    """Classifies incoming offices against one tenant's existing offices."""

    def __init__(self, existing: Sequence[Office]):
        """Index the existing offices; the first occurrence of a key wins."""
        self.existing = list(existing)
        self._by_place_id: Dict[str, int] = {}
        self._by_name_address: Dict[Tuple[str, str], int] = {}

        for i, office in enumerate(self.existing):
            if office.place_id:
                self._by_place_id.setdefault(office.place_id, i)
            key = name_address_key(office)
            if key:
                self._by_name_address.setdefault(key, i)

    def find_match(self, incoming: Office) -> OfficeMatch:
        """Apply the identity rules in order; the first rule that matches wins."""
        if incoming.place_id and incoming.place_id in self._by_place_id:
            index = self._by_place_id[incoming.place_id]
            return OfficeMatch(OfficeMatchRule.PLACE_ID, index, self.existing[index])

        key = name_address_key(incoming)
        if key and key in self._by_name_address:
            index = self._by_name_address[key]
            return OfficeMatch(OfficeMatchRule.NAME_ADDRESS, index, self.existing[index])

        return OfficeMatch(OfficeMatchRule.NONE)

    def match_all(self, incoming: Sequence[Office]) -> List[OfficeMatch]:
        """Match a batch against the snapshot; incoming offices never match each other."""
        return [self.find_match(office) for office in incoming]
