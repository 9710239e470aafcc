"""
Run-level feedback for merge runs.

The aggregator collects per-project outcomes and per-section presence flags
while a merge runs and turns them into the report shown to the user and
stored in the merge history.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from officeresolver.pipeline.models import (
    SECTION_NAMES,
    Added,
    Blocked,
    MergeOutcome,
    Updated,
)


@dataclass
class FeedbackReport:
    """What one analysis merge did."""

    is_new_analysis: bool
    added: List[Added] = field(default_factory=list)
    blocked: List[Blocked] = field(default_factory=list)
    updated: List[Updated] = field(default_factory=list)
    sections_updated: Dict[str, bool] = field(
        default_factory=lambda: {name: False for name in SECTION_NAMES}
    )

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "totalProjectsAdded": len(self.added),
            "totalProjectsBlocked": len(self.blocked),
            "totalProjectsUpdated": len(self.updated),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "isNewAnalysis": self.is_new_analysis,
            "projects": {
                "added": [outcome.to_dict() for outcome in self.added],
                "blocked": [outcome.to_dict() for outcome in self.blocked],
                "updated": [outcome.to_dict() for outcome in self.updated],
            },
        }
        for name in SECTION_NAMES:
            data[name] = {"updated": self.sections_updated.get(name, False)}
        data["summary"] = self.summary
        return data


class FeedbackAggregator:
    """Accumulates outcomes for one analysis merge."""

    def __init__(self, is_new_analysis: bool = False):
        self.report = FeedbackReport(is_new_analysis=is_new_analysis)

    def record(self, outcome: MergeOutcome) -> None:
        if isinstance(outcome, Added):
            self.report.added.append(outcome)
        elif isinstance(outcome, Updated):
            self.report.updated.append(outcome)
        elif isinstance(outcome, Blocked):
            self.report.blocked.append(outcome)
        else:
            raise TypeError(f"Unknown merge outcome: {outcome!r}")

    def mark_section(self, name: str, incoming_section: Any) -> None:
        """Flag a section as updated whenever the incoming section has content."""
        if name not in SECTION_NAMES:
            raise KeyError(f"Unknown analysis section: {name}")
        self.report.sections_updated[name] = not incoming_section.is_empty()

    def build(self) -> FeedbackReport:
        return self.report


@dataclass
class OfficeRunSummary:
    """Counts for one office resolution run."""

    total: int = 0
    new: int = 0
    duplicates: int = 0
    matched_by_place_id: int = 0
    matched_by_name_address: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "new": self.new,
            "duplicates": self.duplicates,
            "matchedByPlaceId": self.matched_by_place_id,
            "matchedByNameAddress": self.matched_by_name_address,
        }
