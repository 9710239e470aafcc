"""
Tests for the feedback aggregator.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from officeresolver.pipeline.feedback import FeedbackAggregator, OfficeRunSummary
from officeresolver.pipeline.models import (
    Added,
    Blocked,
    ClientsInfo,
    MergeOutcome,
    Project,
    TeamInfo,
    Updated,
)


class TestFeedbackAggregator:
    def test_empty_report_shape(self):
        report = FeedbackAggregator(is_new_analysis=True).build()

        assert report.to_dict() == {
            "isNewAnalysis": True,
            "projects": {"added": [], "blocked": [], "updated": []},
            "team": {"updated": False},
            "relations": {"updated": False},
            "funding": {"updated": False},
            "clients": {"updated": False},
            "summary": {
                "totalProjectsAdded": 0,
                "totalProjectsBlocked": 0,
                "totalProjectsUpdated": 0,
            },
        }

    def test_outcomes_are_bucketed(self):
        aggregator = FeedbackAggregator()
        aggregator.record(Added(Project(name="A", status="planning")))
        aggregator.record(
            Blocked(Project(name="B"), "similar project name", similar_to="Bee")
        )
        aggregator.record(
            Updated(
                Project(name="C", size="200 m2"),
                "exact match - updated existing project",
                previous={"status": "planning", "size": "180 m2"},
            )
        )
        data = aggregator.build().to_dict()

        assert data["summary"] == {
            "totalProjectsAdded": 1,
            "totalProjectsBlocked": 1,
            "totalProjectsUpdated": 1,
        }
        assert data["projects"]["added"] == [{"name": "A", "status": "planning"}]
        assert data["projects"]["blocked"] == [
            {"name": "B", "reason": "similar project name", "similarTo": "Bee"}
        ]
        updated = data["projects"]["updated"][0]
        assert updated["previousSize"] == "180 m2"
        assert updated["previousStatus"] == "planning"
        assert updated["previousLocation"] is None
        assert updated["size"] == "200 m2"

    def test_unknown_outcome_is_rejected(self):
        with pytest.raises(TypeError):
            FeedbackAggregator().record(MergeOutcome(Project(name="X")))

    def test_section_flag_is_presence_not_diff(self):
        aggregator = FeedbackAggregator()
        aggregator.mark_section("team", TeamInfo(roles=["Architect"]))
        aggregator.mark_section("clients", ClientsInfo())
        report = aggregator.build()

        assert report.sections_updated["team"] is True
        assert report.sections_updated["clients"] is False

    def test_unknown_section(self):
        with pytest.raises(KeyError):
            FeedbackAggregator().mark_section("awards", TeamInfo())


def test_office_run_summary_to_dict():
    summary = OfficeRunSummary(total=3, new=1, duplicates=2, matched_by_place_id=2)
    assert summary.to_dict() == {
        "total": 3,
        "new": 1,
        "duplicates": 2,
        "matchedByPlaceId": 2,
        "matchedByNameAddress": 0,
    }
