"""
End-to-end tests for the resolver entry points.
"""

import os
import sys
import unittest
from datetime import datetime, timezone
from unittest.mock import Mock

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from officeresolver.pipeline.models import AnalysisDocument, AnalysisInput, Office, Project
from officeresolver.pipeline.resolver import (
    AnalysisJob,
    OfficeResolver,
    resolve_analyses_parallel,
    resolve_and_merge_analysis,
    resolve_offices,
    resolve_offices_with_lookup,
)

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _projects():
    return [
        Project(
            name="Riverside Tower",
            description="35-story office tower in Riga",
            location="Riga",
            use_case="commercial",
            size="20000 m2",
        ),
        Project(
            name="Harbour Offices",
            description="Timber office building at the harbour front",
            location="Liepaja",
            use_case="office",
            size="4000 m2",
        ),
    ]


class TestResolveOffices(unittest.TestCase):
    """Test cases for office resolution."""

    def setUp(self):
        """Set up test fixtures."""
        self.existing = [
            Office.from_dict(
                {
                    "name": "Nordic Architects",
                    "address": "Brīvības 10, Rīga",
                    "placeId": "P1",
                    "metadata": {"dataVersion": 2},
                }
            )
        ]

    def test_rescrape_of_known_office(self):
        incoming = [
            Office.from_dict(
                {
                    "name": "Nordic Architects",
                    "address": "Brīvības 10, Rīga",
                    "placeId": "P1",
                    "phone": "+371-2000000",
                }
            )
        ]
        merged, statuses = resolve_offices(self.existing, incoming, now=NOW)

        self.assertEqual(statuses, [{"existedInDatabase": True}])
        data = merged[0].to_dict()
        self.assertEqual(data["phone"], "+371-2000000")
        self.assertTrue(data["existedInDatabase"])
        self.assertEqual(data["metadata"]["dataVersion"], 3)

    def test_place_id_alone_classifies_duplicate(self):
        incoming = [Office(name="Completely Different", address="Elsewhere 1", place_id="P1")]
        merged, statuses = resolve_offices(self.existing, incoming, now=NOW)

        self.assertEqual(statuses, [{"existedInDatabase": True}])
        self.assertEqual(merged[0].name, "Completely Different")

    def test_output_follows_incoming_order(self):
        incoming = [
            Office(name="Studio Sur", address="Calle Mayor 5, Valencia"),
            Office(name="Nordic Architects", address="Brīvības 10, Rīga"),
        ]
        merged, statuses = resolve_offices(self.existing, incoming, now=NOW)

        self.assertEqual([o.name for o in merged], ["Studio Sur", "Nordic Architects"])
        self.assertEqual(
            statuses, [{"existedInDatabase": False}, {"existedInDatabase": True}]
        )
        self.assertEqual(merged[0].metadata.data_version, 1)

    def test_empty_inputs(self):
        self.assertEqual(resolve_offices([], []), ([], []))

    def test_run_summary(self):
        incoming = [
            Office(name="Studio Sur", address="Calle Mayor 5, Valencia"),
            Office(name="x", address="y", place_id="P1"),
            Office(name="nordic architects", address="brīvības 10, rīga"),
        ]
        resolution = OfficeResolver().resolve(self.existing, incoming, NOW)

        self.assertEqual(
            resolution.summary.to_dict(),
            {
                "total": 3,
                "new": 1,
                "duplicates": 2,
                "matchedByPlaceId": 1,
                "matchedByNameAddress": 1,
            },
        )

    def test_failed_lookup_treats_everything_as_new(self):
        fetch = Mock(side_effect=ConnectionError("store unavailable"))
        incoming = [Office(name="Nordic Architects", address="Brīvības 10, Rīga", place_id="P1")]

        merged, statuses = resolve_offices_with_lookup(fetch, incoming, now=NOW)

        fetch.assert_called_once()
        self.assertEqual(statuses, [{"existedInDatabase": False}])
        self.assertEqual(merged[0].metadata.data_version, 1)

    def test_successful_lookup(self):
        incoming = [Office(name="Nordic Architects", address="Brīvības 10, Rīga")]
        _, statuses = resolve_offices_with_lookup(lambda: self.existing, incoming, now=NOW)
        self.assertEqual(statuses, [{"existedInDatabase": True}])


class TestResolveAndMergeAnalysis(unittest.TestCase):
    """Test cases for analysis merging."""

    def test_rerun_adds_nothing(self):
        incoming = AnalysisInput(projects=_projects(), confidence=0.8)

        first, first_report = resolve_and_merge_analysis(None, incoming, "a1", now=NOW)
        second, second_report = resolve_and_merge_analysis(first, incoming, "a2", now=NOW)

        self.assertEqual(first_report.summary["totalProjectsAdded"], 2)
        self.assertEqual(second_report.summary["totalProjectsAdded"], 0)
        self.assertEqual(second_report.summary["totalProjectsUpdated"], 2)
        self.assertEqual(len(second.projects), 2)
        self.assertEqual(len(second.merge_history), 2)
        self.assertEqual(
            set(second.merge_history[0].to_dict()),
            set(second.merge_history[1].to_dict()),
        )

    def test_riverside_then_phase_two(self):
        existing = AnalysisDocument(projects=_projects()[:1])
        incoming = AnalysisInput(
            projects=[
                Project(
                    name="Riverside Tower",
                    description="35-story office tower in Riga",
                    location="Riga",
                    use_case="commercial",
                    size="20500 m2",
                ),
                Project(
                    name="Riverside Tower Phase 2",
                    location="Riga",
                    use_case="commercial",
                    size="40000 m2",
                ),
            ]
        )
        merged, report = resolve_and_merge_analysis(existing, incoming, "a3", now=NOW)

        self.assertEqual(report.summary["totalProjectsUpdated"], 1)
        self.assertEqual(report.summary["totalProjectsAdded"], 1)
        self.assertEqual(
            [p.name for p in merged.projects],
            ["Riverside Tower", "Riverside Tower Phase 2"],
        )
        self.assertEqual(merged.projects[0].size, "20500 m2")

    def test_rerun_of_sparse_project_adds_nothing(self):
        incoming = AnalysisInput(
            projects=[
                Project(
                    name="Riverside Tower Phase 2",
                    location="Riga",
                    use_case="commercial",
                    size="40000 m2",
                )
            ]
        )

        first, _ = resolve_and_merge_analysis(None, incoming, "a1", now=NOW)
        second, report = resolve_and_merge_analysis(first, incoming, "a2", now=NOW)

        self.assertEqual(report.summary["totalProjectsAdded"], 0)
        self.assertEqual(report.summary["totalProjectsUpdated"], 1)
        self.assertEqual([p.name for p in second.projects], ["Riverside Tower Phase 2"])
        self.assertEqual(second.projects[0].status, "planning")

    def test_identical_pair_in_one_batch_collapses(self):
        pavilion = Project(name="Harbour Pavilion", location="Liepaja", use_case="cultural")
        incoming = AnalysisInput(projects=[pavilion, pavilion])

        merged, report = resolve_and_merge_analysis(None, incoming, "a1", now=NOW)

        self.assertEqual(report.summary["totalProjectsAdded"], 1)
        self.assertEqual(report.summary["totalProjectsUpdated"], 1)
        self.assertEqual(len(merged.projects), 1)

    def test_document_round_trip(self):
        incoming = AnalysisInput(projects=_projects())
        merged, _ = resolve_and_merge_analysis(None, incoming, "a1", now=NOW)

        restored = AnalysisDocument.from_dict(merged.to_dict())
        self.assertEqual(restored.projects, merged.projects)
        self.assertEqual(restored.merge_history[0].merged_at, NOW)


class TestParallelAnalyses(unittest.TestCase):
    def test_jobs_run_independently(self):
        jobs = [
            AnalysisJob("office-1", None, AnalysisInput(projects=_projects()), "a1"),
            AnalysisJob("office-2", None, None, "a2"),
            AnalysisJob("office-3", None, AnalysisInput(), "a3"),
        ]
        results = resolve_analyses_parallel(jobs, max_workers=2, now=NOW)

        self.assertEqual(set(results), {"office-1", "office-2", "office-3"})
        self.assertTrue(results["office-1"].ok)
        self.assertEqual(results["office-1"].feedback.summary["totalProjectsAdded"], 2)
        self.assertFalse(results["office-2"].ok)
        self.assertIn("error", results["office-2"].to_dict())
        self.assertTrue(results["office-3"].ok)
        self.assertEqual(len(results["office-3"].merged.merge_history), 1)


if __name__ == "__main__":
    unittest.main()
