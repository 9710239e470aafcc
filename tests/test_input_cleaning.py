"""
Tests for analysis input validation and cleaning.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from officeresolver.pipeline.input_cleaning import (
    clean_analysis_input,
    is_valid_project,
    is_valid_section,
)
from officeresolver.pipeline.models import AnalysisInput


class TestProjects:
    @pytest.mark.parametrize(
        "project,expected",
        [
            ({"name": "Riverside Tower", "location": "Riga"}, True),
            ({"description": "A tower", "size": "20000 m2"}, True),
            ({"name": "Riverside Tower"}, False),
            ({"location": "Riga", "useCase": "commercial"}, False),
            ({"name": "   ", "status": "planning"}, False),
            ({"name": 42, "status": "planning"}, False),
            ("Riverside Tower", False),
            (None, False),
        ],
    )
    def test_is_valid_project(self, project, expected):
        assert is_valid_project(project) is expected

    def test_projects_are_trimmed_and_defaulted(self):
        analysis = clean_analysis_input(
            {
                "projects": [
                    {"name": "  Riverside Tower ", "location": " Riga ", "useCase": "commercial"},
                    {"name": "Incomplete"},
                    "garbage",
                ]
            }
        )

        assert len(analysis.projects) == 1
        project = analysis.projects[0]
        assert project.name == "Riverside Tower"
        assert project.location == "Riga"
        assert project.use_case == "commercial"
        assert project.status == "planning"
        assert project.extra == {}


class TestSections:
    def test_lists_are_deduplicated(self):
        analysis = clean_analysis_input(
            {
                "relations": {
                    "partners": ["Skonto Būve", "skonto būve ", "Merks"],
                    "collaborators": "not a list",
                }
            }
        )

        assert analysis.relations.partners == ["Skonto Būve", "Merks"]
        assert analysis.relations.collaborators == []

    def test_empty_section_is_cleared(self):
        analysis = clean_analysis_input({"team": {"teamSize": "  ", "roles": []}})
        assert analysis.team.is_empty()

    def test_team_with_only_headcount(self):
        assert is_valid_section("team", {"numberOfPeople": 12})
        assert not is_valid_section("team", {"numberOfPeople": 0})
        assert not is_valid_section("team", {"numberOfPeople": "12"})

        analysis = clean_analysis_input({"team": {"numberOfPeople": 12}})
        assert analysis.team.number_of_people == 12

    def test_funding_scalars_are_trimmed(self):
        analysis = clean_analysis_input(
            {"funding": {"budget": " 5M EUR ", "fundingSources": ["EU", "eu"]}}
        )
        assert analysis.funding.budget == "5M EUR"
        assert analysis.funding.funding_sources == ["EU"]


class TestAnalysis:
    @pytest.mark.parametrize("raw", [None, "text", [], 42])
    def test_garbage_yields_empty_analysis(self, raw):
        analysis = clean_analysis_input(raw)
        assert analysis == AnalysisInput()

    def test_top_level_fields(self):
        analysis = clean_analysis_input(
            {
                "confidence": 0.85,
                "analysisNotes": "Extracted from website",
                "originalLanguage": "lv",
                "translatedText": "",
            }
        )

        assert analysis.confidence == 0.85
        assert analysis.analysis_notes == "Extracted from website"
        assert analysis.original_language == "lv"
        assert analysis.translated_text is None

    def test_invalid_confidence_defaults_to_zero(self):
        assert clean_analysis_input({"confidence": "high"}).confidence == 0.0
