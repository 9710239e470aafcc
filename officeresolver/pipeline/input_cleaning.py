"""
Validation and cleaning of raw analysis extractor output.

The extractor returns loosely shaped JSON. Before it reaches the merge
engine, projects without substance are dropped, strings are trimmed, lists
are de-duplicated and empty sections are cleared.
"""

import logging
from typing import Any, Dict, List

from officeresolver.pipeline.models import AnalysisInput
from officeresolver.utils.logging import log_execution_time
from officeresolver.utils.string_utils import dedupe_case_insensitive

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "planning"

PROJECT_KEYS = ("name", "size", "location", "useCase", "description", "status")

# camelCase keys of the section fields, split by shape
SECTION_TEXT_KEYS = {
    "team": ("teamSize",),
    "relations": (),
    "funding": ("budget", "financialInfo", "investmentDetails"),
    "clients": (),
}
SECTION_LIST_KEYS = {
    "team": ("specificArchitects", "roles"),
    "relations": ("constructionCompanies", "otherArchOffices", "partners", "collaborators"),
    "funding": ("fundingSources",),
    "clients": ("pastClients", "presentClients", "clientTypes", "clientIndustries"),
}


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _has_items(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _headcount(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value) if value > 0 else 0


def is_valid_project(project: Any) -> bool:
    """A project needs a name or a description, plus one descriptive field."""
    if not isinstance(project, dict):
        return False

    identified = _has_text(project.get("name")) or _has_text(project.get("description"))
    described = any(
        _has_text(project.get(key)) for key in ("size", "location", "useCase", "status")
    )
    return identified and described


def clean_project(project: Dict[str, Any]) -> Dict[str, str]:
    cleaned = {key: _text(project.get(key)) for key in PROJECT_KEYS}
    cleaned["status"] = cleaned["status"] or DEFAULT_STATUS
    return cleaned


def is_valid_section(name: str, section: Any) -> bool:
    """A section is kept when any of its fields carries content."""
    if not isinstance(section, dict):
        return False

    if any(_has_text(section.get(key)) for key in SECTION_TEXT_KEYS[name]):
        return True
    if any(_has_items(section.get(key)) for key in SECTION_LIST_KEYS[name]):
        return True
    if name == "team":
        return _headcount(section.get("numberOfPeople")) > 0
    return False


def clean_section(name: str, section: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {key: _text(section.get(key)) for key in SECTION_TEXT_KEYS[name]}
    for key in SECTION_LIST_KEYS[name]:
        value = section.get(key)
        cleaned[key] = dedupe_case_insensitive(value if isinstance(value, list) else [])
    if name == "team":
        cleaned["numberOfPeople"] = _headcount(section.get("numberOfPeople"))
    return cleaned


@log_execution_time
def clean_analysis_input(raw: Any) -> AnalysisInput:
    """
    Validate and clean one raw analysis result.

    Args:
        raw: Parsed JSON from the analysis extractor; anything that is not a
            dict yields an empty analysis

    Returns:
        AnalysisInput ready to merge
    """
    if not isinstance(raw, dict):
        logger.warning("Analysis result is not an object, using an empty analysis")
        raw = {}

    projects: List[Dict[str, str]] = []
    raw_projects = raw.get("projects")
    if isinstance(raw_projects, list):
        projects = [clean_project(p) for p in raw_projects if is_valid_project(p)]
        dropped = len(raw_projects) - len(projects)
        if dropped:
            logger.info(f"Dropped {dropped} incomplete projects from analysis result")

    cleaned: Dict[str, Any] = {"projects": projects}
    for name in SECTION_LIST_KEYS:
        section = raw.get(name)
        cleaned[name] = clean_section(name, section) if is_valid_section(name, section) else {}

    confidence = raw.get("confidence")
    cleaned["confidence"] = (
        confidence
        if isinstance(confidence, (int, float)) and not isinstance(confidence, bool)
        else 0
    )
    cleaned["analysisNotes"] = raw.get("analysisNotes") if _has_text(raw.get("analysisNotes")) else ""
    for key in ("originalLanguage", "translatedText"):
        if _has_text(raw.get(key)):
            cleaned[key] = raw[key]

    return AnalysisInput.from_dict(cleaned)
