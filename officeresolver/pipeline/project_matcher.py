"""
Multi-factor duplicate detection for projects.

Projects carry no identity of their own, so identity is inferred: a project whose
reported fields all equal an existing project's is that project; otherwise each
existing project is checked against a fixed sequence of rules, and every
rule is gated by a weighted score over six field similarities. Only
identical content and the two "exact" rules lead to an automatic update.
The "similar" rules report a near-duplicate that is dropped instead of
merged, because two distinct projects often share most of their wording.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Optional, Sequence

from officeresolver.config.merge_config import DEFAULT_MERGE_CONFIG, MergeConfig
from officeresolver.pipeline import similarity
from officeresolver.pipeline.merge_logging import MergeLogger
from officeresolver.pipeline.models import Project
from officeresolver.utils.string_utils import fold


class MatchRule(Enum):
    """Project matching rules, in evaluation order."""

    IDENTICAL_CONTENT = "identical_content"
    EXACT_NAME = "exact_name"
    EXACT_DESCRIPTION = "exact_description"
    SIMILAR_NAME = "similar_name"
    SIMILAR_DESCRIPTION = "similar_description"
    LOCATION_USE_CASE = "location_use_case"
    NONE = "none"


@dataclass
class FactorScores:
    """Per-field similarities of two projects."""

    name: float = 0.0
    description: float = 0.0
    location: float = 0.0
    use_case: float = 0.0
    size: float = 0.0
    status: float = 0.0

    def overall(self, weights: Dict[str, float]) -> float:
        return sum(score * weights.get(factor, 0.0) for factor, score in asdict(self).items())


@dataclass
class MatchVerdict:
    """Result of matching one incoming project against a project list."""

    is_duplicate: bool
    exact_match: bool
    reason: str
    index: int = -1
    rule: MatchRule = MatchRule.NONE
    score: float = 0.0


def compare_project_factors(
    a: Project, b: Project, config: MergeConfig = DEFAULT_MERGE_CONFIG
) -> FactorScores:
    """Score each of the six project fields."""
    return FactorScores(
        name=similarity.name_similarity(a.name, b.name, config.abbreviations),
        description=similarity.jaccard_similarity(
            a.description, b.description, config.stopwords
        ),
        location=similarity.location_similarity(a.location, b.location),
        use_case=similarity.categorical_similarity(
            a.use_case, b.use_case, config.use_case_groups
        ),
        size=similarity.numeric_relative_similarity(a.size, b.size),
        status=similarity.status_similarity(a.status, b.status, config.status_groups),
    )


def overall_score(a: Project, b: Project, config: MergeConfig = DEFAULT_MERGE_CONFIG) -> float:
    """Weighted factor score of two projects."""
    return compare_project_factors(a, b, config).overall(config.factor_weights)


CONTENT_FIELDS = ("name", "description", "location", "use_case", "size", "status")


def has_identical_content(incoming: Project, candidate: Project) -> bool:
    """
    True when every field the incoming project reports equals the candidate's.

    Fields left blank on the incoming project are not compared, so a sparse
    re-extraction still matches the project it produced earlier.
    """
    if not fold(incoming.name):
        return False
    for attr in CONTENT_FIELDS:
        value = fold(getattr(incoming, attr))
        if value and value != fold(getattr(candidate, attr)):
            return False
    return True


class ProjectMatcher:
    """Finds the existing project an incoming project duplicates, if any."""

    def __init__(
        self,
        config: Optional[MergeConfig] = None,
        merge_logger: Optional[MergeLogger] = None,
    ):
        self.config = config or DEFAULT_MERGE_CONFIG
        self.merge_logger = merge_logger

    def score(self, a: Project, b: Project) -> float:
        return overall_score(a, b, self.config)

    def is_similar_name(self, a: str, b: str) -> bool:
        """Word-overlap gate for the fuzzy-name rule."""
        a, b = fold(a), fold(b)
        if len(a) < 3 or len(b) < 3:
            return False
        ratio = similarity.word_overlap_ratio(a, b, self.config.stopwords)
        return ratio > self.config.name_overlap_threshold

    def is_significant_size_difference(self, a: str, b: str) -> bool:
        """Sizes whose magnitudes differ by more than the configured share."""
        if not fold(a) or not fold(b):
            return False
        difference = similarity.relative_difference(a, b)
        return difference > self.config.significant_size_difference

    def _log(self, incoming, candidate, rule, score, decision, **details):
        if self.merge_logger:
            self.merge_logger.log_match_decision(
                incoming.name, candidate.name, rule.value, score, decision, **details
            )

    def _gate(
        self,
        incoming: Project,
        candidate: Project,
        index: int,
        rule: MatchRule,
        threshold: float,
        exact: bool,
        reason: str,
    ) -> Optional[MatchVerdict]:
        """Confirm a rule with the factor score; None means the rule was vetoed."""
        score = self.score(incoming, candidate)
        if score > threshold:
            self._log(incoming, candidate, rule, score, "match", threshold=threshold)
            return MatchVerdict(
                True,
                exact,
                reason.format(score=round(score * 100)),
                index,
                rule,
                score,
            )

        self._log(incoming, candidate, rule, score, "vetoed", threshold=threshold)
        return None

    def find_duplicate(
        self, existing_projects: Sequence[Project], incoming: Project
    ) -> MatchVerdict:
        """
        Match an incoming project against a project list.

        A candidate whose content equals every field the incoming project
        reports is an update outright. Otherwise candidates are visited in
        list order and, for each candidate, the first rule whose precondition
        holds decides it: either the factor score confirms the rule and the
        verdict is returned, or the score vetoes it and the next candidate
        is tried.

        Args:
            existing_projects: Current merged project list
            incoming: Project to classify

        Returns:
            MatchVerdict; ``is_duplicate`` False when no candidate matched
        """
        config = self.config

        if config.match_identical_content:
            for index, candidate in enumerate(existing_projects):
                if has_identical_content(incoming, candidate):
                    score = self.score(incoming, candidate)
                    self._log(incoming, candidate, MatchRule.IDENTICAL_CONTENT, score, "match")
                    return MatchVerdict(
                        True,
                        True,
                        "identical project content",
                        index,
                        MatchRule.IDENTICAL_CONTENT,
                        score,
                    )

        new_name = fold(incoming.name)
        new_description = fold(incoming.description)
        new_location = fold(incoming.location)
        new_use_case = fold(incoming.use_case)

        for index, candidate in enumerate(existing_projects):
            name = fold(candidate.name)
            description = fold(candidate.description)
            location = fold(candidate.location)
            use_case = fold(candidate.use_case)

            if new_name and new_name == name:
                verdict = self._gate(
                    incoming,
                    candidate,
                    index,
                    MatchRule.EXACT_NAME,
                    config.exact_name_threshold,
                    True,
                    "exact name match with identical project factors",
                )
                if verdict:
                    return verdict
                continue

            if (
                new_description == description
                and len(new_description) > config.min_description_length
            ):
                verdict = self._gate(
                    incoming,
                    candidate,
                    index,
                    MatchRule.EXACT_DESCRIPTION,
                    config.exact_description_threshold,
                    True,
                    "exact description match with aligned project factors",
                )
                if verdict:
                    return verdict
                continue

            if self.is_similar_name(new_name, name):
                verdict = self._gate(
                    incoming,
                    candidate,
                    index,
                    MatchRule.SIMILAR_NAME,
                    config.similar_name_threshold,
                    False,
                    "similar project name with strong factor alignment ({score}%)",
                )
                if verdict:
                    return verdict
                continue

            if (
                len(new_description) > config.min_description_length
                and len(description) > config.min_description_length
            ):
                overlap = similarity.jaccard_similarity(
                    new_description, description, config.stopwords
                )
                if overlap > config.description_similarity_threshold:
                    verdict = self._gate(
                        incoming,
                        candidate,
                        index,
                        MatchRule.SIMILAR_DESCRIPTION,
                        config.description_factor_threshold,
                        False,
                        f"high description similarity ({round(overlap * 100)}%)"
                        " with factor alignment ({score}%)",
                    )
                    if verdict:
                        return verdict
                    continue

            if (
                new_location
                and new_use_case
                and new_location == location
                and new_use_case == use_case
            ):
                if self.is_significant_size_difference(incoming.size, candidate.size):
                    self._log(
                        incoming,
                        candidate,
                        MatchRule.LOCATION_USE_CASE,
                        0.0,
                        "size_mismatch",
                        incoming_size=incoming.size,
                        candidate_size=candidate.size,
                    )
                    continue

                if similarity.are_names_related(
                    new_name, name, config.generic_name_terms
                ):
                    verdict = self._gate(
                        incoming,
                        candidate,
                        index,
                        MatchRule.LOCATION_USE_CASE,
                        config.location_use_case_threshold,
                        False,
                        "same location + use case with related names and aligned factors",
                    )
                    if verdict:
                        return verdict
                    continue

        return MatchVerdict(False, False, "no duplicate found")
