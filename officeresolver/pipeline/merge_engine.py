"""
Merge engine for offices and office analyses.

Given the matchers' verdicts, the engine materializes merged records. It
never mutates its inputs: every merge returns new records, so a caller can
retry a merge or discard its result freely.
"""

import dataclasses
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from officeresolver.config.merge_config import DEFAULT_MERGE_CONFIG, MergeConfig
from officeresolver.pipeline.feedback import FeedbackAggregator, FeedbackReport
from officeresolver.pipeline.field_policies import (
    OFFICE_FIELD_RULES,
    PROJECT_FIELD_RULES,
    FieldChange,
    merge_extra,
    resolve_fields,
    section_rules,
)
from officeresolver.pipeline.merge_logging import MergeLogger
from officeresolver.pipeline.models import (
    SECTION_NAMES,
    Added,
    AnalysisDocument,
    AnalysisInput,
    Blocked,
    MergeHistoryEntry,
    MergeOutcome,
    Office,
    OfficeMetadata,
    Project,
    Updated,
)
from officeresolver.pipeline.project_matcher import ProjectMatcher

UPDATED_REASON = "exact match - updated existing project"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def merge_notes(existing: str, incoming: str, separator: str) -> str:
    """Concatenate analysis notes across runs."""
    if not existing:
        return incoming or ""
    if not incoming:
        return existing
    return f"{existing}{separator}{incoming}"


class MergeEngine:
    """Builds merged offices and analyses from matcher verdicts."""

    def __init__(
        self,
        config: Optional[MergeConfig] = None,
        merge_logger: Optional[MergeLogger] = None,
    ):
        self.config = config or DEFAULT_MERGE_CONFIG
        self.merge_logger = merge_logger or MergeLogger("engine")
        self.project_matcher = ProjectMatcher(self.config, self.merge_logger)

    # Offices

    def new_office(self, incoming: Office, now: Optional[datetime] = None) -> Office:
        """First sighting of an office: version 1, not yet in the database."""
        now = now or utc_now()
        return dataclasses.replace(
            incoming,
            metadata=OfficeMetadata(
                scraped_at=now,
                last_updated=now,
                data_version=1,
                custom_data_exists=incoming.custom_data is not None,
            ),
            existed_in_database=False,
            extra=dict(incoming.extra),
        )

    def merge_office(
        self, existing: Office, incoming: Office, now: Optional[datetime] = None
    ) -> Tuple[Office, List[FieldChange]]:
        """
        Merge a re-scraped office into its existing record.

        Scraped fields take the incoming value when it is present, the place
        id and unique id keep their first assignment, and the user-owned
        ``modified_name`` and ``custom_data`` always come from ``existing``.

        Args:
            existing: Office on file
            incoming: Freshly scraped observation of the same office
            now: Timestamp for the metadata (defaults to the current UTC time)

        Returns:
            Tuple of (merged office, list of fields whose value changed)
        """
        now = now or utc_now()
        resolved, changes = resolve_fields(existing, incoming, OFFICE_FIELD_RULES)
        extra, extra_changes = merge_extra(existing.extra, incoming.extra)
        changes = changes + extra_changes

        previous = existing.metadata
        metadata = dataclasses.replace(
            previous,
            scraped_at=now,
            custom_data_exists=resolved["custom_data"] is not None,
        )
        if self.config.bump_on_every_rescrape or changes:
            metadata.data_version = previous.data_version + 1
            metadata.last_updated = now

        merged = Office(
            **resolved,
            metadata=metadata,
            existed_in_database=True,
            extra=extra,
        )
        return merged, changes

    # Projects

    def _updated_project(self, existing: Project, incoming: Project) -> Project:
        resolved, _ = resolve_fields(existing, incoming, PROJECT_FIELD_RULES)
        extra, _ = merge_extra(existing.extra, incoming.extra)
        status = (
            incoming.status.strip()
            or existing.status.strip()
            or self.config.default_project_status
        )
        return Project(**resolved, status=status, extra=extra)

    def merge_projects(
        self, existing_projects: Sequence[Project], incoming_projects: Sequence[Project]
    ) -> Tuple[List[Project], List[MergeOutcome]]:
        """
        Fold incoming projects into an office's project list, in order.

        Each incoming project is matched against the list as merged so far,
        so two near-identical projects in one batch collapse into one.

        Args:
            existing_projects: Projects already on file
            incoming_projects: Projects from the new analysis

        Returns:
            Tuple of (merged project list, one outcome per classified project)
        """
        merged = list(existing_projects)
        outcomes: List[MergeOutcome] = []

        for incoming in incoming_projects:
            if not incoming.name.strip():
                self.merge_logger.logger.info(
                    "Skipping project without name",
                    extra={"event_type": "project_skipped"},
                )
                continue

            verdict = self.project_matcher.find_duplicate(merged, incoming)

            if verdict.is_duplicate and verdict.exact_match:
                existing = merged[verdict.index]
                previous = {
                    "status": existing.status,
                    "description": existing.description,
                    "size": existing.size,
                    "location": existing.location,
                    "use_case": existing.use_case,
                }
                merged[verdict.index] = self._updated_project(existing, incoming)
                outcome = Updated(incoming, UPDATED_REASON, previous=previous)
            elif verdict.is_duplicate:
                outcome = Blocked(
                    incoming, verdict.reason, similar_to=merged[verdict.index].name
                )
            else:
                added = dataclasses.replace(
                    incoming,
                    status=incoming.status.strip() or self.config.default_project_status,
                    extra=dict(incoming.extra),
                )
                merged.append(added)
                outcome = Added(added, verdict.reason)

            outcomes.append(outcome)
            self.merge_logger.log_project_outcome(
                outcome.outcome_type.value,
                incoming.name,
                verdict.reason,
                rule=verdict.rule.value,
                overall_score=round(verdict.score, 4),
            )

        return merged, outcomes

    # Sections

    def merge_section(self, existing, incoming):
        """Union array fields case-insensitively, overwrite scalars when present."""
        resolved, changes = resolve_fields(existing, incoming, section_rules(existing))
        return type(existing)(**resolved), changes

    # Analyses

    def merge_analysis(
        self,
        existing: Optional[AnalysisDocument],
        incoming: AnalysisInput,
        analysis_id: str,
        now: Optional[datetime] = None,
    ) -> Tuple[AnalysisDocument, FeedbackReport]:
        """
        Merge a new analysis into an office's analysis document.

        Args:
            existing: Document on file, or None on the first merge
            incoming: Freshly extracted analysis
            analysis_id: Identifier of the incoming analysis
            now: Timestamp for the merge history entry

        Returns:
            Tuple of (merged document, feedback report)
        """
        now = now or utc_now()
        is_new = existing is None
        base = existing if existing is not None else AnalysisDocument()
        aggregator = FeedbackAggregator(is_new_analysis=is_new)

        projects, outcomes = self.merge_projects(base.projects, incoming.projects)
        for outcome in outcomes:
            aggregator.record(outcome)

        sections = {}
        for name in SECTION_NAMES:
            incoming_section = getattr(incoming, name)
            sections[name], changes = self.merge_section(
                getattr(base, name), incoming_section
            )
            aggregator.mark_section(name, incoming_section)
            self.merge_logger.log_section_merge(
                name,
                not incoming_section.is_empty(),
                [change.field for change in changes],
            )

        report = aggregator.build()
        entry = MergeHistoryEntry(
            analysis_id=analysis_id,
            merged_at=now,
            new_projects_count=len(incoming.projects),
            total_projects_after_merge=len(projects),
            feedback=report.to_dict(),
        )

        merged = AnalysisDocument(
            projects=projects,
            confidence=max(base.confidence or 0.0, incoming.confidence or 0.0),
            analysis_notes=merge_notes(
                base.analysis_notes, incoming.analysis_notes, self.config.notes_separator
            ),
            original_language=incoming.original_language or base.original_language,
            translated_text=incoming.translated_text or base.translated_text,
            merge_history=list(base.merge_history) + [entry],
            **sections,
        )
        return merged, report
