"""
Entry points of the resolution engine.

The caller fetches existing records, calls one of these functions and
persists the merged snapshot it gets back. Nothing here performs I/O.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from officeresolver.config.merge_config import DEFAULT_MERGE_CONFIG, MergeConfig
from officeresolver.pipeline.feedback import FeedbackReport, OfficeRunSummary
from officeresolver.pipeline.merge_engine import MergeEngine, utc_now
from officeresolver.pipeline.merge_logging import (
    MergeLogger,
    log_merge_performance,
    merge_operation,
)
from officeresolver.pipeline.models import AnalysisDocument, AnalysisInput, Office
from officeresolver.pipeline.office_matcher import OfficeMatcher, OfficeMatchRule

merge_logger = MergeLogger("resolver")


@dataclass
class OfficeResolution:
    """Result of one office resolution run."""

    merged: List[Office]
    statuses: List[Dict[str, bool]]
    summary: OfficeRunSummary


class OfficeResolver:
    """Classifies and merges one batch of re-scraped offices."""

    def __init__(
        self,
        config: Optional[MergeConfig] = None,
        merge_logger: Optional[MergeLogger] = None,
    ):
        self.config = config or DEFAULT_MERGE_CONFIG
        self.merge_logger = merge_logger or MergeLogger("offices")
        self.engine = MergeEngine(self.config, self.merge_logger)

    def resolve(
        self,
        existing: Sequence[Office],
        incoming: Sequence[Office],
        now: Optional[datetime] = None,
    ) -> OfficeResolution:
        """
        Match every incoming office against the existing snapshot and merge it.

        Output order follows ``incoming``; each incoming office yields exactly
        one merged office and one status entry.
        """
        now = now or utc_now()
        matcher = OfficeMatcher(existing)
        merged: List[Office] = []
        statuses: List[Dict[str, bool]] = []
        summary = OfficeRunSummary(total=len(incoming))

        with merge_operation(
            self.merge_logger,
            "resolve_offices",
            existing_count=len(existing),
            incoming_count=len(incoming),
        ):
            for office, match in zip(incoming, matcher.match_all(incoming)):
                if match.is_duplicate:
                    result, changes = self.engine.merge_office(match.existing, office, now)
                    summary.duplicates += 1
                    if match.rule == OfficeMatchRule.PLACE_ID:
                        summary.matched_by_place_id += 1
                    else:
                        summary.matched_by_name_address += 1
                    details = {"changed_fields": [change.field for change in changes]}
                else:
                    result = self.engine.new_office(office, now)
                    summary.new += 1
                    details = {}

                merged.append(result)
                statuses.append({"existedInDatabase": match.is_duplicate})
                self.merge_logger.log_office_resolved(
                    office.name,
                    match.is_duplicate,
                    match.rule.value,
                    data_version=result.metadata.data_version,
                    **details,
                )

            self.merge_logger.logger.info(
                f"Resolved {summary.total} offices: {summary.new} new, "
                f"{summary.duplicates} duplicates",
                extra={"event_type": "office_run_summary", **summary.to_dict()},
            )

        return OfficeResolution(merged, statuses, summary)


@log_merge_performance(merge_logger)
def resolve_offices(
    existing: Sequence[Office],
    incoming: Sequence[Office],
    now: Optional[datetime] = None,
    config: Optional[MergeConfig] = None,
) -> Tuple[List[Office], List[Dict[str, bool]]]:
    """
    Resolve re-scraped offices against the offices on file.

    Args:
        existing: Offices already stored for this tenant
        incoming: Freshly scraped offices
        now: Timestamp stamped into the metadata
        config: Merge configuration

    Returns:
        Tuple of (merged offices, per-record ``{"existedInDatabase": bool}``)
    """
    resolution = OfficeResolver(config, merge_logger).resolve(existing, incoming, now)
    return resolution.merged, resolution.statuses


def resolve_offices_with_lookup(
    fetch_existing: Callable[[], Sequence[Office]],
    incoming: Sequence[Office],
    now: Optional[datetime] = None,
    config: Optional[MergeConfig] = None,
) -> Tuple[List[Office], List[Dict[str, bool]]]:
    """
    Resolve offices, fetching the existing snapshot through ``fetch_existing``.

    A failing lookup never blocks a scrape: the error is logged and the run
    continues as if nothing were on file.
    """
    try:
        existing = list(fetch_existing())
    except Exception as e:
        merge_logger.logger.error(
            f"Failed to fetch existing offices, treating all as new: {e}",
            extra={"event_type": "lookup_failed", "incoming_count": len(incoming)},
        )
        existing = []

    return resolve_offices(existing, incoming, now=now, config=config)


@log_merge_performance(merge_logger)
def resolve_and_merge_analysis(
    existing: Optional[AnalysisDocument],
    incoming: AnalysisInput,
    analysis_id: str,
    now: Optional[datetime] = None,
    config: Optional[MergeConfig] = None,
) -> Tuple[AnalysisDocument, FeedbackReport]:
    """
    Merge a new analysis into an office's analysis document.

    Args:
        existing: Document on file, or None when the office has none yet
        incoming: Freshly extracted analysis
        analysis_id: Identifier of the incoming analysis
        now: Timestamp for the merge history entry
        config: Merge configuration

    Returns:
        Tuple of (merged document, feedback report)
    """
    engine = MergeEngine(config, merge_logger)
    with merge_operation(
        merge_logger,
        "merge_analysis",
        analysis_id=analysis_id,
        is_new_analysis=existing is None,
        incoming_projects=len(incoming.projects),
    ):
        merged, report = engine.merge_analysis(existing, incoming, analysis_id, now)
        merge_logger.logger.info(
            f"Merged analysis {analysis_id}",
            extra={"event_type": "analysis_merged", **report.summary},
        )
    return merged, report


@dataclass
class AnalysisJob:
    """One office's analysis merge, as submitted to the parallel runner."""

    office_id: str
    existing: Optional[AnalysisDocument]
    incoming: AnalysisInput
    analysis_id: str


@dataclass
class AnalysisJobResult:
    office_id: str
    merged: Optional[AnalysisDocument] = None
    feedback: Optional[FeedbackReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"officeId": self.office_id}
        if self.ok:
            data["feedback"] = self.feedback.to_dict()
        else:
            data["error"] = self.error
        return data


def resolve_analyses_parallel(
    jobs: Sequence[AnalysisJob],
    max_workers: Optional[int] = None,
    now: Optional[datetime] = None,
    config: Optional[MergeConfig] = None,
) -> Dict[str, AnalysisJobResult]:
    """
    Run analysis merges for many offices on a thread pool.

    Offices share no state, so each job runs independently; within one office
    the merge stays sequential. A failing job is recorded in its result and
    does not affect the others.

    Returns:
        Results keyed by office id
    """
    config = config or DEFAULT_MERGE_CONFIG
    max_workers = max_workers or config.max_workers
    results: Dict[str, AnalysisJobResult] = {}
    processed = 0
    errors = 0

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_job = {
            executor.submit(
                resolve_and_merge_analysis,
                job.existing,
                job.incoming,
                job.analysis_id,
                now,
                config,
            ): job
            for job in jobs
        }

        for future in as_completed(future_to_job):
            job = future_to_job[future]
            try:
                merged, feedback = future.result()
                results[job.office_id] = AnalysisJobResult(job.office_id, merged, feedback)
            except Exception as e:
                errors += 1
                merge_logger.logger.error(
                    f"Error merging analysis for office {job.office_id}: {e}",
                    extra={"event_type": "analysis_failed", "office_id": job.office_id},
                )
                results[job.office_id] = AnalysisJobResult(job.office_id, error=str(e))
            processed += 1
            merge_logger.log_batch_progress("analyses", processed, len(future_to_job), errors)

    return results
