"""
Structured logging for resolution and merge operations.

Every matching decision and merge outcome is written as one event record
with an ``event_type`` field, so a run can be reconstructed from its log.
Operations are timed and aggregated per operation name.
"""

import threading
import time
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, List, Optional

from officeresolver.utils.logging import get_logger


def _empty_stats() -> Dict[str, Any]:
    return {
        "count": 0,
        "success_count": 0,
        "failure_count": 0,
        "total_duration": 0.0,
        "min_duration": None,
        "max_duration": 0.0,
    }


@dataclass
class TrackedOperation:
    id: str
    operation: str
    started: float = field(default_factory=time.perf_counter)
    context: Dict[str, Any] = field(default_factory=dict)

    def elapsed(self) -> float:
        return time.perf_counter() - self.started


class MergeLogger:
    """Logger for resolution runs that records structured events and timings."""

    def __init__(self, name: str = "merge", level: Optional[str] = None):
        self.name = name
        self.metrics: Dict[str, Dict[str, Any]] = defaultdict(_empty_stats)
        self.operation_stack: List[TrackedOperation] = []
        self.operations: Dict[str, TrackedOperation] = {}
        self._lock = threading.Lock()

        self.logger = get_logger(f"officeresolver.merge.{name}", level=level)

    def _event(self, level: str, message: str, event_type: str, **fields):
        getattr(self.logger, level)(message, extra={"event_type": event_type, **fields})

    def start_operation(self, operation: str, **context) -> str:
        """
        Start timing an operation.

        Args:
            operation: Operation name, e.g. "resolve_offices" or "merge_analysis"
            **context: Fields repeated on the start and end records

        Returns:
            Id to pass to ``end_operation``
        """
        operation_id = f"{operation}_{uuid.uuid4().hex[:12]}"
        tracked = TrackedOperation(operation_id, operation, context=context)
        with self._lock:
            self.operation_stack.append(tracked)
            self.operations[operation_id] = tracked

        self.logger.info(
            f"Started {operation}",
            extra={"operation_id": operation_id, "operation_type": operation, **context},
        )
        return operation_id

    def end_operation(self, operation_id: str, status: str = "success", **result_data):
        """Stop timing ``operation_id`` and fold its duration into the metrics."""
        with self._lock:
            tracked = self.operations.pop(operation_id, None)
            if tracked is not None:
                self.operation_stack.remove(tracked)
        if tracked is None:
            self.logger.warning(f"Operation {operation_id} is not running")
            return

        duration = tracked.elapsed()
        record = {
            "operation_id": operation_id,
            "operation_type": tracked.operation,
            "status": status,
            "duration_seconds": round(duration, 3),
            **tracked.context,
            **result_data,
        }
        if status == "success":
            self.logger.info(f"Finished {tracked.operation} in {duration:.3f}s", extra=record)
        else:
            self.logger.error(f"{tracked.operation} failed after {duration:.3f}s", extra=record)

        with self._lock:
            stats = self.metrics[tracked.operation]
            stats["count"] += 1
            stats["success_count" if status == "success" else "failure_count"] += 1
            stats["total_duration"] += duration
            stats["max_duration"] = max(stats["max_duration"], duration)
            stats["min_duration"] = (
                duration
                if stats["min_duration"] is None
                else min(stats["min_duration"], duration)
            )

    def log_office_resolved(self, office_name: str, existed: bool, match_rule: str, **details):
        self._event(
            "info",
            f"Office {'matched' if existed else 'new'}: {office_name}",
            "office_resolved",
            office_name=office_name,
            existed_in_database=existed,
            match_rule=match_rule,
            **details,
        )

    def log_match_decision(
        self,
        project_name: str,
        candidate_name: str,
        rule: str,
        score: float,
        decision: str,
        **details,
    ):
        """A project rule either confirmed by or vetoed by the factor score."""
        self._event(
            "debug",
            f"{rule}: {decision} for {project_name!r} against {candidate_name!r}",
            "match_decision",
            project_name=project_name,
            candidate_name=candidate_name,
            rule=rule,
            overall_score=round(score, 4),
            decision=decision,
            **details,
        )

    def log_project_outcome(self, outcome: str, project_name: str, reason: str = "", **details):
        self._event(
            "warning" if outcome == "blocked" else "info",
            f"Project {outcome}: {project_name}",
            "project_outcome",
            outcome=outcome,
            project_name=project_name,
            reason=reason,
            **details,
        )

    def log_section_merge(self, section: str, updated: bool, changed_fields: list):
        self._event(
            "debug",
            f"Section {section} merged",
            "section_merge",
            section=section,
            updated=updated,
            changed_fields=changed_fields,
        )

    def log_batch_progress(
        self, batch_id: str, processed: int, total: int, errors: int = 0, **stats
    ):
        percentage = processed / total * 100 if total else 0.0
        self._event(
            "info",
            f"{batch_id}: {processed}/{total} done ({percentage:.1f}%), {errors} failed",
            "batch_progress",
            batch_id=batch_id,
            processed=processed,
            total=total,
            progress_percentage=percentage,
            errors=errors,
            **stats,
        )

    def log_performance_metrics(
        self, operation_type: str, duration_seconds: float, records_processed: int
    ):
        rate = records_processed / duration_seconds if duration_seconds > 0 else 0
        self._event(
            "info",
            f"{operation_type} took {duration_seconds:.2f}s for {records_processed} records",
            "performance_metrics",
            operation_type=operation_type,
            duration_seconds=duration_seconds,
            records_processed=records_processed,
            records_per_second=rate,
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        with self._lock:
            snapshot = {name: dict(stats) for name, stats in self.metrics.items()}
        for stats in snapshot.values():
            stats["average_duration"] = (
                stats["total_duration"] / stats["count"] if stats["count"] else 0.0
            )
        return {
            "operations": snapshot,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


@contextmanager
def merge_operation(logger: MergeLogger, operation: str, **context):
    """
    Time the enclosed block as one operation; failures are logged and re-raised.

    Usage:
        with merge_operation(logger, "merge_analysis", office_id="B123S") as op_id:
            ...
    """
    operation_id = logger.start_operation(operation, **context)
    try:
        yield operation_id
    except Exception as e:
        logger.end_operation(operation_id, status="error", error=str(e))
        raise
    logger.end_operation(operation_id, status="success")


def _count_records(result: Any) -> int:
    # Resolver entry points return (merged, ...) tuples
    if isinstance(result, tuple) and result:
        result = result[0]
    return len(result) if isinstance(result, list) else 1


def log_merge_performance(logger: MergeLogger):
    """Decorator logging duration and record count of a resolver entry point."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.log_performance_metrics(
                    operation_type=f"{func.__name__}_failed",
                    duration_seconds=time.perf_counter() - started,
                    records_processed=0,
                )
                raise
            logger.log_performance_metrics(
                operation_type=func.__name__,
                duration_seconds=time.perf_counter() - started,
                records_processed=_count_records(result),
            )
            return result

        return wrapper

    return decorator
