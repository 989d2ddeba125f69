# -*- coding: utf-8 -*-
"""
Reconciliation Pipeline - Duplicate Reconciler

End-to-end orchestration of grouping, classification, resolution and
diff collection over one export.

Pipeline Stages:
    GROUP:     Partition records by idempotency key
    CLASSIFY:  Map each duplicate group onto a DupeType
    RESOLVE:   Map each DupeType onto a Resolution
    DIFF:      Attach field and property diffs to groups routed to review
    SUMMARIZE: Aggregate per-type counts and diff field sets

Groups are independent, so with ``max_workers > 1`` they are processed
on a thread pool. Results are always reported in first-seen key order.

Modes:
    analyze: Produce a ReconciliationReport; never raises for groups that
             need review.
    clean:   Produce the de-duplicated record set. Fail-closed: raises
             UnresolvedDuplicatesError when any group resolved to Error.

Example:
    >>> from analyticsmigrate.duplicate_reconciler.reconciliation_pipeline import ReconciliationPipeline
    >>> pipeline = ReconciliationPipeline()
    >>> report = pipeline.analyze(records)
    >>> print(report.summary.dupe_type_counts)

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from analyticsmigrate.duplicate_reconciler.config import (
    DuplicateReconcilerConfig,
    get_config,
)
from analyticsmigrate.duplicate_reconciler.diff_engine import (
    compute_provenance,
    diff_event_properties,
    diff_records,
    renamed_property_keys,
)
from analyticsmigrate.duplicate_reconciler.dupe_classifier import DupeClassifier
from analyticsmigrate.duplicate_reconciler.grouping import (
    GroupingResult,
    group_by_idempotency_key,
)
from analyticsmigrate.duplicate_reconciler.metrics import (
    inc_errors,
    inc_runs,
    observe_duration,
    set_active_runs,
)
from analyticsmigrate.duplicate_reconciler.models import (
    VOLATILE_FIELDS,
    CleanResult,
    DuplicateGroup,
    EventRecord,
    GroupAnalysis,
    ReconciliationReport,
    ReconciliationSummary,
)
from analyticsmigrate.duplicate_reconciler.resolver import DupeResolver
from analyticsmigrate.exceptions import UnresolvedDuplicatesError

logger = logging.getLogger(__name__)

__all__ = [
    "ReconciliationPipeline",
]

_active_runs = 0
_active_runs_lock = threading.Lock()


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _track_active(delta: int) -> None:
    global _active_runs
    with _active_runs_lock:
        _active_runs += delta
        set_active_runs(_active_runs)


# =============================================================================
# ReconciliationPipeline
# =============================================================================


class ReconciliationPipeline:
    """Duplicate reconciliation pipeline.

    Attributes:
        config: Active reconciler configuration.
        classifier: DupeClassifier engine instance.
        resolver: DupeResolver engine instance.

    Example:
        >>> pipeline = ReconciliationPipeline()
        >>> result = pipeline.clean(records)
        >>> result.total_output_records
    """

    def __init__(
        self,
        config: Optional[DuplicateReconcilerConfig] = None,
        classifier: Optional[DupeClassifier] = None,
        resolver: Optional[DupeResolver] = None,
    ) -> None:
        """Initialize ReconciliationPipeline with its engines."""
        self.config = config or get_config()
        self.classifier = classifier or DupeClassifier(self.config)
        self.resolver = resolver or DupeResolver(self.config)

        self._stats_lock = threading.Lock()
        self._invocations: int = 0
        self._successes: int = 0
        self._failures: int = 0
        self._total_duration_ms: float = 0.0
        self._last_invoked_at: Optional[datetime] = None

        logger.info(
            "ReconciliationPipeline initialized (max_workers=%d, "
            "missing_key_policy=%s)",
            self.config.max_workers, self.config.missing_key_policy,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(self, records: Iterable[EventRecord]) -> ReconciliationReport:
        """Classify and resolve every duplicate group of an export.

        Args:
            records: Export records in input order.

        Returns:
            ReconciliationReport with one GroupAnalysis per duplicate key.

        Raises:
            MissingIdempotencyKeyError: Under the ``fail`` policy.
            InvariantViolationError: If a group contradicts itself.
        """
        _, report = self._run("analyze", records)
        return report

    def clean(self, records: Iterable[EventRecord]) -> CleanResult:
        """Produce the de-duplicated export.

        Output is every record whose key appeared once, followed by the
        records emitted by each group's resolution (first-seen key order).

        Raises:
            UnresolvedDuplicatesError: If any group resolved to Error.
        """
        grouping, report = self._run("clean", records)

        unresolved = report.unresolved()
        if unresolved:
            counts: Dict[str, int] = {}
            for analysis in unresolved:
                tag = analysis.dupe_type.tag
                counts[tag] = counts.get(tag, 0) + 1
            inc_errors("unresolved")
            inc_runs("clean", "failed")
            logger.error(
                "Refusing to clean: %d duplicate groups need manual review (%s)",
                len(unresolved), counts,
            )
            raise UnresolvedDuplicatesError(
                message=(
                    f"{len(unresolved)} duplicate groups require manual review"
                ),
                idempotency_keys=[a.idempotency_key for a in unresolved],
                dupe_type_counts=counts,
            )

        resolved: List[EventRecord] = []
        for analysis in report.analyses:
            resolved.extend(analysis.resolution.records)

        result = CleanResult(
            non_duplicate_records=grouping.singletons(),
            resolved_records=resolved,
            report=report,
        )
        inc_runs("clean", "completed")
        logger.info(
            "Clean run: %d non-duplicate + %d resolved = %d output records",
            len(result.non_duplicate_records), len(resolved),
            result.total_output_records,
        )
        return result

    def analyze_group(self, group: DuplicateGroup) -> GroupAnalysis:
        """Classify, resolve and diff one duplicate group."""
        dupe_type = self.classifier.classify(group)
        resolution = self.resolver.resolve(dupe_type)

        field_differences = {}
        property_differences = {}
        renamed: Tuple[str, ...] = ()
        first, second = group.records[0], group.records[1]
        if not resolution.is_resolved:
            field_differences = diff_records(first, second)
            property_differences = diff_event_properties(first, second)
            renamed = renamed_property_keys(
                first.event_properties, second.event_properties,
            ) or ()

        provenance = compute_provenance(
            "analyze_group",
            {
                "idempotency_key": group.idempotency_key,
                "records": [r.to_export_dict() for r in group.records],
                "dupe_type": dupe_type.tag,
                "sub_types": dupe_type.sub_type_tags,
                "resolution": resolution.kind.value,
            },
        )

        return GroupAnalysis(
            idempotency_key=group.idempotency_key,
            duplicate_count=group.size,
            dupe_type=dupe_type,
            resolution=resolution,
            records=group.records,
            field_differences=field_differences,
            event_properties_differences=property_differences,
            renamed_property_keys=renamed,
            provenance_hash=provenance,
        )

    # ------------------------------------------------------------------
    # Public API - Statistics
    # ------------------------------------------------------------------

    def get_pipeline_stats(self) -> Dict[str, Any]:
        """Return operational statistics for the pipeline and its engines."""
        with self._stats_lock:
            avg_ms = 0.0
            if self._invocations > 0:
                avg_ms = self._total_duration_ms / self._invocations
            return {
                "pipeline": {
                    "invocations": self._invocations,
                    "successes": self._successes,
                    "failures": self._failures,
                    "total_duration_ms": round(self._total_duration_ms, 3),
                    "avg_duration_ms": round(avg_ms, 3),
                    "last_invoked_at": (
                        self._last_invoked_at.isoformat()
                        if self._last_invoked_at else None
                    ),
                },
                "engines": {
                    "classifier": self.classifier.get_statistics(),
                    "resolver": self.resolver.get_statistics(),
                },
            }

    def reset_statistics(self) -> None:
        """Reset pipeline and engine statistics."""
        with self._stats_lock:
            self._invocations = 0
            self._successes = 0
            self._failures = 0
            self._total_duration_ms = 0.0
            self._last_invoked_at = None
        self.classifier.reset_statistics()
        self.resolver.reset_statistics()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _run(
        self,
        mode: str,
        records: Iterable[EventRecord],
    ) -> Tuple[GroupingResult, ReconciliationReport]:
        start_time = time.monotonic()
        _track_active(1)
        try:
            grouping = group_by_idempotency_key(
                records, self.config.missing_key_policy,
            )
            analyses = self._analyze_groups(grouping.duplicate_groups())
            summary = self._summarize(grouping, analyses)
            report = ReconciliationReport(summary=summary, analyses=analyses)
        except Exception as e:
            self._record_failure(time.monotonic() - start_time)
            inc_runs(mode, "failed")
            logger.error("Reconciliation %s run failed: %s", mode, e)
            raise
        finally:
            _track_active(-1)

        elapsed = time.monotonic() - start_time
        self._record_success(elapsed)
        observe_duration(mode, elapsed)
        if mode == "analyze":
            inc_runs(mode, "completed")
        logger.info(
            "Reconciliation %s: %d events, %d keys, %d duplicate groups, "
            "%d unresolved, types=%s",
            mode, summary.total_events, summary.unique_idempotency_keys,
            summary.duplicate_idempotency_keys_count,
            summary.unresolved_count, summary.dupe_type_counts,
        )
        return grouping, report

    def _analyze_groups(self, groups: List[DuplicateGroup]) -> List[GroupAnalysis]:
        if self.config.max_workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                return list(pool.map(self.analyze_group, groups))
        return [self.analyze_group(group) for group in groups]

    def _summarize(
        self,
        grouping: GroupingResult,
        analyses: List[GroupAnalysis],
    ) -> ReconciliationSummary:
        dupe_type_counts: Dict[str, int] = {}
        resolution_counts: Dict[str, int] = {}
        keys_by_type: Dict[str, List[str]] = {}
        diff_fields: Set[str] = set()
        property_diff_fields: Set[str] = set()

        for analysis in analyses:
            tag = analysis.dupe_type.tag
            dupe_type_counts[tag] = dupe_type_counts.get(tag, 0) + 1
            keys_by_type.setdefault(tag, []).append(analysis.idempotency_key)
            kind = analysis.resolution.kind.value
            resolution_counts[kind] = resolution_counts.get(kind, 0) + 1
            diff_fields.update(analysis.field_differences)
            property_diff_fields.update(analysis.event_properties_differences)

        return ReconciliationSummary(
            total_events=grouping.total_records,
            unique_idempotency_keys=grouping.unique_keys,
            duplicate_idempotency_keys_count=len(analyses),
            skipped_missing_key=len(grouping.skipped),
            dupe_type_counts=dupe_type_counts,
            resolution_counts=resolution_counts,
            unresolved_count=sum(
                1 for a in analyses if not a.resolution.is_resolved
            ),
            duplicate_idempotency_keys=[a.idempotency_key for a in analyses],
            keys_by_dupe_type=keys_by_type,
            all_diff_fields=sorted(diff_fields - VOLATILE_FIELDS),
            all_event_properties_diff_fields=sorted(property_diff_fields),
        )

    def _record_success(self, elapsed_seconds: float) -> None:
        ms = elapsed_seconds * 1000.0
        with self._stats_lock:
            self._invocations += 1
            self._successes += 1
            self._total_duration_ms += ms
            self._last_invoked_at = _utcnow()

    def _record_failure(self, elapsed_seconds: float) -> None:
        ms = elapsed_seconds * 1000.0
        with self._stats_lock:
            self._invocations += 1
            self._failures += 1
            self._total_duration_ms += ms
            self._last_invoked_at = _utcnow()
