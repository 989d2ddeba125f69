# -*- coding: utf-8 -*-
"""
Duplicate Reconciler Service Setup

Provides ``configure_duplicate_reconciler()`` which wires up the
duplicate reconciliation SDK (export parser, grouping, classifier,
resolver, snapshot comparison, filters, report writer, pipeline,
provenance tracker) behind the ``DuplicateReconcilerService`` facade,
and ``get_duplicate_reconciler()`` for programmatic access.

Usage:
    >>> from analyticsmigrate.duplicate_reconciler.setup import configure_duplicate_reconciler
    >>> service = configure_duplicate_reconciler()
    >>> report = service.analyze_directory("exports/", "analysis/")

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from analyticsmigrate.duplicate_reconciler.config import (
    DuplicateReconcilerConfig,
    get_config,
)
from analyticsmigrate.duplicate_reconciler.event_filters import (
    ExportEventFilter,
    filter_records,
)
from analyticsmigrate.duplicate_reconciler.export_parser import (
    parse_export_directory,
)
from analyticsmigrate.duplicate_reconciler.metrics import (
    PROMETHEUS_AVAILABLE,
    inc_runs,
    observe_duration,
)
from analyticsmigrate.duplicate_reconciler.models import (
    CleanResult,
    EventRecord,
    ReconciliationReport,
    SnapshotComparison,
)
from analyticsmigrate.duplicate_reconciler.reconciliation_pipeline import (
    ReconciliationPipeline,
)
from analyticsmigrate.duplicate_reconciler.report_writer import (
    write_analysis,
    write_clean_output,
    write_filter_output,
    write_snapshot_comparison,
)
from analyticsmigrate.duplicate_reconciler.snapshot_comparison import (
    compare_snapshots,
)
from analyticsmigrate.exceptions import UnresolvedDuplicatesError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# ===================================================================
# Lightweight Pydantic response models used by the facade
# ===================================================================


class StatsResponse(BaseModel):
    """Aggregate statistics for the duplicate reconciler service.

    Attributes:
        total_runs: Total runs processed (all modes).
        completed_runs: Runs that completed.
        failed_runs: Runs that raised.
        total_records_processed: Records fed into analyze/clean runs.
        total_duplicate_groups: Duplicate groups classified.
        total_resolved_groups: Groups auto-resolved.
        total_unresolved_groups: Groups routed to manual review.
        total_comparisons: Snapshot comparisons run.
        total_filter_runs: Filter runs.
        active_runs: Runs currently executing.
        provenance_entries: Total provenance entries recorded.
    """
    total_runs: int = Field(default=0)
    completed_runs: int = Field(default=0)
    failed_runs: int = Field(default=0)
    total_records_processed: int = Field(default=0)
    total_duplicate_groups: int = Field(default=0)
    total_resolved_groups: int = Field(default=0)
    total_unresolved_groups: int = Field(default=0)
    total_comparisons: int = Field(default=0)
    total_filter_runs: int = Field(default=0)
    active_runs: int = Field(default=0)
    provenance_entries: int = Field(default=0)


# ===================================================================
# Provenance helper
# ===================================================================


class _ProvenanceTracker:
    """Minimal provenance tracker recording SHA-256 audit entries."""

    def __init__(self) -> None:
        self._entries: List[Dict[str, Any]] = []
        self._lock = threading.Lock()
        self.entry_count: int = 0

    def record(self, entity_type: str, action: str, data_hash: str) -> str:
        """Record a provenance entry and return its hash.

        Args:
            entity_type: Type of entity (report, clean_result, comparison,
                filter_result).
            action: Action performed (analyze, clean, compare, filter).
            data_hash: SHA-256 hash of associated data.

        Returns:
            SHA-256 hash of the provenance entry itself.
        """
        entry = {
            "entity_type": entity_type,
            "action": action,
            "data_hash": data_hash,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        entry_hash = hashlib.sha256(
            json.dumps(entry, sort_keys=True, default=str).encode()
        ).hexdigest()
        entry["entry_hash"] = entry_hash
        with self._lock:
            self._entries.append(entry)
            self.entry_count += 1
        return entry_hash

    @property
    def entries(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._entries)


# ===================================================================
# Helper utilities
# ===================================================================


_singleton_lock = threading.Lock()
_singleton_instance: Optional["DuplicateReconcilerService"] = None


def _compute_hash(data: Any) -> str:
    """Compute a deterministic SHA-256 hash of arbitrary data."""
    if hasattr(data, "model_dump"):
        serializable = data.model_dump(mode="json")
    else:
        serializable = data
    raw = json.dumps(serializable, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode()).hexdigest()


# ===================================================================
# DuplicateReconcilerService facade
# ===================================================================


class DuplicateReconcilerService:
    """Unified facade over the duplicate reconciliation SDK.

    Each operation records provenance and updates self-monitoring
    statistics. Directory helpers combine parsing, the operation and the
    report writer.

    Attributes:
        config: DuplicateReconcilerConfig instance.
        pipeline: ReconciliationPipeline instance.
        provenance: _ProvenanceTracker instance for SHA-256 audit trails.

    Example:
        >>> service = DuplicateReconcilerService()
        >>> report = service.analyze(records)
        >>> print(report.summary.dupe_type_counts)
    """

    def __init__(
        self,
        config: Optional[DuplicateReconcilerConfig] = None,
    ) -> None:
        """Initialize the facade.

        Args:
            config: Optional configuration. Uses global config if None.
        """
        self.config = config or get_config()
        self.pipeline = ReconciliationPipeline(self.config)
        self.provenance = _ProvenanceTracker()

        self._stats = StatsResponse()
        self._stats_lock = threading.Lock()
        self._started = False
        logger.info("DuplicateReconcilerService facade created")

    # ------------------------------------------------------------------
    # In-memory operations
    # ------------------------------------------------------------------

    def analyze(self, records: Iterable[EventRecord]) -> ReconciliationReport:
        """Classify and resolve every duplicate group."""
        self._begin()
        try:
            report = self.pipeline.analyze(records)
        except Exception:
            self._finish(failed=True)
            raise

        summary = report.summary
        with self._stats_lock:
            self._stats.total_records_processed += summary.total_events
            self._stats.total_duplicate_groups += summary.duplicate_idempotency_keys_count
            self._stats.total_resolved_groups += (
                summary.duplicate_idempotency_keys_count - summary.unresolved_count
            )
            self._stats.total_unresolved_groups += summary.unresolved_count
        self.provenance.record(
            "report", "analyze",
            _compute_hash([a.provenance_hash for a in report.analyses]),
        )
        self._finish(failed=False)
        return report

    def clean(self, records: Iterable[EventRecord]) -> CleanResult:
        """Produce the de-duplicated export (fail-closed)."""
        self._begin()
        try:
            result = self.pipeline.clean(records)
        except UnresolvedDuplicatesError as e:
            with self._stats_lock:
                self._stats.total_unresolved_groups += len(e.idempotency_keys)
            self._finish(failed=True)
            raise
        except Exception:
            self._finish(failed=True)
            raise

        summary = result.report.summary
        with self._stats_lock:
            self._stats.total_records_processed += summary.total_events
            self._stats.total_duplicate_groups += summary.duplicate_idempotency_keys_count
            self._stats.total_resolved_groups += summary.duplicate_idempotency_keys_count
        self.provenance.record(
            "clean_result", "clean",
            _compute_hash([r.to_export_dict() for r in result.resolved_records]),
        )
        self._finish(failed=False)
        return result

    def compare(
        self,
        original_records: Iterable[EventRecord],
        comparison_records: Iterable[EventRecord],
    ) -> SnapshotComparison:
        """Compare two snapshots key by key."""
        self._begin()
        try:
            comparison = compare_snapshots(
                original_records, comparison_records, self.config,
            )
        except Exception:
            self._finish(failed=True)
            inc_runs("compare", "failed")
            raise

        with self._stats_lock:
            self._stats.total_comparisons += 1
        self.provenance.record(
            "comparison", "compare", _compute_hash(comparison.to_summary_dict()),
        )
        inc_runs("compare", "completed")
        self._finish(failed=False)
        return comparison

    def filter(
        self,
        records: Iterable[EventRecord],
        event_filter: ExportEventFilter,
    ) -> Dict[str, Any]:
        """Partition records with a filter.

        Returns:
            Dict with ``remaining``, ``removed`` and ``description``.
        """
        self._begin()
        try:
            remaining, removed = filter_records(records, event_filter)
        except Exception:
            self._finish(failed=True)
            inc_runs("filter", "failed")
            raise
        with self._stats_lock:
            self._stats.total_filter_runs += 1
        self.provenance.record(
            "filter_result", "filter",
            _compute_hash({
                "description": event_filter.description,
                "remaining": [r.idempotency_key for r in remaining],
                "removed": [r.idempotency_key for r in removed],
            }),
        )
        inc_runs("filter", "completed")
        self._finish(failed=False)
        return {
            "remaining": remaining,
            "removed": removed,
            "description": event_filter.description,
        }

    # ------------------------------------------------------------------
    # Directory operations
    # ------------------------------------------------------------------

    def analyze_directory(
        self,
        input_dir: PathLike,
        output_dir: PathLike,
    ) -> ReconciliationReport:
        """Parse an export directory, analyze it and write the reports."""
        start_time = time.monotonic()
        report = self.analyze(parse_export_directory(input_dir))
        write_analysis(report, output_dir)
        observe_duration("analyze_directory", time.monotonic() - start_time)
        return report

    def clean_directory(
        self,
        input_dir: PathLike,
        output_dir: PathLike,
    ) -> CleanResult:
        """Parse an export directory, clean it and write JSONL chunks.

        Nothing is written when any group needs manual review.
        """
        start_time = time.monotonic()
        result = self.clean(parse_export_directory(input_dir))
        write_clean_output(result, output_dir, self.config.output_chunk_size)
        observe_duration("clean_directory", time.monotonic() - start_time)
        return result

    def compare_directories(
        self,
        original_dir: PathLike,
        comparison_dir: PathLike,
        output_dir: PathLike,
    ) -> SnapshotComparison:
        """Compare two export directories and write the comparison."""
        comparison = self.compare(
            parse_export_directory(original_dir),
            parse_export_directory(comparison_dir),
        )
        write_snapshot_comparison(comparison, output_dir)
        return comparison

    def filter_directory(
        self,
        input_dir: PathLike,
        output_dir: PathLike,
        event_filter: ExportEventFilter,
    ) -> Dict[str, Any]:
        """Filter an export directory and write remaining/removed events."""
        result = self.filter(parse_export_directory(input_dir), event_filter)
        write_filter_output(
            result["remaining"], result["removed"],
            result["description"], output_dir,
        )
        return result

    # ------------------------------------------------------------------
    # Statistics and health
    # ------------------------------------------------------------------

    def get_statistics(self) -> StatsResponse:
        """Get aggregated reconciliation statistics."""
        with self._stats_lock:
            self._stats.provenance_entries = self.provenance.entry_count
            return self._stats.model_copy()

    def health_check(self) -> Dict[str, Any]:
        """Perform a health check on the service."""
        return {
            "status": "healthy" if self._started else "not_started",
            "service": "duplicate-reconciler",
            "started": self._started,
            "missing_key_policy": self.config.missing_key_policy,
            "provenance_entries": self.provenance.entry_count,
            "prometheus_available": PROMETHEUS_AVAILABLE,
        }

    def get_provenance(self) -> _ProvenanceTracker:
        return self.provenance

    def get_metrics(self) -> Dict[str, Any]:
        """Get service metrics summary including engine statistics."""
        stats = self.get_statistics()
        return {
            "prometheus_available": PROMETHEUS_AVAILABLE,
            "started": self._started,
            "service": stats.model_dump(),
            "pipeline": self.pipeline.get_pipeline_stats(),
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        with self._stats_lock:
            self._stats.total_runs += 1
            self._stats.active_runs += 1

    def _finish(self, failed: bool) -> None:
        with self._stats_lock:
            self._stats.active_runs -= 1
            if failed:
                self._stats.failed_runs += 1
            else:
                self._stats.completed_runs += 1


# ===================================================================
# Module-level configuration functions
# ===================================================================


def configure_duplicate_reconciler(
    config: Optional[DuplicateReconcilerConfig] = None,
) -> DuplicateReconcilerService:
    """Create, register and start the DuplicateReconcilerService.

    Args:
        config: Optional reconciler config.

    Returns:
        DuplicateReconcilerService instance.
    """
    global _singleton_instance

    service = DuplicateReconcilerService(config=config)
    logging.getLogger("analyticsmigrate").setLevel(
        service.config.log_level.upper()
    )

    with _singleton_lock:
        _singleton_instance = service

    service._started = True
    logger.info("Duplicate reconciler service configured and started")
    return service


def get_duplicate_reconciler() -> DuplicateReconcilerService:
    """Get the registered DuplicateReconcilerService.

    Raises:
        RuntimeError: If the service has not been configured.
    """
    with _singleton_lock:
        service = _singleton_instance
    if service is None:
        raise RuntimeError(
            "Duplicate reconciler service not configured. "
            "Call configure_duplicate_reconciler() first."
        )
    return service


__all__ = [
    "DuplicateReconcilerService",
    "configure_duplicate_reconciler",
    "get_duplicate_reconciler",
    "StatsResponse",
]
