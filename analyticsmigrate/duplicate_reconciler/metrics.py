# -*- coding: utf-8 -*-
"""
Prometheus Metrics - Duplicate Reconciler

10 Prometheus metrics for duplicate reconciliation monitoring with
graceful fallback when prometheus_client is not installed.

Metrics:
    1.  am_dr_runs_processed_total (Counter, labels: mode, status)
    2.  am_dr_records_ingested_total (Counter, labels: source)
    3.  am_dr_records_skipped_total (Counter, labels: reason)
    4.  am_dr_groups_classified_total (Counter, labels: dupe_type)
    5.  am_dr_resolutions_total (Counter, labels: resolution)
    6.  am_dr_rule_firings_total (Counter, labels: rule)
    7.  am_dr_snapshot_keys_total (Counter, labels: outcome)
    8.  am_dr_processing_duration_seconds (Histogram, labels: operation)
    9.  am_dr_active_runs (Gauge)
    10. am_dr_processing_errors_total (Counter, labels: error_type)

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Graceful prometheus_client import
# ---------------------------------------------------------------------------

try:
    from prometheus_client import Counter, Gauge, Histogram
    PROMETHEUS_AVAILABLE = True
except ImportError:
    PROMETHEUS_AVAILABLE = False
    logger.info(
        "prometheus_client not installed; duplicate reconciler metrics disabled"
    )


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

if PROMETHEUS_AVAILABLE:
    # 1. Reconciliation runs by mode and outcome
    dr_runs_processed_total = Counter(
        "am_dr_runs_processed_total",
        "Total reconciliation runs processed",
        labelnames=["mode", "status"],
    )

    # 2. Records ingested by source
    dr_records_ingested_total = Counter(
        "am_dr_records_ingested_total",
        "Total export records ingested",
        labelnames=["source"],
    )

    # 3. Records skipped by reason
    dr_records_skipped_total = Counter(
        "am_dr_records_skipped_total",
        "Total export records skipped",
        labelnames=["reason"],
    )

    # 4. Duplicate groups classified by dupe type
    dr_groups_classified_total = Counter(
        "am_dr_groups_classified_total",
        "Total duplicate groups classified",
        labelnames=["dupe_type"],
    )

    # 5. Resolutions by kind
    dr_resolutions_total = Counter(
        "am_dr_resolutions_total",
        "Total duplicate group resolutions",
        labelnames=["resolution"],
    )

    # 6. Classification rule firings by rule name
    dr_rule_firings_total = Counter(
        "am_dr_rule_firings_total",
        "Total classification rule firings",
        labelnames=["rule"],
    )

    # 7. Snapshot comparison keys by outcome
    dr_snapshot_keys_total = Counter(
        "am_dr_snapshot_keys_total",
        "Total idempotency keys compared across snapshots",
        labelnames=["outcome"],
    )

    # 8. Processing duration histogram by operation type
    dr_processing_duration_seconds = Histogram(
        "am_dr_processing_duration_seconds",
        "Duplicate reconciliation processing duration in seconds",
        labelnames=["operation"],
        buckets=(
            0.001, 0.005, 0.01, 0.05, 0.1, 0.25,
            0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0,
        ),
    )

    # 9. Currently active runs gauge
    dr_active_runs = Gauge(
        "am_dr_active_runs",
        "Number of currently active reconciliation runs",
    )

    # 10. Processing errors by error type
    dr_processing_errors_total = Counter(
        "am_dr_processing_errors_total",
        "Total processing errors encountered",
        labelnames=["error_type"],
    )

else:
    # No-op placeholders
    dr_runs_processed_total = None  # type: ignore[assignment]
    dr_records_ingested_total = None  # type: ignore[assignment]
    dr_records_skipped_total = None  # type: ignore[assignment]
    dr_groups_classified_total = None  # type: ignore[assignment]
    dr_resolutions_total = None  # type: ignore[assignment]
    dr_rule_firings_total = None  # type: ignore[assignment]
    dr_snapshot_keys_total = None  # type: ignore[assignment]
    dr_processing_duration_seconds = None  # type: ignore[assignment]
    dr_active_runs = None  # type: ignore[assignment]
    dr_processing_errors_total = None  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Helper functions (safe to call even without prometheus_client)
# ---------------------------------------------------------------------------


def inc_runs(mode: str, status: str) -> None:
    """Record a reconciliation run.

    Args:
        mode: Run mode (analyze, clean, compare, filter).
        status: Run status (completed, failed).
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_runs_processed_total.labels(mode=mode, status=status).inc()


def inc_records(source: str, count: int = 1) -> None:
    """Record export records ingested.

    Args:
        source: Where the records came from (directory, lines, memory).
        count: Number of records ingested.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_records_ingested_total.labels(source=source).inc(count)


def inc_skipped(reason: str, count: int = 1) -> None:
    """Record export records skipped.

    Args:
        reason: Skip reason (missing_idempotency_key).
        count: Number of records skipped.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_records_skipped_total.labels(reason=reason).inc(count)


def inc_groups(dupe_type: str, count: int = 1) -> None:
    """Record duplicate groups classified.

    Args:
        dupe_type: Dupe type tag (TrueDuplicate, Multi, TooMany, ...).
        count: Number of groups classified.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_groups_classified_total.labels(dupe_type=dupe_type).inc(count)


def inc_resolutions(resolution: str, count: int = 1) -> None:
    """Record duplicate group resolutions.

    Args:
        resolution: Resolution kind (KeepOne, KeepMany, Error).
        count: Number of resolutions.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_resolutions_total.labels(resolution=resolution).inc(count)


def inc_rule_firings(rule: str, count: int = 1) -> None:
    """Record classification rule firings.

    Args:
        rule: Rule name.
        count: Number of firings.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_rule_firings_total.labels(rule=rule).inc(count)


def inc_snapshot_keys(outcome: str, count: int = 1) -> None:
    """Record snapshot comparison outcomes.

    Args:
        outcome: Comparison outcome (identical, different, only_in_a,
            only_in_b).
        count: Number of keys with this outcome.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_snapshot_keys_total.labels(outcome=outcome).inc(count)


def observe_duration(operation: str, duration: float) -> None:
    """Record processing duration for an operation.

    Args:
        operation: Operation type (parse, group, classify, resolve,
            analyze, clean, compare, write).
        duration: Duration in seconds.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_processing_duration_seconds.labels(operation=operation).observe(duration)


def set_active_runs(count: int) -> None:
    """Set the active runs gauge to an absolute value.

    Args:
        count: Number of currently active runs.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_active_runs.set(count)


def inc_errors(error_type: str) -> None:
    """Record a processing error event.

    Args:
        error_type: Error classification (parse, missing_key, invariant,
            unresolved, io, unknown).
    """
    if not PROMETHEUS_AVAILABLE:
        return
    dr_processing_errors_total.labels(error_type=error_type).inc()


__all__ = [
    "PROMETHEUS_AVAILABLE",
    # Metric objects
    "dr_runs_processed_total",
    "dr_records_ingested_total",
    "dr_records_skipped_total",
    "dr_groups_classified_total",
    "dr_resolutions_total",
    "dr_rule_firings_total",
    "dr_snapshot_keys_total",
    "dr_processing_duration_seconds",
    "dr_active_runs",
    "dr_processing_errors_total",
    # Helper functions
    "inc_runs",
    "inc_records",
    "inc_skipped",
    "inc_groups",
    "inc_resolutions",
    "inc_rule_firings",
    "inc_snapshot_keys",
    "observe_duration",
    "set_active_runs",
    "inc_errors",
]
