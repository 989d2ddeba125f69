# -*- coding: utf-8 -*-
"""
AnalyticsMigrate Duplicate Reconciler SDK
=========================================

Reconciles analytics events that appear more than once under the same
idempotency key in a behavioral-analytics export. It supports:

- Line-delimited JSON export parsing
- Grouping by idempotency key with a skip-or-fail missing key policy
- Field-level and event-property-level diffs
- Duplicate classification through an ordered, extensible rule cascade
- Fail-closed resolution (KeepOne / KeepMany / Error for manual review)
- Cross-snapshot comparison with difference cleaning
- Export filters (multi-criteria, UUID-based deduplication)
- Report writing partitioned by dupe type, and chunked cleaned output
- SHA-256 provenance hashes for every analyzed group
- 10 Prometheus metrics for observability
- Thread-safe configuration with AM_DR_ env prefix

Key Components:
    - config: DuplicateReconcilerConfig with AM_DR_ env prefix
    - models: EventRecord, DupeType, Resolution and report models
    - export_parser: Export file reader
    - grouping: Idempotency key grouping
    - diff_engine: Record and property diffs, equality invariant
    - dupe_classifier: Rule cascade classifier
    - resolver: DupeType -> Resolution mapping
    - snapshot_comparison: Two-snapshot comparison
    - event_filters: Export filters
    - report_writer: On-disk artifacts
    - reconciliation_pipeline: End-to-end analyze / clean orchestration
    - metrics: 10 Prometheus metrics
    - setup: DuplicateReconcilerService facade

Example:
    >>> from analyticsmigrate.duplicate_reconciler import DuplicateReconcilerService
    >>> service = DuplicateReconcilerService()
    >>> report = service.analyze(records)
    >>> print(report.summary.dupe_type_counts)
"""

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from analyticsmigrate.duplicate_reconciler.config import (
    DuplicateReconcilerConfig,
    get_config,
    set_config,
    reset_config,
)

# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------
from analyticsmigrate.duplicate_reconciler.metrics import (
    PROMETHEUS_AVAILABLE,
    inc_runs,
    inc_records,
    inc_skipped,
    inc_groups,
    inc_resolutions,
    inc_rule_firings,
    inc_snapshot_keys,
    observe_duration,
    set_active_runs,
    inc_errors,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from analyticsmigrate.duplicate_reconciler.models import (
    DupeKind,
    ResolutionKind,
    EventRecord,
    DuplicateGroup,
    DupeType,
    Resolution,
    FieldDifference,
    GroupAnalysis,
    ReconciliationSummary,
    ReconciliationReport,
    CleanResult,
    EventDifference,
    SnapshotComparison,
)

# ---------------------------------------------------------------------------
# Core engines
# ---------------------------------------------------------------------------
from analyticsmigrate.duplicate_reconciler.export_parser import (
    parse_export_lines,
    parse_export_directory,
)
from analyticsmigrate.duplicate_reconciler.grouping import (
    GroupingResult,
    group_by_idempotency_key,
)
from analyticsmigrate.duplicate_reconciler.diff_engine import (
    diff_records,
    diff_properties,
    diff_event_properties,
    events_equivalent,
    renamed_property_keys,
)
from analyticsmigrate.duplicate_reconciler.dupe_classifier import (
    CascadeState,
    ClassificationRule,
    DupeClassifier,
    classify_group,
)
from analyticsmigrate.duplicate_reconciler.resolver import (
    DupeResolver,
    resolve,
)
from analyticsmigrate.duplicate_reconciler.snapshot_comparison import (
    compare_snapshots,
)
from analyticsmigrate.duplicate_reconciler.event_filters import (
    ExportEventFilter,
    DefaultFilter,
    MultiCriteriaFilter,
    UUIDDeduplicationFilter,
    filter_records,
)
from analyticsmigrate.duplicate_reconciler.reconciliation_pipeline import (
    ReconciliationPipeline,
)

# ---------------------------------------------------------------------------
# Service setup facade and models
# ---------------------------------------------------------------------------
from analyticsmigrate.duplicate_reconciler.setup import (
    DuplicateReconcilerService,
    configure_duplicate_reconciler,
    get_duplicate_reconciler,
    StatsResponse,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "DuplicateReconcilerConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Metric flag
    "PROMETHEUS_AVAILABLE",
    # Metric helper functions
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
    # Models
    "DupeKind",
    "ResolutionKind",
    "EventRecord",
    "DuplicateGroup",
    "DupeType",
    "Resolution",
    "FieldDifference",
    "GroupAnalysis",
    "ReconciliationSummary",
    "ReconciliationReport",
    "CleanResult",
    "EventDifference",
    "SnapshotComparison",
    # Core engines
    "parse_export_lines",
    "parse_export_directory",
    "GroupingResult",
    "group_by_idempotency_key",
    "diff_records",
    "diff_properties",
    "diff_event_properties",
    "events_equivalent",
    "renamed_property_keys",
    "CascadeState",
    "ClassificationRule",
    "DupeClassifier",
    "classify_group",
    "DupeResolver",
    "resolve",
    "compare_snapshots",
    "ExportEventFilter",
    "DefaultFilter",
    "MultiCriteriaFilter",
    "UUIDDeduplicationFilter",
    "filter_records",
    "ReconciliationPipeline",
    # Service setup facade
    "DuplicateReconcilerService",
    "configure_duplicate_reconciler",
    "get_duplicate_reconciler",
    "StatsResponse",
]
