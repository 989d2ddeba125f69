# -*- coding: utf-8 -*-
"""
Resolver - Duplicate Reconciler

Pure mapping from a classified duplicate group (DupeType) to a
Resolution. No I/O and no mutation: surviving records are copies.

Resolution strategies:
    PreOrderDropCompletedMistake: KeepMany. The submitted record is kept
        unchanged; the completed record is kept with its idempotency key
        rewritten (``key_rewrite_from`` -> ``key_rewrite_to``).
    PropertyNameChange / DropTypeChange / PropertyDropPriceChange:
        KeepOne. Metadata of the chronologically earliest record with the
        event properties of the chronologically latest record.
    TrueDuplicate: KeepOne. The chronologically earliest record.
    Unknown / UnknownPropDiff / TooMany / EventPropsIncompatible / Multi:
        Error. Routed to manual review.

Chronological order is ``client_upload_time`` ascending; a record
without an upload time sorts first and ties keep input order.

Example:
    >>> from analyticsmigrate.duplicate_reconciler.resolver import resolve
    >>> resolution = resolve(dupe_type)
    >>> resolution.kind, resolution.is_resolved

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from analyticsmigrate.duplicate_reconciler.config import (
    DuplicateReconcilerConfig,
    get_config,
)
from analyticsmigrate.duplicate_reconciler.metrics import (
    inc_resolutions,
    observe_duration,
)
from analyticsmigrate.duplicate_reconciler.models import (
    METADATA_CHURN_KINDS,
    DupeKind,
    DupeType,
    EventRecord,
    Resolution,
    ResolutionKind,
)

logger = logging.getLogger(__name__)

__all__ = [
    "chronological_order",
    "rewrite_idempotency_key",
    "resolve",
    "DupeResolver",
]

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def chronological_order(records: Sequence[EventRecord]) -> List[EventRecord]:
    """Sort records by client_upload_time, missing first, stable on ties."""
    indexed = list(enumerate(records))
    indexed.sort(
        key=lambda item: (
            item[1].client_upload_time is not None,
            item[1].client_upload_time or _EARLIEST,
            item[0],
        )
    )
    return [record for _, record in indexed]


def rewrite_idempotency_key(
    record: EventRecord,
    rewrite_from: str,
    rewrite_to: str,
) -> Tuple[EventRecord, bool]:
    """Replace ``rewrite_from`` with ``rewrite_to`` in the record's key.

    Returns:
        Tuple of (record copy, whether the key changed).
    """
    key = record.idempotency_key
    if key is None:
        return record, False
    new_key = key.replace(rewrite_from, rewrite_to)
    if new_key == key:
        return record, False
    return record.with_idempotency_key(new_key), True


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _resolve_pre_order(
    dupe_type: DupeType,
    config: DuplicateReconcilerConfig,
) -> Resolution:
    submitted = [
        r for r in dupe_type.records
        if r.event_type == config.submitted_event_type
    ]
    completed = [
        r for r in dupe_type.records
        if r.event_type == config.completed_event_type
    ]
    if len(submitted) != 1 or len(completed) != 1 or len(dupe_type.records) != 2:
        logger.warning(
            "Pre-order group %s is not one submitted plus one completed "
            "record (%d submitted, %d completed, %d total); routing to review",
            dupe_type.records[0].idempotency_key,
            len(submitted), len(completed), len(dupe_type.records),
        )
        return Resolution(
            kind=ResolutionKind.ERROR,
            dupe_type=dupe_type,
            warnings=(
                "pre-order group must hold exactly one submitted and one "
                "completed record",
            ),
        )

    rewritten, changed = rewrite_idempotency_key(
        completed[0], config.key_rewrite_from, config.key_rewrite_to,
    )
    warnings: Tuple[str, ...] = ()
    if not changed:
        logger.warning(
            "Key rewrite %r -> %r had no effect on %r; both records keep one key",
            config.key_rewrite_from, config.key_rewrite_to,
            completed[0].idempotency_key,
        )
        warnings = (
            f"idempotency key {completed[0].idempotency_key!r} does not contain "
            f"{config.key_rewrite_from!r}; completed record key unchanged",
        )
    return Resolution.keep_many(
        (submitted[0], rewritten), dupe_type=dupe_type, warnings=warnings,
    )


def _resolve_metadata_churn(dupe_type: DupeType) -> Resolution:
    ordered = chronological_order(dupe_type.records)
    earliest, latest = ordered[0], ordered[-1]
    merged = earliest.with_event_properties(latest.event_properties)
    return Resolution.keep_one(merged, dupe_type=dupe_type)


def _resolve_true_duplicate(dupe_type: DupeType) -> Resolution:
    earliest = chronological_order(dupe_type.records)[0]
    return Resolution.keep_one(earliest, dupe_type=dupe_type)


def resolve(
    dupe_type: DupeType,
    config: Optional[DuplicateReconcilerConfig] = None,
) -> Resolution:
    """Resolve a classified group.

    Args:
        dupe_type: Classification of the group.
        config: Configuration (event type names, key rewrite).

    Returns:
        Resolution for the group. Every kind not listed in the module
        docstring resolves to Error.
    """
    cfg = config or get_config()
    kind = dupe_type.kind
    if kind == DupeKind.PRE_ORDER_DROP_COMPLETED_MISTAKE:
        return _resolve_pre_order(dupe_type, cfg)
    if kind in METADATA_CHURN_KINDS:
        return _resolve_metadata_churn(dupe_type)
    if kind == DupeKind.TRUE_DUPLICATE:
        return _resolve_true_duplicate(dupe_type)
    return Resolution.error(dupe_type)


# =============================================================================
# DupeResolver
# =============================================================================


class DupeResolver:
    """Resolution engine with operational statistics.

    Attributes:
        config: Active reconciler configuration.

    Example:
        >>> resolver = DupeResolver()
        >>> resolver.resolve(dupe_type).kind
        <ResolutionKind.KEEP_ONE: 'KeepOne'>
    """

    def __init__(self, config: Optional[DuplicateReconcilerConfig] = None) -> None:
        self.config = config or get_config()
        self._stats_lock = threading.Lock()
        self._invocations: int = 0
        self._total_duration_ms: float = 0.0
        self._last_invoked_at: Optional[datetime] = None
        self._resolution_counts: Dict[str, int] = {}
        self._warnings: int = 0
        logger.info("DupeResolver initialized")

    def resolve(self, dupe_type: DupeType) -> Resolution:
        """Resolve one classified group."""
        start_time = time.monotonic()
        resolution = resolve(dupe_type, self.config)
        elapsed = time.monotonic() - start_time

        with self._stats_lock:
            self._invocations += 1
            self._total_duration_ms += elapsed * 1000.0
            self._last_invoked_at = _utcnow()
            tag = resolution.kind.value
            self._resolution_counts[tag] = self._resolution_counts.get(tag, 0) + 1
            self._warnings += len(resolution.warnings)

        inc_resolutions(resolution.kind.value)
        observe_duration("resolve", elapsed)
        logger.debug(
            "Resolved %s as %s -> %s",
            dupe_type.records[0].idempotency_key if dupe_type.records else None,
            dupe_type.tag, resolution.kind.value,
        )
        return resolution

    def resolve_batch(self, dupe_types: Sequence[DupeType]) -> List[Resolution]:
        return [self.resolve(dt) for dt in dupe_types]

    def get_statistics(self) -> Dict[str, Any]:
        """Return current engine operational statistics."""
        with self._stats_lock:
            avg_ms = 0.0
            if self._invocations > 0:
                avg_ms = self._total_duration_ms / self._invocations
            return {
                "engine_name": "DupeResolver",
                "invocations": self._invocations,
                "total_duration_ms": round(self._total_duration_ms, 3),
                "avg_duration_ms": round(avg_ms, 3),
                "resolution_counts": dict(self._resolution_counts),
                "warnings": self._warnings,
                "last_invoked_at": (
                    self._last_invoked_at.isoformat()
                    if self._last_invoked_at else None
                ),
            }

    def reset_statistics(self) -> None:
        """Reset all operational statistics to zero."""
        with self._stats_lock:
            self._invocations = 0
            self._total_duration_ms = 0.0
            self._last_invoked_at = None
            self._resolution_counts = {}
            self._warnings = 0
