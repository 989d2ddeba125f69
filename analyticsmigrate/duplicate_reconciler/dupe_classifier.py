# -*- coding: utf-8 -*-
"""
Dupe Classifier Engine - Duplicate Reconciler

Maps a duplicate group onto the closed DupeType taxonomy by folding an
ordered cascade of independent predicate rules over an immutable
CascadeState. Each rule may contribute a DupeKind and may suppress the
generic fallback rule. When more than one kind fires the group is
classified Multi, listing every fired kind in rule order.

Rule order:
    1. MixedEventTypeRule        -> PreOrderDropCompletedMistake
    2. PropertyDivergenceRule x3 -> PropertyNameChange, DropTypeChange,
                                    PropertyDropPriceChange
                                    (non-UUID keys only)
    3. SchemaIncompatibilityRule -> EventPropsIncompatible
    4. FallbackRule              -> TrueDuplicate or UnknownPropDiff
                                    (skipped when suppressed)

Groups larger than ``max_group_size`` are classified TooMany without
running the cascade. A cascade where nothing fires yields Unknown.

Example:
    >>> from analyticsmigrate.duplicate_reconciler.dupe_classifier import DupeClassifier
    >>> classifier = DupeClassifier()
    >>> dupe_type = classifier.classify(group)
    >>> print(dupe_type.tag, dupe_type.sub_type_tags)

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from analyticsmigrate.duplicate_reconciler.config import (
    DuplicateReconcilerConfig,
    get_config,
)
from analyticsmigrate.duplicate_reconciler.diff_engine import (
    events_equivalent,
    json_equal,
)
from analyticsmigrate.duplicate_reconciler.metrics import (
    inc_errors,
    inc_groups,
    inc_rule_firings,
    observe_duration,
)
from analyticsmigrate.duplicate_reconciler.models import (
    DupeKind,
    DupeType,
    DuplicateGroup,
    EventRecord,
)
from analyticsmigrate.exceptions import InvariantViolationError

logger = logging.getLogger(__name__)

__all__ = [
    "CascadeState",
    "ClassificationRule",
    "MixedEventTypeRule",
    "PropertyDivergenceRule",
    "SchemaIncompatibilityRule",
    "FallbackRule",
    "default_rules",
    "is_uuid_key",
    "classify_records",
    "classify_group",
    "DupeClassifier",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def is_uuid_key(idempotency_key: Optional[str]) -> bool:
    """True when the key parses as a UUID (client-originated event)."""
    if not idempotency_key:
        return False
    try:
        uuid.UUID(idempotency_key)
    except ValueError:
        return False
    return True


def _all_equal(values: Sequence[Any]) -> bool:
    return all(json_equal(v, values[0]) for v in values[1:])


# ---------------------------------------------------------------------------
# Cascade accumulator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CascadeState:
    """Immutable accumulator threaded through the rule cascade.

    Attributes:
        fired: Kinds contributed so far, in rule order.
        suppress_fallback: Whether a rule has ruled out the fallback.
    """

    fired: Tuple[DupeKind, ...] = ()
    suppress_fallback: bool = False

    def fire(self, kind: DupeKind, suppress_fallback: bool = False) -> CascadeState:
        """Return a new state with ``kind`` appended."""
        return CascadeState(
            fired=self.fired + (kind,),
            suppress_fallback=self.suppress_fallback or suppress_fallback,
        )

    def to_dupe_type(self, records: Tuple[EventRecord, ...]) -> DupeType:
        """Collapse the fired kinds into a single DupeType."""
        if not self.fired:
            return DupeType.of(DupeKind.UNKNOWN, records)
        if len(self.fired) == 1:
            return DupeType.of(self.fired[0], records)
        return DupeType.multi(records, self.fired)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class ClassificationRule:
    """Base class for cascade rules.

    A rule inspects the group's records (input order) and the state so
    far, and returns the next state. Rules never mutate their inputs.
    """

    name: str = "rule"

    def evaluate(
        self,
        records: Tuple[EventRecord, ...],
        state: CascadeState,
    ) -> CascadeState:
        raise NotImplementedError


class MixedEventTypeRule(ClassificationRule):
    """Submitted and completed steps of the pre-order flow share one key.

    The two records are different logical events, so the fallback
    equality check is always suppressed.
    """

    name = "mixed_event_type"

    def __init__(self, submitted_event_type: str, completed_event_type: str) -> None:
        self.submitted_event_type = submitted_event_type
        self.completed_event_type = completed_event_type

    def evaluate(
        self,
        records: Tuple[EventRecord, ...],
        state: CascadeState,
    ) -> CascadeState:
        event_types = {r.event_type for r in records}
        if (
            self.submitted_event_type in event_types
            and self.completed_event_type in event_types
        ):
            return state.fire(
                DupeKind.PRE_ORDER_DROP_COMPLETED_MISTAKE,
                suppress_fallback=True,
            )
        return state


class PropertyDivergenceRule(ClassificationRule):
    """One named event property holds different values across the group.

    Fires only when every record carries a properties map, the maps are
    not all equal, the key is present in every map, and its values are
    not all equal. A key present on one side only is a rename, which is
    a different category. UUID keys are skipped: divergence on
    client-originated events is unexplained.
    """

    def __init__(self, property_key: str, kind: DupeKind) -> None:
        self.property_key = property_key
        self.kind = kind
        self.name = f"property_divergence:{property_key}"

    def evaluate(
        self,
        records: Tuple[EventRecord, ...],
        state: CascadeState,
    ) -> CascadeState:
        if is_uuid_key(records[0].idempotency_key):
            return state

        props = [r.event_properties for r in records]
        if any(p is None for p in props) or _all_equal(props):
            return state
        if any(self.property_key not in p for p in props):
            return state

        values = [p[self.property_key] for p in props]
        if _all_equal(values):
            return state
        return state.fire(self.kind, suppress_fallback=True)


class SchemaIncompatibilityRule(ClassificationRule):
    """Only some of the records carry an event properties map.

    The fallback still runs, so the group reports both this kind and
    UnknownPropDiff.
    """

    name = "schema_incompatibility"

    def evaluate(
        self,
        records: Tuple[EventRecord, ...],
        state: CascadeState,
    ) -> CascadeState:
        props = [r.event_properties for r in records]
        present = [p is not None for p in props]
        if not _all_equal(props) and not any(present):
            raise InvariantViolationError(
                message="Event properties differ while absent on every record",
                context={"idempotency_key": records[0].idempotency_key},
            )
        if any(present) and not all(present):
            return state.fire(DupeKind.EVENT_PROPS_INCOMPATIBLE)
        return state


class FallbackRule(ClassificationRule):
    """Full equality outside volatile fields, unless suppressed."""

    name = "fallback"

    def evaluate(
        self,
        records: Tuple[EventRecord, ...],
        state: CascadeState,
    ) -> CascadeState:
        if state.suppress_fallback:
            return state
        first = records[0]
        if all(events_equivalent(first, other) for other in records[1:]):
            return state.fire(DupeKind.TRUE_DUPLICATE)
        return state.fire(DupeKind.UNKNOWN_PROP_DIFF)


def default_rules(
    config: Optional[DuplicateReconcilerConfig] = None,
) -> List[ClassificationRule]:
    """Build the standard cascade in rule order."""
    cfg = config or get_config()
    return [
        MixedEventTypeRule(cfg.submitted_event_type, cfg.completed_event_type),
        PropertyDivergenceRule(
            cfg.display_name_property, DupeKind.PROPERTY_NAME_CHANGE,
        ),
        PropertyDivergenceRule(
            cfg.category_property, DupeKind.DROP_TYPE_CHANGE,
        ),
        PropertyDivergenceRule(
            cfg.unit_price_property, DupeKind.PROPERTY_DROP_PRICE_CHANGE,
        ),
        SchemaIncompatibilityRule(),
        FallbackRule(),
    ]


# ---------------------------------------------------------------------------
# Pure classification
# ---------------------------------------------------------------------------


def classify_records(
    records: Sequence[EventRecord],
    rules: Optional[Sequence[ClassificationRule]] = None,
    max_group_size: Optional[int] = None,
) -> DupeType:
    """Classify the records of one duplicate group.

    Args:
        records: Records sharing one idempotency key, in input order.
        rules: Cascade to run (defaults to :func:`default_rules`).
        max_group_size: Largest group the cascade handles (defaults to
            the configured value).

    Returns:
        The group's DupeType.

    Raises:
        ValueError: If fewer than two records are given.
        InvariantViolationError: If the records contradict themselves.
    """
    records = tuple(records)
    if len(records) < 2:
        raise ValueError(
            f"classification needs a group of at least 2 records, got {len(records)}"
        )

    limit = max_group_size if max_group_size is not None else get_config().max_group_size
    if len(records) > limit:
        return DupeType.of(DupeKind.TOO_MANY, records)

    cascade = rules if rules is not None else default_rules()
    state = CascadeState()
    for rule in cascade:
        next_state = rule.evaluate(records, state)
        if len(next_state.fired) > len(state.fired):
            inc_rule_firings(rule.name)
        state = next_state
    return state.to_dupe_type(records)


def classify_group(
    group: DuplicateGroup,
    config: Optional[DuplicateReconcilerConfig] = None,
) -> DupeType:
    """Classify a DuplicateGroup with the standard cascade."""
    cfg = config or get_config()
    return classify_records(
        group.records,
        rules=default_rules(cfg),
        max_group_size=cfg.max_group_size,
    )


# =============================================================================
# DupeClassifier
# =============================================================================


class DupeClassifier:
    """Duplicate group classification engine.

    Wraps the pure cascade with operational statistics, per-kind counts
    and metrics. The rule list is built once at construction and may be
    extended with :meth:`add_rule`; custom rules run before the fallback.

    Attributes:
        config: Active reconciler configuration.
        rules: Cascade in evaluation order.

    Example:
        >>> classifier = DupeClassifier()
        >>> classifier.classify(group).tag
        'TrueDuplicate'
    """

    def __init__(
        self,
        config: Optional[DuplicateReconcilerConfig] = None,
        rules: Optional[Sequence[ClassificationRule]] = None,
    ) -> None:
        """Initialize DupeClassifier with empty statistics."""
        self.config = config or get_config()
        self.rules: List[ClassificationRule] = (
            list(rules) if rules is not None else default_rules(self.config)
        )
        self._stats_lock = threading.Lock()
        self._invocations: int = 0
        self._successes: int = 0
        self._failures: int = 0
        self._total_duration_ms: float = 0.0
        self._last_invoked_at: Optional[datetime] = None
        self._kind_counts: Dict[str, int] = {}
        logger.info(
            "DupeClassifier initialized: %d rules, max_group_size=%d",
            len(self.rules), self.config.max_group_size,
        )

    # ------------------------------------------------------------------
    # Public API - Classification
    # ------------------------------------------------------------------

    def add_rule(self, rule: ClassificationRule) -> None:
        """Insert a rule immediately before the fallback rule."""
        for index, existing in enumerate(self.rules):
            if isinstance(existing, FallbackRule):
                self.rules.insert(index, rule)
                return
        self.rules.append(rule)

    def classify(self, group: DuplicateGroup) -> DupeType:
        """Classify one duplicate group.

        Args:
            group: Group with at least two records.

        Returns:
            DupeType for the group.

        Raises:
            InvariantViolationError: If the records contradict themselves.
        """
        start_time = time.monotonic()
        try:
            dupe_type = classify_records(
                group.records,
                rules=self.rules,
                max_group_size=self.config.max_group_size,
            )
        except Exception as e:
            elapsed = time.monotonic() - start_time
            self._record_failure(elapsed)
            inc_errors(
                "invariant" if isinstance(e, InvariantViolationError) else "unknown"
            )
            logger.error(
                "Classification failed for %s: %s", group.idempotency_key, e,
            )
            raise

        elapsed = time.monotonic() - start_time
        self._record_success(elapsed, dupe_type.tag)
        inc_groups(dupe_type.tag)
        observe_duration("classify", elapsed)
        logger.debug(
            "Classified %s (%d records): %s %s",
            group.idempotency_key, group.size, dupe_type.tag,
            dupe_type.sub_type_tags or "",
        )
        return dupe_type

    def classify_batch(self, groups: Sequence[DuplicateGroup]) -> List[DupeType]:
        """Classify several groups, preserving order."""
        if not groups:
            return []
        results = [self.classify(group) for group in groups]
        logger.info("Classified batch of %d duplicate groups", len(results))
        return results

    # ------------------------------------------------------------------
    # Public API - Statistics
    # ------------------------------------------------------------------

    def get_statistics(self) -> Dict[str, Any]:
        """Return current engine operational statistics."""
        with self._stats_lock:
            avg_ms = 0.0
            if self._invocations > 0:
                avg_ms = self._total_duration_ms / self._invocations
            return {
                "engine_name": "DupeClassifier",
                "invocations": self._invocations,
                "successes": self._successes,
                "failures": self._failures,
                "total_duration_ms": round(self._total_duration_ms, 3),
                "avg_duration_ms": round(avg_ms, 3),
                "dupe_type_counts": dict(self._kind_counts),
                "last_invoked_at": (
                    self._last_invoked_at.isoformat()
                    if self._last_invoked_at else None
                ),
            }

    def reset_statistics(self) -> None:
        """Reset all operational statistics to zero."""
        with self._stats_lock:
            self._invocations = 0
            self._successes = 0
            self._failures = 0
            self._total_duration_ms = 0.0
            self._last_invoked_at = None
            self._kind_counts = {}

    # ------------------------------------------------------------------
    # Private methods
    # ------------------------------------------------------------------

    def _record_success(self, elapsed_seconds: float, tag: str) -> None:
        ms = elapsed_seconds * 1000.0
        with self._stats_lock:
            self._invocations += 1
            self._successes += 1
            self._total_duration_ms += ms
            self._last_invoked_at = _utcnow()
            self._kind_counts[tag] = self._kind_counts.get(tag, 0) + 1

    def _record_failure(self, elapsed_seconds: float) -> None:
        ms = elapsed_seconds * 1000.0
        with self._stats_lock:
            self._invocations += 1
            self._failures += 1
            self._total_duration_ms += ms
            self._last_invoked_at = _utcnow()
