# -*- coding: utf-8 -*-
"""
Snapshot Comparison Engine - Duplicate Reconciler

Compares two full exports of the same event stream (for example before
and after a re-upload round trip) keyed by idempotency key. Every key
lands in exactly one bucket:

    identical:           present in both, equivalent outside volatile fields
    different:           present in both, not equivalent (diff attached)
    only_in_original:    present in the original snapshot only
    only_in_comparison:  present in the comparison snapshot only

Each difference is also "cleaned": fields that are reassigned on
re-upload are dropped, and a difference that reduces to a relabelled
``Property`` value (same property keys on both sides) is marked
property-name-only. Cleaned differences need no review.

When one snapshot holds the same key more than once, the last record
wins and the collision is logged.

Example:
    >>> from analyticsmigrate.duplicate_reconciler.snapshot_comparison import compare_snapshots
    >>> result = compare_snapshots(original_records, comparison_records)
    >>> result.to_summary_dict()["summary"]["different_events"]

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from analyticsmigrate.duplicate_reconciler.config import (
    DuplicateReconcilerConfig,
    get_config,
)
from analyticsmigrate.duplicate_reconciler.diff_engine import (
    diff_records,
    events_equivalent,
    json_equal,
)
from analyticsmigrate.duplicate_reconciler.grouping import (
    group_by_idempotency_key,
)
from analyticsmigrate.duplicate_reconciler.metrics import (
    inc_snapshot_keys,
    observe_duration,
)
from analyticsmigrate.duplicate_reconciler.models import (
    NON_MATERIAL_SNAPSHOT_FIELDS,
    EventDifference,
    EventRecord,
    FieldDifference,
    SnapshotComparison,
)

logger = logging.getLogger(__name__)

__all__ = [
    "material_differences",
    "is_property_name_only",
    "build_event_difference",
    "compare_snapshots",
]


def material_differences(
    differences: Mapping[str, FieldDifference],
) -> Dict[str, FieldDifference]:
    """Drop fields that are expected to differ after a re-upload."""
    return {
        key: diff for key, diff in differences.items()
        if key not in NON_MATERIAL_SNAPSHOT_FIELDS
    }


def is_property_name_only(
    material: Mapping[str, FieldDifference],
    property_key: str = "Property",
) -> bool:
    """True when the only material change is a relabelled property value.

    Both sides must carry property maps with identical key sets, and the
    ``property_key`` value must differ.
    """
    if set(material) != {"event_properties"}:
        return False
    props_a = material["event_properties"].value_a
    props_b = material["event_properties"].value_b
    if not isinstance(props_a, dict) or not isinstance(props_b, dict):
        return False
    if set(props_a) != set(props_b):
        return False
    return not json_equal(props_a.get(property_key), props_b.get(property_key))


def build_event_difference(
    idempotency_key: str,
    original: EventRecord,
    comparison: EventRecord,
    property_key: str = "Property",
) -> EventDifference:
    """Diff one key's records from the two snapshots and clean the result."""
    differences = diff_records(original, comparison)
    material = material_differences(differences)
    return EventDifference(
        idempotency_key=idempotency_key,
        original_event=original,
        comparison_event=comparison,
        differences=differences,
        material_differences=material,
        property_name_only=is_property_name_only(material, property_key),
    )


def _index_snapshot(
    records: Iterable[EventRecord],
    missing_key_policy: str,
    label: str,
) -> Tuple[Dict[str, EventRecord], int, int]:
    """Index a snapshot by key (last record wins).

    Returns:
        Tuple of (index, total records, records skipped for a missing key).
    """
    grouping = group_by_idempotency_key(records, missing_key_policy)
    index: Dict[str, EventRecord] = {}
    collisions = 0
    for key, group in grouping.groups.items():
        index[key] = group[-1]
        collisions += len(group) - 1
    if collisions:
        logger.warning(
            "%s snapshot repeats %d idempotency keys; the last record of "
            "each is compared", label, collisions,
        )
    return index, grouping.total_records, len(grouping.skipped)


def compare_snapshots(
    original_records: Iterable[EventRecord],
    comparison_records: Iterable[EventRecord],
    config: Optional[DuplicateReconcilerConfig] = None,
) -> SnapshotComparison:
    """Compare two snapshots key by key.

    Args:
        original_records: Records of snapshot A.
        comparison_records: Records of snapshot B.
        config: Configuration (missing key policy, display-name property).

    Returns:
        SnapshotComparison with keys in first-seen order (original
        snapshot first, then keys only the comparison snapshot has).

    Raises:
        MissingIdempotencyKeyError: Under the ``fail`` policy.
    """
    cfg = config or get_config()
    start_time = time.monotonic()

    original, total_original, skipped_original = _index_snapshot(
        original_records, cfg.missing_key_policy, "Original",
    )
    comparison, total_comparison, skipped_comparison = _index_snapshot(
        comparison_records, cfg.missing_key_policy, "Comparison",
    )

    result = SnapshotComparison(
        total_original_events=total_original,
        total_comparison_events=total_comparison,
        skipped_missing_key=skipped_original + skipped_comparison,
    )

    for key, record in original.items():
        other = comparison.get(key)
        if other is None:
            result.only_in_original.append(record)
        elif events_equivalent(record, other):
            result.identical.append(key)
        else:
            result.different.append(
                build_event_difference(
                    key, record, other, cfg.display_name_property,
                )
            )

    for key, record in comparison.items():
        if key not in original:
            result.only_in_comparison.append(record)

    inc_snapshot_keys("identical", len(result.identical))
    inc_snapshot_keys("different", len(result.different))
    inc_snapshot_keys("only_in_a", len(result.only_in_original))
    inc_snapshot_keys("only_in_b", len(result.only_in_comparison))
    observe_duration("compare", time.monotonic() - start_time)

    summary: Dict[str, Any] = result.to_summary_dict()["summary"]
    logger.info(
        "Snapshot comparison: %d identical, %d different (%d cleaned), "
        "%d only in original, %d only in comparison",
        summary["identical_events"], summary["different_events"],
        summary["cleaned_differences"], summary["only_in_original"],
        summary["only_in_comparison"],
    )
    return result
