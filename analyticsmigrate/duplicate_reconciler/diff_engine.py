# -*- coding: utf-8 -*-
"""
Diff Engine - Duplicate Reconciler

Field-level and event-property-level comparison of two exported events.
Every function here is pure: inputs are never mutated, results depend
only on the arguments, and ``diff(a, b)`` reports the same changed keys
as ``diff(b, a)`` (only the value order swaps).

Operations:
    flatten_record:          Record -> top-level export key/value map
    diff_records:            Whole-record diff keyed by export field name
    diff_properties:         Diff of two optional property maps
    diff_event_properties:   diff_properties applied to two records
    json_equal:              Type-strict JSON value equality
    events_equivalent:       Equality outside the volatile fields
    renamed_property_keys:   Keys that changed name but kept their values

Example:
    >>> from analyticsmigrate.duplicate_reconciler.diff_engine import diff_properties
    >>> diff = diff_properties(None, {"x": 1})
    >>> list(diff), diff["x"].value_b
    (['x'], 1)

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections import Counter
from typing import Any, Dict, Mapping, Optional, Tuple

from analyticsmigrate.duplicate_reconciler.models import (
    VOLATILE_FIELDS,
    EventRecord,
    FieldDifference,
)

logger = logging.getLogger(__name__)

__all__ = [
    "flatten_record",
    "diff_records",
    "diff_properties",
    "diff_event_properties",
    "json_equal",
    "events_equivalent",
    "renamed_property_keys",
    "compute_provenance",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _canonical(value: Any) -> str:
    """Deterministic JSON text for a JSON-compatible value."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


_ABSENT = object()


def json_equal(value_a: Any, value_b: Any) -> bool:
    """Compare two JSON values the way the export distinguishes them.

    Python's ``==`` treats ``True``, ``1`` and ``1.0`` as equal; the
    canonical JSON text does not, so a bool never matches a number and
    an integer never matches a float.
    """
    return _canonical(value_a) == _canonical(value_b)


def compute_provenance(operation: str, data: Any) -> str:
    """Compute a deterministic SHA-256 provenance hash.

    Args:
        operation: Name of the operation being recorded.
        data: JSON-compatible payload describing inputs and outcome.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    payload = f"{operation}:{_canonical(data)}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _diff_maps(
    map_a: Mapping[str, Any],
    map_b: Mapping[str, Any],
) -> Dict[str, FieldDifference]:
    """Per-key diff of two maps.

    An absent key differs from an explicit null, though both are
    reported as None.
    """
    differences: Dict[str, FieldDifference] = {}
    for key in sorted(set(map_a) | set(map_b)):
        value_a = map_a.get(key, _ABSENT)
        value_b = map_b.get(key, _ABSENT)
        if (
            value_a is _ABSENT
            or value_b is _ABSENT
            or not json_equal(value_a, value_b)
        ):
            differences[key] = FieldDifference(
                value_a=None if value_a is _ABSENT else value_a,
                value_b=None if value_b is _ABSENT else value_b,
            )
    return differences


# ---------------------------------------------------------------------------
# Whole-record diff
# ---------------------------------------------------------------------------


def flatten_record(record: EventRecord) -> Dict[str, Any]:
    """Flatten a record into its top-level export key/value pairs.

    Nested maps (``event_properties``, ``user_properties``, ...) stay whole
    values; use :func:`diff_event_properties` to look inside them.
    """
    return record.to_export_dict()


def diff_records(
    record_a: EventRecord,
    record_b: EventRecord,
) -> Dict[str, FieldDifference]:
    """Report every export key whose value differs between two records.

    Args:
        record_a: First record.
        record_b: Second record.

    Returns:
        Mapping of export key -> FieldDifference(value_a, value_b),
        sorted by key. Empty when the records serialize identically.
    """
    return _diff_maps(flatten_record(record_a), flatten_record(record_b))


# ---------------------------------------------------------------------------
# Event property diff
# ---------------------------------------------------------------------------


def diff_properties(
    props_a: Optional[Mapping[str, Any]],
    props_b: Optional[Mapping[str, Any]],
) -> Dict[str, FieldDifference]:
    """Diff two optional event property maps.

    Three cases:
        both present:    per-key diff, a missing key differs from a null
        one present:     every key of the present map is a difference
        neither present: no differences

    Args:
        props_a: First property map, or None.
        props_b: Second property map, or None.

    Returns:
        Mapping of property key -> FieldDifference, sorted by key.
    """
    if props_a is None and props_b is None:
        return {}

    if props_a is None or props_b is None:
        present = props_a if props_a is not None else props_b
        return {
            key: FieldDifference(
                value_a=props_a.get(key) if props_a is not None else None,
                value_b=props_b.get(key) if props_b is not None else None,
            )
            for key in sorted(present)
        }

    return _diff_maps(props_a, props_b)


def diff_event_properties(
    record_a: EventRecord,
    record_b: EventRecord,
) -> Dict[str, FieldDifference]:
    """Diff the ``event_properties`` maps of two records."""
    return diff_properties(record_a.event_properties, record_b.event_properties)


# ---------------------------------------------------------------------------
# Equality invariant
# ---------------------------------------------------------------------------


def _stable_view(record: EventRecord) -> Dict[str, Any]:
    data = record.model_dump(mode="json")
    for name in VOLATILE_FIELDS:
        data.pop(name, None)
    return data


def events_equivalent(record_a: EventRecord, record_b: EventRecord) -> bool:
    """True when two records match on every field outside VOLATILE_FIELDS.

    Volatile fields (server-assigned ids, ingestion and processing
    timestamps, uuid, user_properties, geo/device enrichment) are expected
    to differ between re-exports of one logical event.
    """
    return json_equal(_stable_view(record_a), _stable_view(record_b))


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def renamed_property_keys(
    props_a: Optional[Mapping[str, Any]],
    props_b: Optional[Mapping[str, Any]],
) -> Optional[Tuple[str, ...]]:
    """Detect property keys that were renamed while keeping their values.

    Returns the symmetric difference of the two key sets when both maps
    have the same size, hold the same multiset of values, and differ in
    their keys. Returns None otherwise.
    """
    if props_a is None or props_b is None:
        return None
    if len(props_a) != len(props_b):
        return None

    values_a = Counter(_canonical(v) for v in props_a.values())
    values_b = Counter(_canonical(v) for v in props_b.values())
    if values_a != values_b:
        return None

    keys_a = set(props_a)
    keys_b = set(props_b)
    if keys_a == keys_b:
        return None
    return tuple(sorted(keys_a ^ keys_b))
