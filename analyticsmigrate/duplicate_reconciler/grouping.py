# -*- coding: utf-8 -*-
"""
Grouping - Duplicate Reconciler

Partitions exported events by idempotency key in a single O(n) pass.
Insertion order is preserved both across keys (first-seen order) and
within each key (input order), because classification rules and
resolution tie-breaks depend on "first vs. second" input position.

Events without an idempotency key (missing or empty) cannot be
deduplicated. They are handled by the configured policy:
    skip: counted and reported on the result, never grouped
    fail: MissingIdempotencyKeyError on the first such event

Example:
    >>> from analyticsmigrate.duplicate_reconciler.grouping import group_by_idempotency_key
    >>> result = group_by_idempotency_key(records)
    >>> [g.idempotency_key for g in result.duplicate_groups()]

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from analyticsmigrate.duplicate_reconciler.config import MISSING_KEY_POLICIES
from analyticsmigrate.duplicate_reconciler.metrics import (
    inc_errors,
    inc_skipped,
    observe_duration,
)
from analyticsmigrate.duplicate_reconciler.models import (
    DuplicateGroup,
    EventRecord,
)
from analyticsmigrate.exceptions import MissingIdempotencyKeyError

logger = logging.getLogger(__name__)

__all__ = [
    "GroupingResult",
    "group_by_idempotency_key",
]


@dataclass
class GroupingResult:
    """Records partitioned by idempotency key.

    Attributes:
        groups: Key -> records in input order; keys in first-seen order.
        skipped: Input positions of records without an idempotency key.
        total_records: Number of records consumed.
    """

    groups: Dict[str, List[EventRecord]] = field(default_factory=dict)
    skipped: List[int] = field(default_factory=list)
    total_records: int = 0

    @property
    def unique_keys(self) -> int:
        return len(self.groups)

    def singletons(self) -> List[EventRecord]:
        """Records whose key appeared exactly once, in first-seen key order."""
        return [records[0] for records in self.groups.values() if len(records) == 1]

    def duplicate_groups(self) -> List[DuplicateGroup]:
        """Groups with two or more records, in first-seen key order."""
        return [
            DuplicateGroup(idempotency_key=key, records=tuple(records))
            for key, records in self.groups.items()
            if len(records) > 1
        ]

    def duplicate_keys(self) -> List[str]:
        return [key for key, records in self.groups.items() if len(records) > 1]


def group_by_idempotency_key(
    records: Iterable[EventRecord],
    missing_key_policy: str = "skip",
) -> GroupingResult:
    """Group records by idempotency key.

    Args:
        records: Records in input order.
        missing_key_policy: ``skip`` or ``fail``.

    Returns:
        GroupingResult with groups and skipped positions.

    Raises:
        ValueError: If missing_key_policy is not a known policy.
        MissingIdempotencyKeyError: Under ``fail`` when a record has no key.
    """
    if missing_key_policy not in MISSING_KEY_POLICIES:
        raise ValueError(
            f"missing_key_policy must be one of {MISSING_KEY_POLICIES}, "
            f"got {missing_key_policy!r}"
        )

    start_time = time.monotonic()
    result = GroupingResult()

    for position, record in enumerate(records):
        result.total_records += 1
        key: Optional[str] = record.idempotency_key
        if not key:
            if missing_key_policy == "fail":
                inc_errors("missing_key")
                raise MissingIdempotencyKeyError(
                    message=(
                        f"Event at position {position} has no idempotency key"
                    ),
                    position=position,
                    event_type=record.event_type,
                )
            result.skipped.append(position)
            continue
        result.groups.setdefault(key, []).append(record)

    if result.skipped:
        inc_skipped("missing_idempotency_key", len(result.skipped))
        logger.warning(
            "Skipped %d of %d events without an idempotency key",
            len(result.skipped), result.total_records,
        )

    observe_duration("group", time.monotonic() - start_time)
    logger.info(
        "Grouped %d events into %d idempotency keys (%d with duplicates)",
        result.total_records, result.unique_keys, len(result.duplicate_keys()),
    )
    return result
