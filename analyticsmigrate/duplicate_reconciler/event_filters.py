# -*- coding: utf-8 -*-
"""
Export Event Filters - Duplicate Reconciler

Predicates that decide which exported events are kept. Filters may be
stateful (UUIDDeduplicationFilter remembers keys it has seen), so a
filter instance is meant for a single pass over one export.

Filters:
    DefaultFilter:            keeps everything
    MultiCriteriaFilter:      exact-match criteria plus an event_time window
    UUIDDeduplicationFilter:  keeps UUID-keyed events and the first event of
                              every other key

Example:
    >>> from analyticsmigrate.duplicate_reconciler.event_filters import (
    ...     MultiCriteriaFilter, filter_records,
    ... )
    >>> remaining, removed = filter_records(records, MultiCriteriaFilter(event_type="Login"))

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union, runtime_checkable

from analyticsmigrate.duplicate_reconciler.dupe_classifier import is_uuid_key
from analyticsmigrate.duplicate_reconciler.models import (
    EventRecord,
    parse_export_timestamp,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ExportEventFilter",
    "DefaultFilter",
    "MultiCriteriaFilter",
    "UUIDDeduplicationFilter",
    "filter_records",
]


@runtime_checkable
class ExportEventFilter(Protocol):
    """Protocol for export event filters."""

    @property
    def description(self) -> str:
        """Human-readable summary of the filter."""
        ...

    def should_include(self, record: EventRecord) -> bool:
        """True to keep the record, False to remove it."""
        ...


class DefaultFilter:
    """Keeps every event."""

    description = "Default filter (includes all events)"

    def should_include(self, record: EventRecord) -> bool:
        return True


class MultiCriteriaFilter:
    """Match events on any combination of exact-value criteria.

    Every criterion that is set must match. ``start_time``/``end_time``
    bound ``event_time`` inclusively; an event without an event_time never
    matches a time bound. ``invert`` keeps the events that do NOT match.

    Args:
        event_type: Exact event type.
        user_id: Exact user id.
        device_id: Exact device id.
        idempotency_key: Exact idempotency key.
        uuid: Exact export uuid.
        start_time: Inclusive lower bound (datetime or export timestamp text).
        end_time: Inclusive upper bound (datetime or export timestamp text).
        invert: Keep non-matching events instead.

    Raises:
        ValueError: If a time bound cannot be parsed.
    """

    def __init__(
        self,
        event_type: Optional[str] = None,
        user_id: Optional[str] = None,
        device_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        uuid: Optional[str] = None,
        start_time: Union[datetime, str, None] = None,
        end_time: Union[datetime, str, None] = None,
        invert: bool = False,
    ) -> None:
        self.event_type = event_type
        self.user_id = user_id
        self.device_id = device_id
        self.idempotency_key = idempotency_key
        self.uuid = uuid
        self.start_time = parse_export_timestamp(start_time)
        self.end_time = parse_export_timestamp(end_time)
        self.invert = invert

    @property
    def description(self) -> str:
        criteria = [
            f"{name}={value}"
            for name, value in self._criteria().items()
            if value is not None
        ]
        text = "Multi-criteria filter"
        if criteria:
            text += f" ({', '.join(criteria)})"
        if self.invert:
            text += " [inverted]"
        return text

    def _criteria(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "user_id": self.user_id,
            "device_id": self.device_id,
            "idempotency_key": self.idempotency_key,
            "uuid": self.uuid,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }

    def _matches(self, record: EventRecord) -> bool:
        exact = (
            ("event_type", self.event_type),
            ("user_id", self.user_id),
            ("device_id", self.device_id),
            ("idempotency_key", self.idempotency_key),
            ("uuid", self.uuid),
        )
        for field_name, expected in exact:
            if expected is not None and getattr(record, field_name) != expected:
                return False

        if self.start_time is not None or self.end_time is not None:
            event_time = record.event_time
            if event_time is None:
                return False
            if self.start_time is not None and event_time < self.start_time:
                return False
            if self.end_time is not None and event_time > self.end_time:
                return False
        return True

    def should_include(self, record: EventRecord) -> bool:
        return self._matches(record) != self.invert


class UUIDDeduplicationFilter:
    """Keep UUID-keyed events and the first event of every other key.

    Events without an idempotency key are removed.
    """

    description = "UUID-based deduplication filter"

    def __init__(self) -> None:
        self._non_uuid_counts: Dict[str, int] = {}

    def should_include(self, record: EventRecord) -> bool:
        key = record.idempotency_key
        if not key:
            return False
        if is_uuid_key(key):
            return True
        seen = self._non_uuid_counts.get(key, 0)
        self._non_uuid_counts[key] = seen + 1
        return seen == 0

    def get_stats(self) -> Tuple[int, int]:
        """Return (non-UUID events seen, distinct non-UUID keys)."""
        return sum(self._non_uuid_counts.values()), len(self._non_uuid_counts)


def filter_records(
    records: Iterable[EventRecord],
    event_filter: ExportEventFilter,
) -> Tuple[List[EventRecord], List[EventRecord]]:
    """Partition records into (remaining, removed), preserving order."""
    remaining: List[EventRecord] = []
    removed: List[EventRecord] = []
    for record in records:
        if event_filter.should_include(record):
            remaining.append(record)
        else:
            removed.append(record)
    logger.info(
        "%s: %d events remaining, %d removed",
        event_filter.description, len(remaining), len(removed),
    )
    return remaining, removed
