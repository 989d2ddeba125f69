# -*- coding: utf-8 -*-
"""Tests for export event filters."""

import pytest

from analyticsmigrate.duplicate_reconciler.event_filters import (
    DefaultFilter,
    ExportEventFilter,
    MultiCriteriaFilter,
    UUIDDeduplicationFilter,
    filter_records,
)

UUID_KEY = "6f1c8a52-0d3e-4b7a-9c21-5e8f7d6a4b30"


class TestProtocol:
    """Tests for protocol conformance."""

    @pytest.mark.parametrize("event_filter", [
        DefaultFilter(),
        MultiCriteriaFilter(event_type="Login"),
        UUIDDeduplicationFilter(),
    ])
    def test_filters_satisfy_protocol(self, event_filter):
        assert isinstance(event_filter, ExportEventFilter)


class TestDefaultFilter:
    """Tests for DefaultFilter."""

    def test_includes_everything(self, make_record):
        remaining, removed = filter_records(
            [make_record(key=None), make_record()], DefaultFilter(),
        )
        assert len(remaining) == 2
        assert removed == []


class TestMultiCriteriaFilter:
    """Tests for MultiCriteriaFilter."""

    def test_exact_criteria_all_must_match(self, make_record):
        event_filter = MultiCriteriaFilter(event_type="Login", user_id="u1")
        assert event_filter.should_include(make_record(event_type="Login", user_id="u1"))
        assert not event_filter.should_include(make_record(event_type="Login", user_id="u2"))
        assert not event_filter.should_include(make_record(event_type="Logout", user_id="u1"))

    def test_idempotency_key_and_device(self, make_record):
        event_filter = MultiCriteriaFilter(idempotency_key="k", device_id="d")
        assert event_filter.should_include(make_record(key="k", device_id="d"))
        assert not event_filter.should_include(make_record(key="other", device_id="d"))

    def test_time_window_is_inclusive(self, make_record):
        event_filter = MultiCriteriaFilter(
            start_time="2025-07-01 00:00:00", end_time="2025-07-02 00:00:00",
        )
        assert event_filter.should_include(make_record(event_time="2025-07-01 00:00:00"))
        assert event_filter.should_include(make_record(event_time="2025-07-02 00:00:00"))
        assert not event_filter.should_include(make_record(event_time="2025-07-02 00:00:01"))
        assert not event_filter.should_include(make_record(event_time="2025-06-30 23:59:59"))

    def test_missing_event_time_fails_bounds(self, make_record):
        event_filter = MultiCriteriaFilter(start_time="2025-07-01 00:00:00")
        assert not event_filter.should_include(make_record(event_time=None))

    def test_invert(self, make_record):
        event_filter = MultiCriteriaFilter(event_type="Login", invert=True)
        assert not event_filter.should_include(make_record(event_type="Login"))
        assert event_filter.should_include(make_record(event_type="Logout"))

    def test_description(self):
        assert MultiCriteriaFilter().description == "Multi-criteria filter"
        description = MultiCriteriaFilter(event_type="Login", invert=True).description
        assert description == "Multi-criteria filter (event_type=Login) [inverted]"

    def test_bad_time_bound_rejected(self):
        with pytest.raises(ValueError):
            MultiCriteriaFilter(start_time="soon")


class TestUUIDDeduplicationFilter:
    """Tests for UUIDDeduplicationFilter."""

    def test_keeps_uuid_keys_and_first_of_others(self, make_record):
        records = [
            make_record(key=UUID_KEY, user_id="1"),
            make_record(key=UUID_KEY, user_id="2"),
            make_record(key="server-key", user_id="3"),
            make_record(key="server-key", user_id="4"),
            make_record(key=None, user_id="5"),
        ]
        event_filter = UUIDDeduplicationFilter()
        remaining, removed = filter_records(records, event_filter)

        assert [r.user_id for r in remaining] == ["1", "2", "3"]
        assert [r.user_id for r in removed] == ["4", "5"]
        assert event_filter.get_stats() == (2, 1)
