# -*- coding: utf-8 -*-
"""Tests for idempotency key grouping."""

import pytest

from analyticsmigrate.duplicate_reconciler.grouping import group_by_idempotency_key
from analyticsmigrate.exceptions import MissingIdempotencyKeyError


class TestGroupByIdempotencyKey:
    """Tests for group_by_idempotency_key."""

    def test_groups_in_first_seen_order(self, make_record):
        records = [
            make_record(key="b", event_type="one"),
            make_record(key="a", event_type="two"),
            make_record(key="b", event_type="three"),
        ]
        result = group_by_idempotency_key(records)

        assert list(result.groups) == ["b", "a"]
        assert [r.event_type for r in result.groups["b"]] == ["one", "three"]
        assert result.total_records == 3
        assert result.unique_keys == 2

    def test_singletons_and_duplicates(self, make_record):
        records = [
            make_record(key="a"),
            make_record(key="dup"),
            make_record(key="c"),
            make_record(key="dup"),
        ]
        result = group_by_idempotency_key(records)

        assert [r.idempotency_key for r in result.singletons()] == ["a", "c"]
        groups = result.duplicate_groups()
        assert len(groups) == 1
        assert groups[0].idempotency_key == "dup"
        assert groups[0].size == 2
        assert result.duplicate_keys() == ["dup"]

    def test_skip_policy_records_positions(self, make_record):
        records = [
            make_record(key="a"),
            make_record(key=None),
            make_record(key=""),
            make_record(key="a"),
        ]
        result = group_by_idempotency_key(records, "skip")

        assert result.skipped == [1, 2]
        assert result.total_records == 4
        assert list(result.groups) == ["a"]

    def test_fail_policy_raises(self, make_record):
        records = [make_record(key="a"), make_record(key=None, event_type="Login")]
        with pytest.raises(MissingIdempotencyKeyError) as exc_info:
            group_by_idempotency_key(records, "fail")

        assert exc_info.value.context["position"] == 1
        assert exc_info.value.context["event_type"] == "Login"

    def test_unknown_policy_rejected(self, make_record):
        with pytest.raises(ValueError):
            group_by_idempotency_key([make_record()], "ignore")

    def test_empty_input(self):
        result = group_by_idempotency_key([])
        assert result.total_records == 0
        assert result.duplicate_groups() == []
        assert result.singletons() == []

    def test_accepts_generator(self, make_record):
        result = group_by_idempotency_key(
            make_record(key=str(i % 2)) for i in range(4)
        )
        assert [g.size for g in result.duplicate_groups()] == [2, 2]
