# -*- coding: utf-8 -*-
"""Tests for cross-snapshot comparison."""

import pytest

from analyticsmigrate.duplicate_reconciler.config import DuplicateReconcilerConfig
from analyticsmigrate.duplicate_reconciler.models import FieldDifference
from analyticsmigrate.duplicate_reconciler.snapshot_comparison import (
    build_event_difference,
    compare_snapshots,
    is_property_name_only,
    material_differences,
)
from analyticsmigrate.exceptions import MissingIdempotencyKeyError


class TestCleaning:
    """Tests for difference cleaning."""

    def test_material_differences_drop_reupload_fields(self):
        diffs = {
            "app": FieldDifference(value_a=1, value_b=2),
            "uuid": FieldDifference(value_a="a", value_b="b"),
            "user_id": FieldDifference(value_a="u1", value_b="u2"),
        }
        assert list(material_differences(diffs)) == ["user_id"]

    def test_property_name_only(self):
        material = {
            "event_properties": FieldDifference(
                value_a={"Property": "Maple", "Shares": 1},
                value_b={"Property": "Maple II", "Shares": 1},
            )
        }
        assert is_property_name_only(material)

    def test_other_material_field_is_not_property_name_only(self):
        material = {
            "event_properties": FieldDifference(
                value_a={"Property": "Maple"}, value_b={"Property": "Elm"},
            ),
            "user_id": FieldDifference(value_a="u1", value_b="u2"),
        }
        assert not is_property_name_only(material)

    def test_changed_key_set_is_not_property_name_only(self):
        material = {
            "event_properties": FieldDifference(
                value_a={"Property": "Maple"}, value_b={"PropertyName": "Maple"},
            )
        }
        assert not is_property_name_only(material)

    def test_property_value_type_change_counts_as_relabel(self):
        material = {
            "event_properties": FieldDifference(
                value_a={"Property": 1}, value_b={"Property": True},
            )
        }
        assert is_property_name_only(material)

    def test_build_event_difference(self, make_record):
        original = make_record(key="k", app=1, props={"Property": "A"})
        comparison = make_record(key="k", app=2, props={"Property": "B"})
        difference = build_event_difference("k", original, comparison)

        assert set(difference.differences) == {"app", "event_properties"}
        assert list(difference.material_differences) == ["event_properties"]
        assert difference.property_name_only
        assert difference.is_cleaned


class TestCompareSnapshots:
    """Tests for compare_snapshots."""

    def test_partitions_every_key(self, make_record):
        original = [
            make_record(key="same", uuid="u1"),
            make_record(key="changed", user_id="u1"),
            make_record(key="gone"),
        ]
        comparison = [
            make_record(key="new"),
            make_record(key="changed", user_id="u2"),
            make_record(key="same", uuid="u2"),
        ]
        result = compare_snapshots(original, comparison)

        assert result.identical == ["same"]
        assert [d.idempotency_key for d in result.different] == ["changed"]
        assert [r.idempotency_key for r in result.only_in_original] == ["gone"]
        assert [r.idempotency_key for r in result.only_in_comparison] == ["new"]
        assert result.total_original_events == 3
        assert result.total_comparison_events == 3

    def test_difference_not_cleaned_for_material_change(self, make_record):
        result = compare_snapshots(
            [make_record(key="k", user_id="u1")],
            [make_record(key="k", user_id="u2")],
        )
        assert not result.different[0].is_cleaned

    def test_summary_dict(self, make_record):
        result = compare_snapshots(
            [make_record(key="a"), make_record(key="b", props={"Property": "X"})],
            [make_record(key="b", props={"Property": "Y"}), make_record(key="c")],
        )
        payload = result.to_summary_dict()

        assert payload["summary"]["identical_events"] == 0
        assert payload["summary"]["different_events"] == 1
        assert payload["summary"]["cleaned_differences"] == 1
        assert payload["only_in_original"] == ["a"]
        assert payload["only_in_comparison"] == ["c"]
        assert payload["different_events"] == ["b"]

    def test_repeated_key_last_record_wins(self, make_record):
        result = compare_snapshots(
            [make_record(key="k", user_id="old"), make_record(key="k", user_id="new")],
            [make_record(key="k", user_id="new")],
        )
        assert result.identical == ["k"]

    def test_missing_keys_skipped(self, make_record):
        result = compare_snapshots(
            [make_record(key=None), make_record(key="a")],
            [make_record(key="a")],
        )
        assert result.skipped_missing_key == 1
        assert result.identical == ["a"]

    def test_missing_keys_fail_policy(self, make_record):
        config = DuplicateReconcilerConfig(missing_key_policy="fail")
        with pytest.raises(MissingIdempotencyKeyError):
            compare_snapshots([make_record(key=None)], [], config)

    def test_empty_snapshots(self):
        result = compare_snapshots([], [])
        assert result.to_summary_dict()["summary"]["different_events"] == 0
