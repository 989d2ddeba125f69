# -*- coding: utf-8 -*-
"""Tests for the diff engine."""

from analyticsmigrate.duplicate_reconciler.diff_engine import (
    compute_provenance,
    diff_event_properties,
    diff_properties,
    diff_records,
    events_equivalent,
    json_equal,
    renamed_property_keys,
)
from analyticsmigrate.duplicate_reconciler.models import FieldDifference


class TestDiffRecords:
    """Tests for whole-record diffs."""

    def test_identical_records_have_no_diff(self, make_record):
        assert diff_records(make_record(), make_record()) == {}

    def test_reports_changed_fields_by_export_key(self, make_record):
        a = make_record(user_id="u1", props={"x": 1})
        b = make_record(user_id="u2", props={"x": 2})
        diff = diff_records(a, b)

        assert list(diff) == ["event_properties", "user_id"]
        assert diff["user_id"] == FieldDifference(value_a="u1", value_b="u2")

    def test_absent_key_reads_as_none(self, make_record):
        a = make_record(extra_field="present")
        b = make_record()
        diff = diff_records(a, b)
        assert diff["extra_field"] == FieldDifference(value_a="present", value_b=None)

    def test_diff_is_symmetric(self, make_record):
        a = make_record(user_id="u1", upload="2025-07-01 10:00:00", props={"x": 1})
        b = make_record(user_id="u2", upload="2025-07-02 10:00:00", props={"y": 1})
        forward = diff_records(a, b)
        backward = diff_records(b, a)

        assert set(forward) == set(backward)
        for key, difference in forward.items():
            assert backward[key] == difference.swapped()

    def test_does_not_mutate_inputs(self, make_record):
        a = make_record(props={"x": 1})
        b = make_record(props={"x": 2})
        before = (a.to_export_dict(), b.to_export_dict())
        diff_records(a, b)
        assert (a.to_export_dict(), b.to_export_dict()) == before


class TestDiffProperties:
    """Tests for event property diffs."""

    def test_both_absent(self):
        assert diff_properties(None, None) == {}

    def test_one_absent_reports_every_key_of_the_other(self):
        diff = diff_properties(None, {"x": 1})
        assert diff == {"x": FieldDifference(value_a=None, value_b=1)}

    def test_one_absent_other_side(self):
        diff = diff_properties({"x": 1, "y": 2}, None)
        assert list(diff) == ["x", "y"]
        assert diff["y"] == FieldDifference(value_a=2, value_b=None)

    def test_per_key_diff(self):
        diff = diff_properties({"x": 1, "y": 2}, {"x": 1, "z": 3})
        assert list(diff) == ["y", "z"]
        assert diff["z"] == FieldDifference(value_a=None, value_b=3)

    def test_symmetric(self):
        a, b = {"x": 1, "y": 2}, {"x": 5}
        forward, backward = diff_properties(a, b), diff_properties(b, a)
        assert {k: v.swapped() for k, v in forward.items()} == backward

    def test_record_wrapper(self, make_record):
        diff = diff_event_properties(
            make_record(props={"Property": "A"}),
            make_record(props={"Property": "B"}),
        )
        assert diff == {"Property": FieldDifference(value_a="A", value_b="B")}

    def test_bool_and_number_differ(self):
        diff = diff_properties({"Shares": 1, "Gift": False}, {"Shares": True, "Gift": 0})

        assert list(diff) == ["Gift", "Shares"]
        assert diff["Shares"].value_a == 1 and diff["Shares"].value_b is True
        assert diff["Gift"].value_a is False and diff["Gift"].value_b == 0

    def test_int_and_float_differ(self):
        assert list(diff_properties({"Shares": 4}, {"Shares": 4.0})) == ["Shares"]

    def test_explicit_null_differs_from_absent_key(self):
        diff = diff_properties({"x": None}, {})
        assert diff == {"x": FieldDifference(value_a=None, value_b=None)}
        assert list(diff_properties({}, {"x": None})) == ["x"]

    def test_nulls_on_both_sides_are_equal(self):
        assert diff_properties({"x": None}, {"x": None}) == {}


class TestEventsEquivalent:
    """Tests for the volatile-field equality check."""

    def test_volatile_fields_ignored(self, make_record):
        a = make_record(uuid="u-1", city="Austin", upload="2025-07-01 10:00:00")
        b = make_record(uuid="u-2", city="Boston", upload="2025-07-03 10:00:00")
        assert events_equivalent(a, b)

    def test_stable_field_difference(self, make_record):
        assert not events_equivalent(
            make_record(props={"x": 1}), make_record(props={"x": 2}),
        )

    def test_event_type_difference(self, make_record):
        assert not events_equivalent(
            make_record(event_type="A"), make_record(event_type="B"),
        )

    def test_bool_and_number_properties_differ(self, make_record):
        assert not events_equivalent(
            make_record(props={"Shares": 1, "Gift": False}),
            make_record(props={"Shares": True, "Gift": 0}),
        )

    def test_null_property_differs_from_absent(self, make_record):
        a = make_record(props={"x": None})
        b = make_record(props={})
        assert not events_equivalent(a, b)
        assert list(diff_event_properties(a, b)) == ["x"]


class TestJsonEqual:
    """Tests for type-strict JSON value equality."""

    def test_bool_is_not_a_number(self):
        assert not json_equal(True, 1)
        assert not json_equal(False, 0)

    def test_int_is_not_a_float(self):
        assert not json_equal(1, 1.0)

    def test_nested_values(self):
        assert json_equal({"a": [1, {"b": None}]}, {"a": [1, {"b": None}]})
        assert not json_equal({"a": [1]}, {"a": [True]})

    def test_key_order_ignored(self):
        assert json_equal({"a": 1, "b": 2}, {"b": 2, "a": 1})


class TestRenamedPropertyKeys:
    """Tests for rename detection."""

    def test_detects_rename(self):
        renamed = renamed_property_keys(
            {"Property": "Maple", "Shares": 2},
            {"PropertyName": "Maple", "Shares": 2},
        )
        assert renamed == ("Property", "PropertyName")

    def test_same_keys_is_not_rename(self):
        assert renamed_property_keys({"a": 1}, {"a": 2}) is None

    def test_different_values_is_not_rename(self):
        assert renamed_property_keys({"a": 1}, {"b": 2}) is None

    def test_different_sizes_is_not_rename(self):
        assert renamed_property_keys({"a": 1}, {"b": 1, "c": 2}) is None

    def test_absent_map(self):
        assert renamed_property_keys(None, {"a": 1}) is None


class TestComputeProvenance:
    """Tests for provenance hashing."""

    def test_deterministic(self):
        first = compute_provenance("op", {"b": 1, "a": [1, 2]})
        second = compute_provenance("op", {"a": [1, 2], "b": 1})
        assert first == second
        assert len(first) == 64

    def test_operation_changes_hash(self):
        assert compute_provenance("a", {}) != compute_provenance("b", {})
