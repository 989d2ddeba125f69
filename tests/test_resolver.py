# -*- coding: utf-8 -*-
"""Tests for duplicate group resolution."""

import pytest

from analyticsmigrate.duplicate_reconciler.config import DuplicateReconcilerConfig
from analyticsmigrate.duplicate_reconciler.dupe_classifier import classify_records
from analyticsmigrate.duplicate_reconciler.models import (
    MANUAL_REVIEW_KINDS,
    DupeKind,
    DupeType,
    ResolutionKind,
)
from analyticsmigrate.duplicate_reconciler.resolver import (
    DupeResolver,
    chronological_order,
    resolve,
    rewrite_idempotency_key,
)

SUBMITTED = "Property Pre-Order Submitted"
COMPLETED = "Property Pre-Order Completed"


class TestChronologicalOrder:
    """Tests for upload-time ordering."""

    def test_sorts_by_upload_time(self, make_record):
        late = make_record(upload="2025-07-02 00:00:00", user_id="late")
        early = make_record(upload="2025-07-01 00:00:00", user_id="early")
        assert [r.user_id for r in chronological_order([late, early])] == ["early", "late"]

    def test_missing_upload_time_sorts_first(self, make_record):
        timed = make_record(upload="2025-07-01 00:00:00", user_id="timed")
        untimed = make_record(upload=None, user_id="untimed")
        assert chronological_order([timed, untimed])[0].user_id == "untimed"

    def test_ties_keep_input_order(self, make_record):
        first = make_record(user_id="first")
        second = make_record(user_id="second")
        assert [r.user_id for r in chronological_order([first, second])] == ["first", "second"]


class TestRewriteIdempotencyKey:
    """Tests for the completed-record key rewrite."""

    def test_rewrites_substring(self, make_record):
        record, changed = rewrite_idempotency_key(
            make_record(key="order-9-Submitted"), "Submitted", "Completed",
        )
        assert changed
        assert record.idempotency_key == "order-9-Completed"

    def test_matches_plain_string_replace(self, make_record):
        key = "Submitted-Submitted"
        record, _ = rewrite_idempotency_key(make_record(key=key), "Submitted", "Completed")
        assert record.idempotency_key == key.replace("Submitted", "Completed")

    def test_no_match_reports_unchanged(self, make_record):
        original = make_record(key="order-9")
        record, changed = rewrite_idempotency_key(original, "Submitted", "Completed")
        assert not changed
        assert record is original


class TestResolve:
    """Tests for the DupeType to Resolution mapping."""

    def test_true_duplicate_keeps_earliest(self, make_record, listing_props):
        later = make_record(upload="2025-07-02 00:00:00", uuid="later", props=listing_props)
        earlier = make_record(upload="2025-07-01 00:00:00", uuid="earlier", props=listing_props)
        dupe_type = classify_records((later, earlier))

        resolution = resolve(dupe_type)

        assert dupe_type.kind == DupeKind.TRUE_DUPLICATE
        assert resolution.kind == ResolutionKind.KEEP_ONE
        assert resolution.record == earlier

    def test_property_name_change_merges(self, make_record, listing_props):
        a = make_record(
            upload="2025-07-01 00:00:00", uuid="a-uuid", props=listing_props,
        )
        b_props = {**listing_props, "Property": "Maple Court II"}
        b = make_record(upload="2025-07-02 00:00:00", uuid="b-uuid", props=b_props)
        dupe_type = classify_records((a, b))

        resolution = resolve(dupe_type)

        assert dupe_type.kind == DupeKind.PROPERTY_NAME_CHANGE
        assert resolution.kind == ResolutionKind.KEEP_ONE
        kept = resolution.record
        assert kept.uuid == "a-uuid"
        assert kept.client_upload_time == a.client_upload_time
        assert kept.event_properties == b_props

    def test_metadata_churn_uses_chronology_not_input_order(self, make_record, listing_props):
        newer_props = {**listing_props, "Drop Type": "Secondary"}
        newer = make_record(upload="2025-07-02 00:00:00", uuid="newer", props=newer_props)
        older = make_record(upload="2025-07-01 00:00:00", uuid="older", props=listing_props)

        resolution = resolve(classify_records((newer, older)))

        assert resolution.record.uuid == "older"
        assert resolution.record.event_properties == newer_props

    @pytest.mark.parametrize("prop,kind", [
        ("Drop Type", DupeKind.DROP_TYPE_CHANGE),
        ("Price per Share", DupeKind.PROPERTY_DROP_PRICE_CHANGE),
    ])
    def test_all_metadata_churn_kinds_keep_one(self, make_record, listing_props, prop, kind):
        a = make_record(props=listing_props)
        b = make_record(props={**listing_props, prop: "changed"}, upload="2025-07-03 00:00:00")
        dupe_type = classify_records((a, b))

        assert dupe_type.kind == kind
        assert resolve(dupe_type).kind == ResolutionKind.KEEP_ONE

    def test_pre_order_keeps_both_with_rewritten_key(self, make_record, listing_props):
        key = "order-42-Submitted"
        submitted = make_record(key=key, event_type=SUBMITTED, props=listing_props)
        completed = make_record(key=key, event_type=COMPLETED, props=listing_props)

        resolution = resolve(classify_records((submitted, completed)))

        assert resolution.kind == ResolutionKind.KEEP_MANY
        assert resolution.records[0] == submitted
        assert resolution.records[1].event_type == COMPLETED
        assert resolution.records[1].idempotency_key == key.replace("Submitted", "Completed")
        assert resolution.warnings == ()

    def test_pre_order_submitted_first_regardless_of_input(self, make_record):
        key = "order-7-Submitted"
        completed = make_record(key=key, event_type=COMPLETED)
        submitted = make_record(key=key, event_type=SUBMITTED)

        resolution = resolve(classify_records((completed, submitted)))

        assert [r.event_type for r in resolution.records] == [SUBMITTED, COMPLETED]

    def test_pre_order_without_rewrite_match_warns(self, make_record):
        submitted = make_record(key="order-7", event_type=SUBMITTED)
        completed = make_record(key="order-7", event_type=COMPLETED)

        resolution = resolve(classify_records((submitted, completed)))

        assert resolution.kind == ResolutionKind.KEEP_MANY
        assert resolution.records[1].idempotency_key == "order-7"
        assert len(resolution.warnings) == 1

    def test_pre_order_with_extra_records_fails_closed(self, make_record):
        records = (
            make_record(key="k-Submitted", event_type=SUBMITTED),
            make_record(key="k-Submitted", event_type=COMPLETED),
            make_record(key="k-Submitted", event_type=COMPLETED),
        )
        config = DuplicateReconcilerConfig(max_group_size=3)
        dupe_type = classify_records(records, max_group_size=3)

        resolution = resolve(dupe_type, config)

        assert dupe_type.kind == DupeKind.PRE_ORDER_DROP_COMPLETED_MISTAKE
        assert resolution.kind == ResolutionKind.ERROR
        assert resolution.records == ()
        assert resolution.warnings

    def test_too_many_is_error(self, make_record):
        records = tuple(make_record() for _ in range(3))
        dupe_type = classify_records(records)
        resolution = resolve(dupe_type)

        assert dupe_type.kind == DupeKind.TOO_MANY
        assert resolution.kind == ResolutionKind.ERROR
        assert resolution.dupe_type.kind == DupeKind.TOO_MANY

    @pytest.mark.parametrize("kind", sorted(MANUAL_REVIEW_KINDS - {DupeKind.MULTI}))
    def test_manual_review_kinds_are_errors(self, make_record, kind):
        dupe_type = DupeType.of(kind, (make_record(), make_record()))
        resolution = resolve(dupe_type)
        assert resolution.kind == ResolutionKind.ERROR
        assert resolution.to_report_dict()["error_type"] == kind.value

    def test_multi_is_error(self, make_record):
        dupe_type = DupeType.multi(
            (make_record(), make_record()),
            (DupeKind.PROPERTY_NAME_CHANGE, DupeKind.DROP_TYPE_CHANGE),
        )
        assert resolve(dupe_type).kind == ResolutionKind.ERROR

    def test_type_only_property_difference_is_not_kept_one(self, make_record):
        a = make_record(key="order-7", props={"Shares": 1, "Gift": False})
        b = make_record(key="order-7", props={"Shares": True, "Gift": 0})
        resolution = resolve(classify_records((a, b)))

        assert resolution.kind == ResolutionKind.ERROR
        assert resolution.records == ()

    def test_missing_properties_map_is_error(self, make_record, listing_props):
        dupe_type = classify_records((make_record(props=listing_props), make_record(props=None)))
        assert resolve(dupe_type).kind == ResolutionKind.ERROR

    def test_inputs_not_mutated(self, make_record, listing_props):
        a = make_record(props=listing_props)
        b = make_record(props={**listing_props, "Property": "Elm"}, upload="2025-07-05 00:00:00")
        before = (a.to_export_dict(), b.to_export_dict())
        resolve(classify_records((a, b)))
        assert (a.to_export_dict(), b.to_export_dict()) == before


class TestDupeResolver:
    """Tests for the DupeResolver engine."""

    def test_statistics(self, make_record):
        resolver = DupeResolver()
        records = (make_record(), make_record())
        resolver.resolve(DupeType.of(DupeKind.TRUE_DUPLICATE, records))
        resolver.resolve(DupeType.of(DupeKind.UNKNOWN, records))

        stats = resolver.get_statistics()
        assert stats["invocations"] == 2
        assert stats["resolution_counts"] == {"KeepOne": 1, "Error": 1}

        resolver.reset_statistics()
        assert resolver.get_statistics()["invocations"] == 0

    def test_resolve_batch_preserves_order(self, make_record):
        resolver = DupeResolver()
        records = (make_record(), make_record())
        kinds = [
            r.kind for r in resolver.resolve_batch([
                DupeType.of(DupeKind.UNKNOWN, records),
                DupeType.of(DupeKind.TRUE_DUPLICATE, records),
            ])
        ]
        assert kinds == [ResolutionKind.ERROR, ResolutionKind.KEEP_ONE]

    def test_counts_warnings(self, make_record):
        resolver = DupeResolver()
        records = (
            make_record(key="plain", event_type=SUBMITTED),
            make_record(key="plain", event_type=COMPLETED),
        )
        resolver.resolve(DupeType.of(DupeKind.PRE_ORDER_DROP_COMPLETED_MISTAKE, records))
        assert resolver.get_statistics()["warnings"] == 1
