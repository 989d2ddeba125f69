# -*- coding: utf-8 -*-
"""Tests for the DuplicateReconcilerService facade."""

import json

import pytest

from analyticsmigrate.duplicate_reconciler import setup as service_setup
from analyticsmigrate.duplicate_reconciler.config import DuplicateReconcilerConfig
from analyticsmigrate.duplicate_reconciler.event_filters import UUIDDeduplicationFilter
from analyticsmigrate.duplicate_reconciler.setup import (
    DuplicateReconcilerService,
    configure_duplicate_reconciler,
    get_duplicate_reconciler,
)
from analyticsmigrate.exceptions import UnresolvedDuplicatesError


@pytest.fixture(autouse=True)
def reset_singleton(monkeypatch):
    monkeypatch.setattr(service_setup, "_singleton_instance", None)


@pytest.fixture
def service():
    return DuplicateReconcilerService()


class TestServiceOperations:
    """Tests for in-memory facade operations."""

    def test_analyze_updates_stats(self, service, make_record):
        records = [
            make_record(key="a"), make_record(key="a"),
            make_record(key="b", props={"x": 1}), make_record(key="b", props={"x": 2}),
        ]
        service.analyze(records)
        stats = service.get_statistics()

        assert stats.total_runs == 1
        assert stats.completed_runs == 1
        assert stats.total_records_processed == 4
        assert stats.total_duplicate_groups == 2
        assert stats.total_resolved_groups == 1
        assert stats.total_unresolved_groups == 1
        assert stats.active_runs == 0
        assert stats.provenance_entries == 1

    def test_clean_failure_counted(self, service, make_record):
        records = [make_record(key="b", props={"x": 1}), make_record(key="b", props={"x": 2})]
        with pytest.raises(UnresolvedDuplicatesError):
            service.clean(records)
        stats = service.get_statistics()
        assert stats.failed_runs == 1
        assert stats.total_unresolved_groups == 1
        assert stats.active_runs == 0

    def test_clean(self, service, make_record):
        result = service.clean([make_record(key="a"), make_record(key="a")])
        assert result.total_output_records == 1
        assert service.get_statistics().total_resolved_groups == 1

    def test_compare(self, service, make_record):
        comparison = service.compare([make_record(key="a")], [make_record(key="a")])
        assert comparison.identical == ["a"]
        assert service.get_statistics().total_comparisons == 1

    def test_filter(self, service, make_record):
        result = service.filter(
            [make_record(key="a"), make_record(key="a")], UUIDDeduplicationFilter(),
        )
        assert len(result["remaining"]) == 1
        assert len(result["removed"]) == 1
        assert result["description"] == "UUID-based deduplication filter"
        assert service.get_statistics().total_filter_runs == 1

    def test_statistics_are_snapshots(self, service, make_record):
        before = service.get_statistics()
        service.analyze([make_record()])
        assert before.total_runs == 0

    def test_provenance_entries(self, service, make_record):
        service.analyze([make_record()])
        service.compare([], [])
        entries = service.get_provenance().entries
        assert [e["action"] for e in entries] == ["analyze", "compare"]
        assert all(len(e["entry_hash"]) == 64 for e in entries)


class TestServiceDirectories:
    """Tests for directory facade operations."""

    def test_analyze_directory(self, service, tmp_path, make_record, write_export):
        write_export(tmp_path / "in" / "day.json", [make_record(key="a"), make_record(key="a")])
        report = service.analyze_directory(tmp_path / "in", tmp_path / "out")

        assert report.summary.dupe_type_counts == {"TrueDuplicate": 1}
        assert (tmp_path / "out" / "TrueDuplicate" / "dupe_analysis_a.json").exists()

    def test_clean_directory_writes_chunks(self, tmp_path, make_record, write_export):
        service = DuplicateReconcilerService(DuplicateReconcilerConfig(output_chunk_size=1))
        write_export(
            tmp_path / "in" / "day.json",
            [make_record(key="a"), make_record(key="b"), make_record(key="a")],
        )
        service.clean_directory(tmp_path / "in", tmp_path / "out")

        assert (tmp_path / "out" / "non_duplicate_chunk_0.json").exists()
        assert (tmp_path / "out" / "duplicate_chunk_0.json").exists()

    def test_clean_directory_writes_nothing_when_unresolved(
        self, service, tmp_path, make_record, write_export,
    ):
        write_export(
            tmp_path / "in" / "day.json",
            [make_record(key="a", props={"x": 1}), make_record(key="a", props={"x": 2})],
        )
        with pytest.raises(UnresolvedDuplicatesError):
            service.clean_directory(tmp_path / "in", tmp_path / "out")
        assert not (tmp_path / "out").exists()

    def test_compare_directories(self, service, tmp_path, make_record, write_export):
        write_export(tmp_path / "a" / "x.json", [make_record(key="k", user_id="1")])
        write_export(tmp_path / "b" / "x.json", [make_record(key="k", user_id="2")])
        service.compare_directories(tmp_path / "a", tmp_path / "b", tmp_path / "out")

        summary = json.loads((tmp_path / "out" / "comparison_summary.json").read_text(encoding="utf-8"))
        assert summary["different_events"] == ["k"]

    def test_filter_directory(self, service, tmp_path, make_record, write_export):
        write_export(tmp_path / "in" / "x.json", [make_record(key="k"), make_record(key="k")])
        service.filter_directory(tmp_path / "in", tmp_path / "out", UUIDDeduplicationFilter())
        assert (tmp_path / "out" / "removed_events.jsonl").exists()


class TestServiceLifecycle:
    """Tests for configuration and health."""

    def test_not_configured(self):
        with pytest.raises(RuntimeError):
            get_duplicate_reconciler()

    def test_configure_registers_singleton(self):
        service = configure_duplicate_reconciler(DuplicateReconcilerConfig(log_level="DEBUG"))
        assert get_duplicate_reconciler() is service
        assert service.health_check()["status"] == "healthy"

    def test_unstarted_health(self, service):
        health = service.health_check()
        assert health["status"] == "not_started"
        assert health["missing_key_policy"] == "skip"

    def test_get_metrics(self, service, make_record):
        service.analyze([make_record()])
        metrics = service.get_metrics()
        assert metrics["service"]["total_runs"] == 1
        assert metrics["pipeline"]["pipeline"]["successes"] == 1
