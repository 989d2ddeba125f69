# -*- coding: utf-8 -*-
"""
Report Writer - Duplicate Reconciler

Serializes reconciliation results to disk. The writer never re-derives
analysis: everything it writes comes from the models it is handed.

Layouts:
    analysis:   <out>/<DupeType tag>/dupe_analysis_<key>.json
                <out>/dupe_analysis_summary.json
                <out>/all_dupe_analyses.json
    clean:      <out>/non_duplicate_chunk_<n>.json   (JSONL)
                <out>/duplicate_chunk_<n>.json       (JSONL)
    comparison: <out>/comparison_summary.json
                <out>/differences/<key>.json
                <out>/only_in_original/<key>.json
                <out>/only_in_comparison/<key>.json
    filter:     <out>/filter_summary.json
                <out>/remaining_events.json(l), <out>/removed_events.json(l)

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Set, Union

from analyticsmigrate.duplicate_reconciler.metrics import (
    inc_errors,
    observe_duration,
)
from analyticsmigrate.duplicate_reconciler.models import (
    CleanResult,
    EventRecord,
    ReconciliationReport,
    SnapshotComparison,
)

logger = logging.getLogger(__name__)

__all__ = [
    "sanitize_filename",
    "write_analysis",
    "write_clean_output",
    "write_snapshot_comparison",
    "write_filter_output",
]

PathLike = Union[str, Path]


def sanitize_filename(name: str) -> str:
    """Replace every character that is not alphanumeric, ``-`` or ``_``."""
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in name)


def _key_path(directory: Path, prefix: str, key: str, used: Set[Path]) -> Path:
    """Per-key artifact path, unique within one run.

    Distinct keys can sanitize to the same name (``order/1`` and
    ``order_1``). A later key that collides gets a short hash of the raw
    key appended instead of overwriting the earlier file.
    """
    stem = f"{prefix}{sanitize_filename(key)}"
    path = directory / f"{stem}.json"
    if path in used:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:8]
        path = directory / f"{stem}_{digest}.json"
        logger.warning(
            "Idempotency key %r collides with another key after sanitizing; "
            "writing %s", key, path.name,
        )
    used.add(path)
    return path


def _write_json(path: Path, data: Any) -> Path:
    try:
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
    except OSError as e:
        inc_errors("io")
        logger.error("Failed to write %s: %s", path, e)
        raise
    return path


def _write_jsonl(path: Path, records: Iterable[EventRecord]) -> Path:
    try:
        with path.open("w", encoding="utf-8") as handle:
            for record in records:
                handle.write(json.dumps(record.to_export_dict(), ensure_ascii=False))
                handle.write("\n")
    except OSError as e:
        inc_errors("io")
        logger.error("Failed to write %s: %s", path, e)
        raise
    return path


def _chunks(records: Sequence[EventRecord], size: int) -> Iterable[Sequence[EventRecord]]:
    for start in range(0, len(records), size):
        yield records[start:start + size]


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def write_analysis(report: ReconciliationReport, output_dir: PathLike) -> List[Path]:
    """Write one artifact per duplicate group plus run-level summaries.

    Returns:
        Paths written, per-group files first.
    """
    start_time = time.monotonic()
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    used: Set[Path] = set()
    group_payloads: List[Dict[str, Any]] = []
    for analysis in report.analyses:
        type_dir = root / analysis.dupe_type.tag
        type_dir.mkdir(exist_ok=True)
        payload = analysis.to_report_dict()
        group_payloads.append(payload)
        path = _key_path(type_dir, "dupe_analysis_", analysis.idempotency_key, used)
        written.append(_write_json(path, payload))

    summary = report.summary.to_report_dict()
    written.append(_write_json(root / "dupe_analysis_summary.json", summary))
    written.append(
        _write_json(
            root / "all_dupe_analyses.json",
            {"summary": summary, "dupe_analyses": group_payloads},
        )
    )

    observe_duration("write", time.monotonic() - start_time)
    logger.info(
        "Wrote %d duplicate group analyses to %s (%s)",
        len(group_payloads), root, report.summary.dupe_type_counts,
    )
    return written


# ---------------------------------------------------------------------------
# Clean output
# ---------------------------------------------------------------------------


def write_clean_output(
    result: CleanResult,
    output_dir: PathLike,
    chunk_size: int = 1000,
) -> List[Path]:
    """Write the cleaned export as numbered JSONL chunks.

    Args:
        result: Output of a successful clean run.
        output_dir: Destination directory (created when missing).
        chunk_size: Records per chunk file.

    Returns:
        Paths written, non-duplicate chunks first.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    start_time = time.monotonic()
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for index, chunk in enumerate(_chunks(result.non_duplicate_records, chunk_size)):
        written.append(_write_jsonl(root / f"non_duplicate_chunk_{index}.json", chunk))
    for index, chunk in enumerate(_chunks(result.resolved_records, chunk_size)):
        written.append(_write_jsonl(root / f"duplicate_chunk_{index}.json", chunk))

    observe_duration("write", time.monotonic() - start_time)
    logger.info(
        "Wrote %d cleaned records in %d chunks to %s",
        result.total_output_records, len(written), root,
    )
    return written


# ---------------------------------------------------------------------------
# Snapshot comparison
# ---------------------------------------------------------------------------


def write_snapshot_comparison(
    comparison: SnapshotComparison,
    output_dir: PathLike,
) -> List[Path]:
    """Write the comparison summary and per-key detail files."""
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)

    written = [_write_json(root / "comparison_summary.json", comparison.to_summary_dict())]
    used: Set[Path] = set()

    if comparison.different:
        diff_dir = root / "differences"
        diff_dir.mkdir(exist_ok=True)
        for difference in comparison.different:
            path = _key_path(diff_dir, "", difference.idempotency_key, used)
            written.append(_write_json(path, difference.to_report_dict()))

    for dirname, records in (
        ("only_in_original", comparison.only_in_original),
        ("only_in_comparison", comparison.only_in_comparison),
    ):
        if not records:
            continue
        target = root / dirname
        target.mkdir(exist_ok=True)
        for record in records:
            path = _key_path(target, "", record.idempotency_key or "", used)
            written.append(_write_json(path, record.to_export_dict()))

    logger.info("Wrote snapshot comparison (%d files) to %s", len(written), root)
    return written


# ---------------------------------------------------------------------------
# Filter output
# ---------------------------------------------------------------------------


def write_filter_output(
    remaining: Sequence[EventRecord],
    removed: Sequence[EventRecord],
    description: str,
    output_dir: PathLike,
) -> List[Path]:
    """Write a filter run: summary, plus JSON and JSONL for each side."""
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)

    written = [
        _write_json(
            root / "filter_summary.json",
            {
                "total_events": len(remaining) + len(removed),
                "remaining_events": len(remaining),
                "removed_events": len(removed),
                "filter_description": description,
            },
        )
    ]
    for stem, records in (("remaining_events", remaining), ("removed_events", removed)):
        if not records:
            continue
        written.append(
            _write_json(
                root / f"{stem}.json",
                {
                    "count": len(records),
                    "events": [r.to_export_dict() for r in records],
                },
            )
        )
        written.append(_write_jsonl(root / f"{stem}.jsonl", records))

    logger.info(
        "Wrote filter output to %s: %d remaining, %d removed",
        root, len(remaining), len(removed),
    )
    return written
