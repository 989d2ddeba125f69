# -*- coding: utf-8 -*-
"""
Export Parser - Duplicate Reconciler

Reads line-delimited JSON analytics exports into EventRecord instances.
Every non-blank line is one event. Directories are walked recursively
and ``*.json`` files are read in sorted path order, so two runs over the
same export see records in the same order.

Example:
    >>> from analyticsmigrate.duplicate_reconciler.export_parser import parse_export_directory
    >>> records = parse_export_directory("exports/2025-07-01")

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from analyticsmigrate.duplicate_reconciler.metrics import (
    inc_errors,
    inc_records,
    observe_duration,
)
from analyticsmigrate.duplicate_reconciler.models import EventRecord
from analyticsmigrate.exceptions import ExportParseError

logger = logging.getLogger(__name__)

__all__ = [
    "parse_export_line",
    "parse_export_lines",
    "iter_export_files",
    "parse_export_file",
    "parse_export_directory",
]

PathLike = Union[str, Path]


def parse_export_line(
    line: Union[str, bytes],
    source: Optional[str] = None,
    line_number: Optional[int] = None,
) -> EventRecord:
    """Parse one export line.

    Byte lines are decoded as UTF-8.

    Raises:
        ExportParseError: If the line is not valid UTF-8 or not a JSON
            object describing an event.
    """
    try:
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        payload = json.loads(line)
        if not isinstance(payload, dict):
            raise ValueError(
                f"expected a JSON object, got {type(payload).__name__}"
            )
        return EventRecord.model_validate(payload)
    except ValueError as e:
        inc_errors("parse")
        raise ExportParseError(
            message=f"Failed to parse event: {e}",
            file_path=source,
            line_number=line_number,
            cause=e,
        ) from e


def parse_export_lines(
    lines: Iterable[Union[str, bytes]],
    source: Optional[str] = None,
) -> List[EventRecord]:
    """Parse an iterable of export lines, skipping blank ones.

    Args:
        lines: Raw text or byte lines (trailing newlines allowed).
        source: Name reported in errors and metrics.

    Returns:
        Records in line order.
    """
    records: List[EventRecord] = []
    for line_number, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        records.append(parse_export_line(text, source, line_number))
    inc_records("lines" if source is None else "file", len(records))
    return records


def iter_export_files(directory: PathLike) -> Iterator[Path]:
    """Yield every ``*.json`` file under ``directory`` in sorted order."""
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Export directory does not exist: {root}")
    for path in sorted(root.rglob("*.json")):
        if path.is_file():
            yield path


def parse_export_file(path: PathLike) -> List[EventRecord]:
    """Parse one line-delimited export file."""
    file_path = Path(path)
    with file_path.open("rb") as handle:
        return parse_export_lines(handle, source=str(file_path))


def parse_export_directory(directory: PathLike) -> List[EventRecord]:
    """Parse every export file under a directory.

    Raises:
        FileNotFoundError: If the directory does not exist.
        ExportParseError: On the first line that fails to parse.
    """
    start_time = time.monotonic()
    records: List[EventRecord] = []
    file_count = 0
    for path in iter_export_files(directory):
        file_records = parse_export_file(path)
        logger.debug("Parsed %d events from %s", len(file_records), path)
        records.extend(file_records)
        file_count += 1

    observe_duration("parse", time.monotonic() - start_time)
    logger.info(
        "Parsed %d events from %d export files under %s",
        len(records), file_count, directory,
    )
    return records
