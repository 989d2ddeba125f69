# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pytest

from analyticsmigrate.duplicate_reconciler.config import (
    DuplicateReconcilerConfig,
    reset_config,
    set_config,
)
from analyticsmigrate.duplicate_reconciler.models import EventRecord


@pytest.fixture(autouse=True)
def default_config():
    """Install a default configuration for each test and reset afterwards."""
    config = DuplicateReconcilerConfig()
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def make_record():
    """Factory building EventRecord instances from export-shaped payloads."""

    def _make(
        key: Optional[str] = "insert-1",
        event_type: str = "Property Purchased",
        upload: Optional[str] = "2025-07-01 10:00:00.000000",
        props: Optional[Dict[str, Any]] = None,
        **extra: Any,
    ) -> EventRecord:
        payload: Dict[str, Any] = {
            "$insert_id": key,
            "event_type": event_type,
            "client_upload_time": upload,
            "event_time": "2025-07-01 09:59:58.000000",
            "user_id": "user-1",
            "device_id": "device-1",
            "event_properties": props,
        }
        payload.update(extra)
        return EventRecord.model_validate(payload)

    return _make


@pytest.fixture
def listing_props():
    """Event properties of a typical listing purchase."""
    return {
        "Property": "Maple Court",
        "Drop Type": "Primary",
        "Price per Share": 50,
        "Shares": 4,
    }


@pytest.fixture
def write_export():
    """Write records as a line-delimited export file."""

    def _write(path: Path, records: Iterable[EventRecord]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            for record in records:
                handle.write(json.dumps(record.to_export_dict()))
                handle.write("\n")
        return path

    return _write
