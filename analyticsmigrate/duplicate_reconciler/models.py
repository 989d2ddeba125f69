# -*- coding: utf-8 -*-
"""
Duplicate Reconciler Data Models

Pydantic v2 data models for the duplicate reconciliation SDK. Provides
type-safe models for exported analytics events, duplicate groups, the
closed dupe-type taxonomy, resolutions, field-level differences,
per-group analyses, run summaries, and cross-snapshot comparisons.

Enumerations (2):
    - DupeKind, ResolutionKind

SDK models (10):
    - EventRecord, DuplicateGroup, DupeType, Resolution,
      FieldDifference, GroupAnalysis, ReconciliationSummary,
      ReconciliationReport, CleanResult, SnapshotComparison

Author: AnalyticsMigrate Team
Status: Production Ready
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Timestamp format used by the analytics export API.
EXPORT_TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M:%S.%f"

#: Accepted input timestamp formats, tried in order.
EXPORT_TIMESTAMP_INPUT_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
)

#: Timestamp-valued export fields.
TIMESTAMP_FIELDS: Tuple[str, ...] = (
    "client_event_time",
    "client_upload_time",
    "event_time",
    "server_received_time",
    "server_upload_time",
)

#: Fields expected to differ between re-exports of the same logical event.
#: Excluded from the equality check that decides "true duplicate" status.
VOLATILE_FIELDS: frozenset = frozenset({
    "city",
    "country",
    "device_carrier",
    "device_family",
    "device_type",
    "event_id",
    "ip_address",
    "os_name",
    "os_version",
    "platform",
    "client_upload_time",
    "processed_time",
    "server_received_time",
    "server_upload_time",
    "user_properties",
    "uuid",
    "language",
    "region",
    "dma",
    "data",
    "start_version",
    "version_name",
})

#: Fields that are not material when comparing two snapshots of one project
#: against another (they are reassigned on re-upload).
NON_MATERIAL_SNAPSHOT_FIELDS: Tuple[str, ...] = (
    "app",
    "client_upload_time",
    "processed_time",
    "server_received_time",
    "uuid",
    "user_properties",
)


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def parse_export_timestamp(value: Any) -> Optional[datetime]:
    """Parse an export timestamp into an aware UTC datetime.

    Args:
        value: ``None``, a datetime, or a string in the export format
            (``YYYY-MM-DD HH:MM:SS[.ffffff]``).

    Returns:
        Aware UTC datetime, or None when value is None.

    Raises:
        ValueError: If the string matches none of the accepted formats.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    text = value.strip()
    for fmt in EXPORT_TIMESTAMP_INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized export timestamp: {value!r}")


def format_export_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime back into the export timestamp format."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime(EXPORT_TIMESTAMP_FORMAT)


# =============================================================================
# Enumerations
# =============================================================================


class DupeKind(str, Enum):
    """Shape of the disagreement between records sharing an idempotency key.

    The value doubles as the tag name used for report directories.

    PRE_ORDER_DROP_COMPLETED_MISTAKE: The submitted and completed steps of
        the two-phase pre-order flow were sent with one key.
    PROPERTY_NAME_CHANGE: The display-name property was relabelled.
    DROP_TYPE_CHANGE: The category property changed.
    PROPERTY_DROP_PRICE_CHANGE: The unit-price property changed.
    TRUE_DUPLICATE: Records are identical outside volatile fields.
    UNKNOWN_PROP_DIFF: Records differ in a way no rule explains.
    UNKNOWN: No rule matched at all.
    TOO_MANY: More records than the two-record heuristics can handle.
    MULTI: More than one rule fired; see ``DupeType.sub_types``.
    EVENT_PROPS_INCOMPATIBLE: Only one record carries event properties.
    """

    PRE_ORDER_DROP_COMPLETED_MISTAKE = "PreOrderDropCompletedMistake"
    PROPERTY_NAME_CHANGE = "PropertyNameChange"
    DROP_TYPE_CHANGE = "DropTypeChange"
    PROPERTY_DROP_PRICE_CHANGE = "PropertyDropPriceChange"
    TRUE_DUPLICATE = "TrueDuplicate"
    UNKNOWN_PROP_DIFF = "UnknownPropDiff"
    UNKNOWN = "Unknown"
    TOO_MANY = "TooMany"
    MULTI = "Multi"
    EVENT_PROPS_INCOMPATIBLE = "EventPropsIncompatible"


class ResolutionKind(str, Enum):
    """How a duplicate group collapses into canonical output.

    KEEP_ONE: A single chosen or synthesized record survives.
    KEEP_MANY: Several records survive, possibly with rewritten keys.
    ERROR: Nothing is emitted; the group goes to manual review.
    """

    KEEP_ONE = "KeepOne"
    KEEP_MANY = "KeepMany"
    ERROR = "Error"


#: Dupe kinds whose resolution only swaps in the later event properties.
METADATA_CHURN_KINDS: frozenset = frozenset({
    DupeKind.PROPERTY_NAME_CHANGE,
    DupeKind.DROP_TYPE_CHANGE,
    DupeKind.PROPERTY_DROP_PRICE_CHANGE,
})

#: Dupe kinds that are never auto-resolved.
MANUAL_REVIEW_KINDS: frozenset = frozenset({
    DupeKind.UNKNOWN,
    DupeKind.UNKNOWN_PROP_DIFF,
    DupeKind.TOO_MANY,
    DupeKind.EVENT_PROPS_INCOMPATIBLE,
    DupeKind.MULTI,
})


# =============================================================================
# EventRecord
# =============================================================================


class EventRecord(BaseModel):
    """Immutable snapshot of one event from the analytics export.

    Export keys prefixed with ``$`` are exposed under Python names via
    aliases (``$insert_id`` -> ``idempotency_key``). Keys the model does
    not declare are kept as extras so a round trip never drops data.

    Only a handful of fields drive dedup decisions: ``idempotency_key``,
    ``event_type``, ``client_upload_time`` and ``event_properties``. The
    rest are descriptive.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
    )

    idempotency_key: Optional[str] = Field(default=None, alias="$insert_id")
    insert_key: Optional[Any] = Field(default=None, alias="$insert_key")
    export_schema: Optional[Any] = Field(default=None, alias="$schema")
    adid: Optional[str] = None
    amplitude_attribution_ids: Optional[Any] = None
    amplitude_event_type: Optional[Any] = None
    amplitude_id: Optional[int] = None
    app: Optional[int] = None
    city: Optional[str] = None
    client_event_time: Optional[datetime] = None
    client_upload_time: Optional[datetime] = None
    country: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    data_type: Optional[str] = None
    device_brand: Optional[str] = None
    device_carrier: Optional[str] = None
    device_family: Optional[str] = None
    device_id: Optional[str] = None
    device_manufacturer: Optional[str] = None
    device_model: Optional[str] = None
    device_type: Optional[str] = None
    dma: Optional[str] = None
    event_id: Optional[int] = None
    event_properties: Optional[Dict[str, Any]] = None
    event_time: Optional[datetime] = None
    event_type: Optional[str] = None
    global_user_properties: Optional[Any] = None
    group_properties: Optional[Dict[str, Any]] = None
    groups: Optional[Dict[str, Any]] = None
    idfa: Optional[str] = None
    ip_address: Optional[str] = None
    is_attribution_event: Optional[Any] = None
    language: Optional[str] = None
    library: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    partner_id: Optional[Any] = None
    paying: Optional[Any] = None
    plan: Optional[Dict[str, Any]] = None
    platform: Optional[str] = None
    processed_time: Optional[str] = None
    region: Optional[str] = None
    sample_rate: Optional[Any] = None
    server_received_time: Optional[datetime] = None
    server_upload_time: Optional[datetime] = None
    session_id: Optional[int] = None
    source_id: Optional[Any] = None
    start_version: Optional[Any] = None
    user_creation_time: Optional[Any] = None
    user_id: Optional[str] = None
    user_properties: Optional[Dict[str, Any]] = None
    uuid: Optional[str] = None
    version_name: Optional[Any] = None

    @field_validator(*TIMESTAMP_FIELDS, mode="before")
    @classmethod
    def _parse_timestamps(cls, v: Any) -> Optional[datetime]:
        return parse_export_timestamp(v)

    @field_serializer(*TIMESTAMP_FIELDS)
    def _serialize_timestamps(self, v: Optional[datetime]) -> Optional[str]:
        return format_export_timestamp(v)

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def to_export_dict(self) -> Dict[str, Any]:
        """Serialize back into the export's JSON shape (``$`` keys restored)."""
        return self.model_dump(mode="json", by_alias=True)

    def with_event_properties(
        self, event_properties: Optional[Dict[str, Any]],
    ) -> EventRecord:
        """Return a copy carrying a different event properties map."""
        props = dict(event_properties) if event_properties is not None else None
        return self.model_copy(update={"event_properties": props})

    def with_idempotency_key(self, idempotency_key: Optional[str]) -> EventRecord:
        """Return a copy carrying a different idempotency key."""
        return self.model_copy(update={"idempotency_key": idempotency_key})


# =============================================================================
# Duplicate group and taxonomy
# =============================================================================


class DuplicateGroup(BaseModel):
    """All records sharing one idempotency key, in input order.

    A group always has at least two records; a lone record is not a
    duplicate and never becomes a group.

    Attributes:
        idempotency_key: The shared key.
        records: Records in the order they appeared in the input.
    """

    model_config = ConfigDict(frozen=True)

    idempotency_key: str = Field(
        ..., description="Idempotency key shared by every record",
    )
    records: Tuple[EventRecord, ...] = Field(
        ..., description="Records in input order",
    )

    @field_validator("records")
    @classmethod
    def validate_records(cls, v: Tuple[EventRecord, ...]) -> Tuple[EventRecord, ...]:
        """Validate a group holds at least two records."""
        if len(v) < 2:
            raise ValueError(
                f"a duplicate group needs at least 2 records, got {len(v)}"
            )
        return v

    @model_validator(mode="after")
    def validate_shared_key(self) -> DuplicateGroup:
        """Validate every record carries the group's key."""
        for position, record in enumerate(self.records):
            if record.idempotency_key != self.idempotency_key:
                raise ValueError(
                    f"record at position {position} has key "
                    f"{record.idempotency_key!r}, expected "
                    f"{self.idempotency_key!r}"
                )
        return self

    @property
    def size(self) -> int:
        """Number of records in the group."""
        return len(self.records)


class DupeType(BaseModel):
    """Classification of one duplicate group.

    ``sub_types`` is populated only for ``DupeKind.MULTI`` and lists every
    rule outcome that fired, in rule order. Multi never nests.

    Attributes:
        kind: The dupe kind.
        records: The classified group's records, in input order.
        sub_types: Component classifications when kind is MULTI.
    """

    model_config = ConfigDict(frozen=True)

    kind: DupeKind
    records: Tuple[EventRecord, ...] = Field(default_factory=tuple)
    sub_types: Tuple[DupeType, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def validate_sub_types(self) -> DupeType:
        """Validate that only MULTI carries sub types and that they are flat."""
        if self.kind == DupeKind.MULTI:
            if len(self.sub_types) < 2:
                raise ValueError("Multi requires at least 2 sub types")
            if any(st.kind == DupeKind.MULTI for st in self.sub_types):
                raise ValueError("Multi sub types must not be Multi")
        elif self.sub_types:
            raise ValueError(f"{self.kind.value} must not carry sub types")
        return self

    @classmethod
    def of(cls, kind: DupeKind, records: Tuple[EventRecord, ...]) -> DupeType:
        """Build a single (non-Multi) dupe type."""
        return cls(kind=kind, records=tuple(records))

    @classmethod
    def multi(
        cls,
        records: Tuple[EventRecord, ...],
        kinds: Tuple[DupeKind, ...],
    ) -> DupeType:
        """Build a Multi dupe type from the kinds that fired, in order."""
        records = tuple(records)
        return cls(
            kind=DupeKind.MULTI,
            records=records,
            sub_types=tuple(cls.of(k, records) for k in kinds),
        )

    @property
    def tag(self) -> str:
        """Tag name used for reporting and report directories."""
        return self.kind.value

    @property
    def sub_type_tags(self) -> List[str]:
        """Tag names of the component classifications (empty unless Multi)."""
        return [st.tag for st in self.sub_types]


DupeType.model_rebuild()


class Resolution(BaseModel):
    """Outcome of resolving one classified duplicate group.

    Attributes:
        kind: KeepOne, KeepMany or Error.
        records: Surviving records (exactly one for KeepOne, none for Error).
        dupe_type: Originating classification (always set for Error).
        warnings: Review flags raised while resolving.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResolutionKind
    records: Tuple[EventRecord, ...] = Field(default_factory=tuple)
    dupe_type: Optional[DupeType] = None
    warnings: Tuple[str, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def validate_shape(self) -> Resolution:
        """Validate the record count matches the resolution kind."""
        if self.kind == ResolutionKind.KEEP_ONE and len(self.records) != 1:
            raise ValueError(
                f"KeepOne requires exactly 1 record, got {len(self.records)}"
            )
        if self.kind == ResolutionKind.KEEP_MANY and not self.records:
            raise ValueError("KeepMany requires at least 1 record")
        if self.kind == ResolutionKind.ERROR:
            if self.records:
                raise ValueError("Error must not carry records")
            if self.dupe_type is None:
                raise ValueError("Error must carry the originating dupe type")
        return self

    @classmethod
    def keep_one(
        cls,
        record: EventRecord,
        dupe_type: Optional[DupeType] = None,
        warnings: Tuple[str, ...] = (),
    ) -> Resolution:
        return cls(
            kind=ResolutionKind.KEEP_ONE,
            records=(record,),
            dupe_type=dupe_type,
            warnings=tuple(warnings),
        )

    @classmethod
    def keep_many(
        cls,
        records: Tuple[EventRecord, ...],
        dupe_type: Optional[DupeType] = None,
        warnings: Tuple[str, ...] = (),
    ) -> Resolution:
        return cls(
            kind=ResolutionKind.KEEP_MANY,
            records=tuple(records),
            dupe_type=dupe_type,
            warnings=tuple(warnings),
        )

    @classmethod
    def error(cls, dupe_type: DupeType) -> Resolution:
        return cls(kind=ResolutionKind.ERROR, dupe_type=dupe_type)

    @property
    def is_resolved(self) -> bool:
        """True when the group was auto-resolved (not routed to review)."""
        return self.kind != ResolutionKind.ERROR

    @property
    def record(self) -> EventRecord:
        """The single surviving record of a KeepOne resolution."""
        if self.kind != ResolutionKind.KEEP_ONE:
            raise ValueError(f"{self.kind.value} has no single record")
        return self.records[0]

    def to_report_dict(self) -> Dict[str, Any]:
        """Serialize in the report shape consumed by review tooling."""
        if self.kind == ResolutionKind.KEEP_ONE:
            payload: Dict[str, Any] = {
                "type": self.kind.value,
                "kept_event": self.records[0].to_export_dict(),
            }
        elif self.kind == ResolutionKind.KEEP_MANY:
            payload = {
                "type": self.kind.value,
                "kept_events": [r.to_export_dict() for r in self.records],
            }
        else:
            payload = {
                "type": self.kind.value,
                "error_type": self.dupe_type.tag if self.dupe_type else None,
            }
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        return payload


# =============================================================================
# Differences and analyses
# =============================================================================


class FieldDifference(BaseModel):
    """Values of one differing key on each side of a comparison.

    ``None`` stands for both an explicit null and an absent key in the
    reported values. A key that is null on one side and absent on the
    other still counts as a difference.
    """

    model_config = ConfigDict(frozen=True)

    value_a: Any = None
    value_b: Any = None

    def swapped(self) -> FieldDifference:
        """Return the same difference seen from the other side."""
        return FieldDifference(value_a=self.value_b, value_b=self.value_a)

    def to_report_dict(self) -> Dict[str, Any]:
        return {"event1_value": self.value_a, "event2_value": self.value_b}


class GroupAnalysis(BaseModel):
    """Everything the report writer needs about one duplicate group.

    Attributes:
        idempotency_key: The group's shared key.
        duplicate_count: Number of records in the group.
        dupe_type: Classification result.
        resolution: Resolution result.
        records: Group records in input order.
        field_differences: Whole-record diff of the first two records
            (populated for groups routed to manual review).
        event_properties_differences: Property diff of the first two records.
        renamed_property_keys: Property keys that look renamed (same values
            under different keys); diagnostic only.
        provenance_hash: SHA-256 hash of the group's inputs and outcome.
    """

    model_config = ConfigDict(frozen=True)

    idempotency_key: str
    duplicate_count: int
    dupe_type: DupeType
    resolution: Resolution
    records: Tuple[EventRecord, ...]
    field_differences: Dict[str, FieldDifference] = Field(default_factory=dict)
    event_properties_differences: Dict[str, FieldDifference] = Field(
        default_factory=dict,
    )
    renamed_property_keys: Tuple[str, ...] = Field(default_factory=tuple)
    provenance_hash: str = ""

    def to_report_dict(self) -> Dict[str, Any]:
        """Serialize in the per-group artifact shape."""
        payload: Dict[str, Any] = {
            "insert_id": self.idempotency_key,
            "duplicate_count": self.duplicate_count,
            "dupe_type": self.dupe_type.tag,
            "resolution": self.resolution.to_report_dict(),
            "events": [r.to_export_dict() for r in self.records],
        }
        if self.dupe_type.sub_types:
            payload["dupe_types"] = self.dupe_type.sub_type_tags
        if self.field_differences:
            payload["field_differences"] = {
                k: v.to_report_dict() for k, v in self.field_differences.items()
            }
        if self.event_properties_differences:
            payload["event_properties_differences"] = {
                k: v.to_report_dict()
                for k, v in self.event_properties_differences.items()
            }
        if self.renamed_property_keys:
            payload["renamed_property_keys"] = list(self.renamed_property_keys)
        if self.provenance_hash:
            payload["provenance_hash"] = self.provenance_hash
        return payload


class ReconciliationSummary(BaseModel):
    """Run-level counts for one reconciliation pass."""

    total_events: int = 0
    unique_idempotency_keys: int = 0
    duplicate_idempotency_keys_count: int = 0
    skipped_missing_key: int = 0
    dupe_type_counts: Dict[str, int] = Field(default_factory=dict)
    resolution_counts: Dict[str, int] = Field(default_factory=dict)
    unresolved_count: int = 0
    duplicate_idempotency_keys: List[str] = Field(default_factory=list)
    keys_by_dupe_type: Dict[str, List[str]] = Field(default_factory=dict)
    all_diff_fields: List[str] = Field(default_factory=list)
    all_event_properties_diff_fields: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    def to_report_dict(self) -> Dict[str, Any]:
        return {
            "total_events": self.total_events,
            "unique_insert_ids": self.unique_idempotency_keys,
            "duplicate_insert_ids_count": self.duplicate_idempotency_keys_count,
            "skipped_missing_insert_id": self.skipped_missing_key,
            "dupe_type_counts": dict(self.dupe_type_counts),
            "resolution_counts": dict(self.resolution_counts),
            "unresolved_count": self.unresolved_count,
            "duplicate_insert_ids": list(self.duplicate_idempotency_keys),
            "all_diff_fields": list(self.all_diff_fields),
            "all_event_properties_diff_fields": list(
                self.all_event_properties_diff_fields
            ),
        }


class ReconciliationReport(BaseModel):
    """Result of an analyze run: summary plus per-group analyses."""

    summary: ReconciliationSummary
    analyses: List[GroupAnalysis] = Field(default_factory=list)

    def by_key(self) -> Dict[str, GroupAnalysis]:
        return {a.idempotency_key: a for a in self.analyses}

    def unresolved(self) -> List[GroupAnalysis]:
        """Analyses whose resolution routed the group to manual review."""
        return [a for a in self.analyses if not a.resolution.is_resolved]


class CleanResult(BaseModel):
    """Result of a clean run: the de-duplicated export, ready to re-upload.

    Attributes:
        non_duplicate_records: Records whose key appeared once.
        resolved_records: Records emitted by duplicate-group resolutions.
        report: The analysis the resolutions came from.
    """

    non_duplicate_records: List[EventRecord] = Field(default_factory=list)
    resolved_records: List[EventRecord] = Field(default_factory=list)
    report: ReconciliationReport

    @property
    def total_output_records(self) -> int:
        return len(self.non_duplicate_records) + len(self.resolved_records)


class EventDifference(BaseModel):
    """One differing key between the same event in two snapshots."""

    model_config = ConfigDict(frozen=True)

    idempotency_key: str
    original_event: EventRecord
    comparison_event: EventRecord
    differences: Dict[str, FieldDifference] = Field(default_factory=dict)
    material_differences: Dict[str, FieldDifference] = Field(default_factory=dict)
    property_name_only: bool = False

    @property
    def is_cleaned(self) -> bool:
        """True when no material difference remains after cleaning."""
        return not self.material_differences or self.property_name_only

    def to_report_dict(self) -> Dict[str, Any]:
        return {
            "insert_id": self.idempotency_key,
            "original_event": self.original_event.to_export_dict(),
            "comparison_event": self.comparison_event.to_export_dict(),
            "differences": {
                k: {"original": v.value_a, "comparison": v.value_b}
                for k, v in self.differences.items()
            },
            "material_differences": sorted(self.material_differences),
            "property_name_only": self.property_name_only,
        }


class SnapshotComparison(BaseModel):
    """Key-by-key comparison of two full exports (A = original, B = comparison)."""

    total_original_events: int = 0
    total_comparison_events: int = 0
    skipped_missing_key: int = 0
    identical: List[str] = Field(default_factory=list)
    different: List[EventDifference] = Field(default_factory=list)
    only_in_original: List[EventRecord] = Field(default_factory=list)
    only_in_comparison: List[EventRecord] = Field(default_factory=list)

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "total_original_events": self.total_original_events,
                "total_comparison_events": self.total_comparison_events,
                "skipped_missing_insert_id": self.skipped_missing_key,
                "identical_events": len(self.identical),
                "different_events": len(self.different),
                "cleaned_differences": sum(
                    1 for d in self.different if d.is_cleaned
                ),
                "only_in_original": len(self.only_in_original),
                "only_in_comparison": len(self.only_in_comparison),
            },
            "identical_events": list(self.identical),
            "different_events": [d.idempotency_key for d in self.different],
            "only_in_original": [
                r.idempotency_key for r in self.only_in_original
            ],
            "only_in_comparison": [
                r.idempotency_key for r in self.only_in_comparison
            ],
        }


__all__ = [
    "EXPORT_TIMESTAMP_FORMAT",
    "TIMESTAMP_FIELDS",
    "VOLATILE_FIELDS",
    "NON_MATERIAL_SNAPSHOT_FIELDS",
    "METADATA_CHURN_KINDS",
    "MANUAL_REVIEW_KINDS",
    "parse_export_timestamp",
    "format_export_timestamp",
    "DupeKind",
    "ResolutionKind",
    "EventRecord",
    "DuplicateGroup",
    "DupeType",
    "Resolution",
    "FieldDifference",
    "GroupAnalysis",
    "ReconciliationSummary",
    "ReconciliationReport",
    "CleanResult",
    "EventDifference",
    "SnapshotComparison",
]
