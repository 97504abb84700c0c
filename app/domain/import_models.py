"""
app/domain/import_models.py

Domain models used by the component and field weld import flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

CellValue = Union[str, int, float, None]

METADATA_KEYS: tuple[str, ...] = ("AREA", "SYSTEM", "TEST_PACKAGE")


class MatchTier(str, Enum):
    EXACT = "exact"
    CASE_INSENSITIVE = "case-insensitive"
    SYNONYM = "synonym"

    @property
    def confidence(self) -> int:
        return _TIER_CONFIDENCE[self]


_TIER_CONFIDENCE: dict[MatchTier, int] = {
    MatchTier.EXACT: 100,
    MatchTier.CASE_INSENSITIVE: 95,
    MatchTier.SYNONYM: 85,
}


class ImportStage(str, Enum):
    """
    Pipeline states of one import run.
    """

    PARSING = "parsing"
    MATCHING = "matching"
    REQUIRED_FIELDS_MISSING = "required_fields_missing"
    ABORTED = "aborted"
    NORMALIZING_ROW = "normalizing_row"
    RESOLVING = "resolving"
    BATCHING = "batching"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RowErrorCode:
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    INVALID_NUMBER = "invalid_number"
    INVALID_QUANTITY = "invalid_quantity"
    ZERO_QUANTITY = "zero_quantity"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    IDENTITY_CONFLICT = "identity_conflict"
    DRAWING_NOT_FOUND = "drawing_not_found"
    BATCH_FAILED = "batch_failed"
    IMPORT_CANCELLED = "import_cancelled"


@dataclass(frozen=True)
class ColumnMapping:
    """
    One detected header -> canonical field relationship.
    """

    csv_column: str
    expected_field: str
    match_tier: MatchTier

    @property
    def confidence(self) -> int:
        return self.match_tier.confidence


@dataclass(frozen=True)
class ColumnMappingResult:
    """
    Every mapping detected for one file plus what could not be mapped.
    """

    mappings: tuple[ColumnMapping, ...]
    unmapped_columns: tuple[str, ...]
    missing_required_fields: tuple[str, ...]

    @property
    def has_all_required_fields(self) -> bool:
        return not self.missing_required_fields

    def column_for(self, expected_field: str) -> str | None:
        for mapping in self.mappings:
            if mapping.expected_field == expected_field:
                return mapping.csv_column
        return None

    def field_for(self, csv_column: str) -> str | None:
        for mapping in self.mappings:
            if mapping.csv_column == csv_column:
                return mapping.expected_field
        return None

    def mapping_for(self, expected_field: str) -> ColumnMapping | None:
        for mapping in self.mappings:
            if mapping.expected_field == expected_field:
                return mapping
        return None


@dataclass(frozen=True)
class RowError:
    """
    One row-level import failure.
    """

    row: int
    message: str
    code: str
    column: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "column": self.column,
            "message": self.message,
            "code": self.code,
        }


@dataclass(frozen=True)
class NormalizedRow:
    """
    Typed canonical values for one valid source row.

    ``metadata`` only ever holds keys from ``METADATA_KEYS``.
    """

    row_number: int
    import_type: str
    values: Mapping[str, CellValue]
    metadata: Mapping[str, str] = field(default_factory=dict)

    def get(self, expected_field: str) -> CellValue:
        if expected_field in self.values:
            return self.values[expected_field]
        return self.metadata.get(expected_field)

    def to_canonical_dict(self) -> dict[str, CellValue]:
        """
        Re-serialize to canonical field names, metadata included.
        """

        payload: dict[str, CellValue] = dict(self.values)
        payload.update(self.metadata)
        return payload


class IdentityKind:
    COMPONENT = "component"
    SPOOL = "spool"
    TAKEOFF_WELD = "takeoff_weld"
    THREADED_PIPE = "threaded_pipe"
    FIELD_WELD = "field_weld"


@dataclass(frozen=True)
class IdentityKey:
    """
    Scope-unique key assigned to one imported entity instance.

    ``commodity_code``/``size`` are set for components, ``weld_id`` for
    field welds. Spools and takeoff welds are identified by their commodity
    code alone; threaded pipe rows share one aggregate key per drawing,
    size and commodity.
    """

    kind: str
    drawing_norm: str
    seq: int
    commodity_code: str | None = None
    size: str | None = None
    weld_id: str | None = None

    @property
    def is_aggregate(self) -> bool:
        return self.kind == IdentityKind.THREADED_PIPE

    @property
    def pipe_id(self) -> str:
        return f"{self.drawing_norm}-{self.size}-{self.commodity_code}-AGG"

    def as_dict(self) -> dict[str, Any]:
        if self.kind == IdentityKind.FIELD_WELD:
            return {
                "weld_id": self.weld_id,
                "drawing_norm": self.drawing_norm,
                "seq": self.seq,
            }
        if self.kind == IdentityKind.SPOOL:
            return {"spool_id": self.commodity_code}
        if self.kind == IdentityKind.TAKEOFF_WELD:
            return {"weld_number": self.commodity_code}
        if self.kind == IdentityKind.THREADED_PIPE:
            return {"pipe_id": self.pipe_id}
        return {
            "drawing_norm": self.drawing_norm,
            "commodity_code": self.commodity_code,
            "size": self.size,
            "seq": self.seq,
        }

    def unique_token(self) -> str:
        """
        String the persistence layer enforces uniqueness on.

        Weld ids are unique per drawing, so their seq is not part of it.
        """

        if self.kind == IdentityKind.FIELD_WELD:
            return f"{self.drawing_norm}|{(self.weld_id or '').upper()}"
        if self.kind == IdentityKind.SPOOL:
            return f"spool_id:{self.commodity_code}"
        if self.kind == IdentityKind.TAKEOFF_WELD:
            return f"weld_number:{self.commodity_code}"
        if self.kind == IdentityKind.THREADED_PIPE:
            return f"pipe_id:{self.pipe_id}"
        return f"{self.drawing_norm}|{self.commodity_code}|{self.size}|{self.seq}"


@dataclass(frozen=True)
class ResolvedEntity:
    """
    A normalized row with its identity key(s); ready for persistence.
    """

    row: NormalizedRow
    identity_keys: tuple[IdentityKey, ...]

    @property
    def row_number(self) -> int:
        return self.row.row_number

    @property
    def identity_key(self) -> IdentityKey:
        return self.identity_keys[0]


@dataclass(frozen=True)
class ImportSummary:
    """
    End-of-run import summary.
    """

    import_type: str
    status: str
    total_rows: int
    success_count: int
    error_count: int
    errors: list[RowError] = field(default_factory=list)
    file_error: str | None = None
    missing_required_fields: tuple[str, ...] = ()
    column_mapping: ColumnMappingResult | None = None

    def __post_init__(self) -> None:
        if self.success_count + self.error_count != self.total_rows:
            raise ValueError(
                "ImportSummary counts are inconsistent: "
                f"{self.success_count} + {self.error_count} != {self.total_rows}."
            )
