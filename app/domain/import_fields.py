"""
app/domain/import_fields.py

Enumerated field tables for the supported import types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence


class FieldKind:
    IDENTIFIER = "identifier"
    TEXT = "text"
    ENUM = "enum"
    QUANTITY = "quantity"
    PERCENTAGE = "percentage"
    METADATA = "metadata"


class ImportType:
    COMPONENTS = "components"
    FIELD_WELDS = "field_welds"


@dataclass(frozen=True)
class FieldSpec:
    """
    One canonical field a source column may map to.
    """

    name: str
    kind: str = FieldKind.TEXT
    required: bool = False
    allowed_values: tuple[str, ...] = ()
    case_sensitive: bool = True


@dataclass(frozen=True)
class ImportDefinition:
    """
    Field table, default synonyms, and identity roles for one import type.

    ``creates_drawings`` is False where rows must reference drawings that an
    earlier takeoff import created.
    """

    import_type: str
    fields: tuple[FieldSpec, ...]
    synonyms: Mapping[str, tuple[str, ...]]
    drawing_field: str
    creates_drawings: bool = True

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.required)

    def spec_for(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def merged_synonyms(
        self,
        overrides: Mapping[str, Sequence[str]] | None = None,
    ) -> dict[str, tuple[str, ...]]:
        """
        Default synonyms with per-field caller overrides applied.
        """

        merged = {name: tuple(values) for name, values in self.synonyms.items()}
        for name, values in (overrides or {}).items():
            if name not in self.field_names:
                continue
            merged[name] = tuple(value for value in values if value and value.strip())
        return merged


COMPONENT_TYPES: tuple[str, ...] = (
    "Spool",
    "Field_Weld",
    "Valve",
    "Instrument",
    "Support",
    "Pipe",
    "Fitting",
    "Flange",
    "Tubing",
    "Hose",
    "Misc_Component",
    "Threaded_Pipe",
)

COLUMN_SYNONYMS: dict[str, tuple[str, ...]] = {
    "DRAWING": ("DRAWINGS", "DRAWING NUMBER", "DWG", "DWG NO", "DWG NUM"),
    "CMDTY CODE": ("COMMODITY CODE", "CMDTY", "COMMODITY", "CODE", "PART CODE"),
    "AREA": ("AREAS", "LOCATION", "ZONE"),
    "SYSTEM": ("SYSTEMS", "SYS"),
    "TEST_PACKAGE": ("TEST PACKAGE", "TEST PKG", "PKG", "PACKAGE"),
    "SIZE": ("NOM SIZE", "NOMINAL SIZE", "NOMSIZE"),
    "QTY": ("QUANTITY", "COUNT", "CNT"),
    "SPEC": ("SPECIFICATION", "MATERIAL SPEC", "MAT SPEC"),
    "COMMENTS": ("COMMENT", "NOTES", "NOTE", "REMARKS"),
}

COMPONENT_IMPORT = ImportDefinition(
    import_type=ImportType.COMPONENTS,
    fields=(
        FieldSpec("DRAWING", FieldKind.IDENTIFIER, required=True),
        FieldSpec(
            "TYPE",
            FieldKind.ENUM,
            required=True,
            allowed_values=COMPONENT_TYPES,
            # Takeoff files spell types in mixed case; stored as the listed spelling.
            case_sensitive=False,
        ),
        FieldSpec("QTY", FieldKind.QUANTITY, required=True),
        FieldSpec("CMDTY CODE", FieldKind.IDENTIFIER, required=True),
        FieldSpec("SIZE"),
        FieldSpec("SPEC"),
        FieldSpec("DESCRIPTION"),
        FieldSpec("COMMENTS"),
        FieldSpec("AREA", FieldKind.METADATA),
        FieldSpec("SYSTEM", FieldKind.METADATA),
        FieldSpec("TEST_PACKAGE", FieldKind.METADATA),
    ),
    synonyms=COLUMN_SYNONYMS,
    drawing_field="DRAWING",
)

WELD_ID_FIELD = "Weld ID Number"
WELD_DRAWING_FIELD = "Drawing / Isometric Number"
WELD_TYPES: tuple[str, ...] = ("BW", "SW", "FW", "TW")
NDE_TYPES: tuple[str, ...] = ("RT", "UT", "PT", "MT", "VT")
NDE_RESULTS: tuple[str, ...] = ("PASS", "FAIL", "PENDING")

FIELD_WELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    WELD_ID_FIELD: ("Weld #", "WLD #", "Weld No", "Weld Number", "Weld ID"),
    WELD_DRAWING_FIELD: ("ISO", "Isometric", "Drawing", "Drawing Number", "DWG"),
    "Weld Type": ("Type",),
    "SPEC": ("Specification",),
    "Weld Size": ("Size",),
    "Schedule": ("SCH", "Sched"),
    "Base Metal": ("Material",),
    "X-RAY %": ("XRay", "X-Ray", "RT %"),
    "Welder Stencil": ("Stencil", "Welder"),
    "Date Welded": ("Weld Date",),
    "Type of NDE Performed": ("NDE", "NDE Type"),
    "NDE Result": ("Status", "Result"),
    "Comments": ("Comment", "Notes", "Remarks"),
}

FIELD_WELD_IMPORT = ImportDefinition(
    import_type=ImportType.FIELD_WELDS,
    fields=(
        FieldSpec(WELD_ID_FIELD, FieldKind.IDENTIFIER, required=True),
        FieldSpec(WELD_DRAWING_FIELD, FieldKind.IDENTIFIER, required=True),
        FieldSpec("Weld Type", FieldKind.ENUM, required=True, allowed_values=WELD_TYPES),
        FieldSpec("SPEC"),
        FieldSpec("Weld Size"),
        FieldSpec("Schedule"),
        FieldSpec("Base Metal"),
        FieldSpec("X-RAY %", FieldKind.PERCENTAGE),
        FieldSpec("Welder Stencil"),
        FieldSpec("Date Welded"),
        FieldSpec("Type of NDE Performed", FieldKind.ENUM, allowed_values=NDE_TYPES),
        FieldSpec("NDE Result", FieldKind.ENUM, allowed_values=NDE_RESULTS),
        FieldSpec("Comments"),
    ),
    synonyms=FIELD_WELD_SYNONYMS,
    drawing_field=WELD_DRAWING_FIELD,
    creates_drawings=False,
)

IMPORT_DEFINITIONS: dict[str, ImportDefinition] = {
    COMPONENT_IMPORT.import_type: COMPONENT_IMPORT,
    FIELD_WELD_IMPORT.import_type: FIELD_WELD_IMPORT,
}


class UnknownImportTypeError(ValueError):
    """
    Raised when an import type has no field definition.
    """


def get_import_definition(import_type: str) -> ImportDefinition:
    definition = IMPORT_DEFINITIONS.get((import_type or "").strip().lower())
    if definition is None:
        allowed = ", ".join(sorted(IMPORT_DEFINITIONS))
        raise UnknownImportTypeError(f"Unknown import type {import_type!r}. Allowed values: {allowed}.")
    return definition
