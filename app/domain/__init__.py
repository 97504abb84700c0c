"""
app/domain package marker.
"""

from app.domain.import_fields import (
    COMPONENT_IMPORT,
    FIELD_WELD_IMPORT,
    ImportDefinition,
    ImportType,
    UnknownImportTypeError,
    get_import_definition,
)
from app.domain.import_models import (
    ColumnMapping,
    ColumnMappingResult,
    IdentityKey,
    IdentityKind,
    ImportStage,
    ImportSummary,
    MatchTier,
    NormalizedRow,
    ResolvedEntity,
    RowError,
    RowErrorCode,
)

__all__ = [
    "COMPONENT_IMPORT",
    "FIELD_WELD_IMPORT",
    "ColumnMapping",
    "ColumnMappingResult",
    "IdentityKey",
    "IdentityKind",
    "ImportDefinition",
    "ImportStage",
    "ImportSummary",
    "ImportType",
    "MatchTier",
    "NormalizedRow",
    "ResolvedEntity",
    "RowError",
    "RowErrorCode",
    "UnknownImportTypeError",
    "get_import_definition",
]
