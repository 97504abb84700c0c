"""
app/schemas package marker.
"""

from app.schemas.component_import import (
    ColumnMappingResponse,
    ColumnMappingResultResponse,
    ImportRowErrorResponse,
    ImportSummaryResponse,
)

__all__ = [
    "ColumnMappingResponse",
    "ColumnMappingResultResponse",
    "ImportRowErrorResponse",
    "ImportSummaryResponse",
]
