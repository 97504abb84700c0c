"""
app/schemas/component_import.py

Response schemas for component and field weld import endpoints.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from app.domain.import_models import ColumnMappingResult, ImportSummary


class ImportRowErrorResponse(BaseModel):
    """
    API response model for one row-level import error.
    """

    row: int = Field(..., ge=1)
    column: str | None = None
    message: str
    code: str


class ColumnMappingResponse(BaseModel):
    csv_column: str
    expected_field: str
    confidence: int = Field(..., ge=0, le=100)
    match_tier: Literal["exact", "case-insensitive", "synonym"]


class ColumnMappingResultResponse(BaseModel):
    mappings: list[ColumnMappingResponse] = Field(default_factory=list)
    unmapped_columns: list[str] = Field(default_factory=list)
    missing_required_fields: list[str] = Field(default_factory=list)
    has_all_required_fields: bool

    @classmethod
    def from_domain(cls, result: ColumnMappingResult) -> "ColumnMappingResultResponse":
        return cls(
            mappings=[
                ColumnMappingResponse(
                    csv_column=mapping.csv_column,
                    expected_field=mapping.expected_field,
                    confidence=mapping.confidence,
                    match_tier=mapping.match_tier.value,
                )
                for mapping in result.mappings
            ],
            unmapped_columns=list(result.unmapped_columns),
            missing_required_fields=list(result.missing_required_fields),
            has_all_required_fields=result.has_all_required_fields,
        )


class ImportSummaryResponse(BaseModel):
    """
    API response model for one import run.

    Aborted runs are returned with ``status="aborted"`` and ``file_error`` set;
    they are not HTTP errors.
    """

    import_type: str
    status: Literal["completed", "aborted", "cancelled"]
    total_rows: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    errors: list[ImportRowErrorResponse] = Field(default_factory=list)
    file_error: str | None = None
    missing_required_fields: list[str] = Field(default_factory=list)
    column_mapping: ColumnMappingResultResponse | None = None

    @classmethod
    def from_domain(cls, summary: ImportSummary) -> "ImportSummaryResponse":
        return cls(
            import_type=summary.import_type,
            status=summary.status,
            total_rows=summary.total_rows,
            success_count=summary.success_count,
            error_count=summary.error_count,
            errors=[ImportRowErrorResponse(**error.to_dict()) for error in summary.errors],
            file_error=summary.file_error,
            missing_required_fields=list(summary.missing_required_fields),
            column_mapping=(
                ColumnMappingResultResponse.from_domain(summary.column_mapping)
                if summary.column_mapping is not None
                else None
            ),
        )
