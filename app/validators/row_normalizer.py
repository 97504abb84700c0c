"""
app/validators/row_normalizer.py

Row-level validation and type coercion for component and field weld imports.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from app.domain.import_fields import FieldKind, FieldSpec, ImportDefinition
from app.domain.import_models import (
    METADATA_KEYS,
    CellValue,
    ColumnMappingResult,
    NormalizedRow,
    RowError,
    RowErrorCode,
)


class RowNormalizer:
    """
    Validates and parses one raw row against a file-wide column mapping.

    Checks run in a fixed order and the first failure is reported:
    required cells, then enumerated values, then numeric values. Required
    field *columns* are checked once per file by ``ensure_required_fields_mapped``.
    """

    def __init__(self, definition: ImportDefinition, *, max_quantity: int = 10_000) -> None:
        self._definition = definition
        self._max_quantity = max_quantity

    def normalize(
        self,
        raw_row: Mapping[str, Any],
        mapping: ColumnMappingResult,
        row_number: int,
    ) -> NormalizedRow | RowError:
        cells: list[tuple[FieldSpec, str, str | None]] = []
        for spec in self._definition.fields:
            column = mapping.column_for(spec.name)
            if column is None:
                continue
            cells.append((spec, column, self._clean(raw_row.get(column))))

        for spec, column, value in cells:
            if spec.required and value is None:
                return RowError(
                    row=row_number,
                    column=column,
                    message=f"{spec.name} is required but the cell is empty.",
                    code=RowErrorCode.MISSING_REQUIRED_FIELD,
                )

        values: dict[str, CellValue] = {}
        metadata: dict[str, str] = {}

        for spec, column, value in cells:
            if spec.kind != FieldKind.ENUM:
                continue
            if value is None:
                values[spec.name] = None
                continue
            canonical = self._match_enum(spec, value)
            if canonical is None:
                allowed = ", ".join(spec.allowed_values)
                return RowError(
                    row=row_number,
                    column=column,
                    message=f"Invalid {spec.name} {value!r}. Allowed values: {allowed}.",
                    code=RowErrorCode.INVALID_ENUM_VALUE,
                )
            values[spec.name] = canonical

        for spec, column, value in cells:
            if spec.kind == FieldKind.QUANTITY:
                parsed = self._parse_quantity(spec, column, value, row_number)
            elif spec.kind == FieldKind.PERCENTAGE:
                parsed = self._parse_percentage(spec, column, value, row_number)
            else:
                continue
            if isinstance(parsed, RowError):
                return parsed
            values[spec.name] = parsed

        for spec, _column, value in cells:
            if spec.kind in (FieldKind.ENUM, FieldKind.QUANTITY, FieldKind.PERCENTAGE):
                continue
            if spec.kind == FieldKind.METADATA:
                if value is not None and spec.name in METADATA_KEYS:
                    metadata[spec.name] = value
                continue
            values[spec.name] = value

        return NormalizedRow(
            row_number=row_number,
            import_type=self._definition.import_type,
            values=values,
            metadata=metadata,
        )

    @staticmethod
    def _match_enum(spec: FieldSpec, value: str) -> str | None:
        if spec.case_sensitive:
            return value if value in spec.allowed_values else None
        folded = value.casefold()
        for allowed in spec.allowed_values:
            if allowed.casefold() == folded:
                return allowed
        return None

    def _parse_quantity(
        self,
        spec: FieldSpec,
        column: str,
        value: str | None,
        row_number: int,
    ) -> int | None | RowError:
        if value is None:
            return None

        number = self._to_decimal(value)
        if number is None:
            return RowError(
                row=row_number,
                column=column,
                message=f"{spec.name} must be a number, got {value!r}.",
                code=RowErrorCode.INVALID_NUMBER,
            )
        if number < 0:
            return RowError(
                row=row_number,
                column=column,
                message=f"{spec.name} must be >= 0, got {value!r}.",
                code=RowErrorCode.INVALID_QUANTITY,
            )
        if number != number.to_integral_value():
            return RowError(
                row=row_number,
                column=column,
                message=f"{spec.name} must be a whole number, got {value!r}.",
                code=RowErrorCode.INVALID_QUANTITY,
            )
        if number > self._max_quantity:
            return RowError(
                row=row_number,
                column=column,
                message=f"{spec.name} must be <= {self._max_quantity}, got {value!r}.",
                code=RowErrorCode.INVALID_QUANTITY,
            )
        quantity = int(number)
        if quantity == 0:
            return RowError(
                row=row_number,
                column=column,
                message=f"{spec.name} is 0; nothing to import.",
                code=RowErrorCode.ZERO_QUANTITY,
            )
        return quantity

    def _parse_percentage(
        self,
        spec: FieldSpec,
        column: str,
        value: str | None,
        row_number: int,
    ) -> float | None | RowError:
        if value is None:
            return None

        number = self._to_decimal(value.replace("%", "").strip())
        if number is None:
            return RowError(
                row=row_number,
                column=column,
                message=f"{spec.name} must be a percentage, got {value!r}.",
                code=RowErrorCode.INVALID_NUMBER,
            )

        # Excel exports percentages as fractions (0.05 == 5%).
        if 0 < number <= 1:
            number *= 100
        if number < 0 or number > 100:
            return RowError(
                row=row_number,
                column=column,
                message=f"{spec.name} must be between 0 and 100, got {value!r}.",
                code=RowErrorCode.INVALID_NUMBER,
            )
        return float(number)

    @staticmethod
    def _to_decimal(raw: str) -> Decimal | None:
        try:
            number = Decimal(raw.replace(",", ""))
        except (InvalidOperation, ValueError):
            return None
        if not number.is_finite():
            return None
        return number

    @staticmethod
    def _clean(value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None
