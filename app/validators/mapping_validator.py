"""
app/validators/mapping_validator.py

File-level gate over column matching results.
"""

from __future__ import annotations

from typing import Any, Sequence

from app.domain.import_models import ColumnMappingResult


class MissingRequiredFieldsError(ValueError):
    """
    Raised when one or more required fields have no source column.
    """

    def __init__(
        self,
        *,
        missing_fields: Sequence[str],
        unmapped_columns: Sequence[str] = (),
    ) -> None:
        self.missing_fields = tuple(missing_fields)
        self.unmapped_columns = tuple(unmapped_columns)
        self.message = f"Missing required fields: {', '.join(self.missing_fields)}."
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "missing_fields": list(self.missing_fields),
            "unmapped_columns": list(self.unmapped_columns),
        }


def ensure_required_fields_mapped(mapping: ColumnMappingResult) -> None:
    """
    Reject the whole file when the matcher left a required field unmapped.
    """

    if mapping.has_all_required_fields:
        return
    raise MissingRequiredFieldsError(
        missing_fields=mapping.missing_required_fields,
        unmapped_columns=mapping.unmapped_columns,
    )
