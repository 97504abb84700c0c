"""
app/validators package marker.
"""

from app.validators.mapping_validator import (
    MissingRequiredFieldsError,
    ensure_required_fields_mapped,
)
from app.validators.row_normalizer import RowNormalizer

__all__ = [
    "MissingRequiredFieldsError",
    "RowNormalizer",
    "ensure_required_fields_mapped",
]
