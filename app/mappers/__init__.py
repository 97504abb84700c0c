"""
app/mappers package marker.
"""

from app.mappers.column_matcher import ColumnMatcher, normalize_header

__all__ = [
    "ColumnMatcher",
    "normalize_header",
]
