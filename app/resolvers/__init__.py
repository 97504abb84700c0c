"""
app/resolvers package marker.
"""

from app.resolvers.identity_resolver import (
    NO_SIZE,
    IdentityResolver,
    normalize_drawing_number,
    normalize_size,
)

__all__ = [
    "NO_SIZE",
    "IdentityResolver",
    "normalize_drawing_number",
    "normalize_size",
]
