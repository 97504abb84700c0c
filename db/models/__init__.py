"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.component import Component
from db.models.drawing import Drawing
from db.models.mapping_config import MappingConfig

__all__ = [
    "Component",
    "Drawing",
    "MappingConfig",
]
