"""
app/repositories package marker.
"""

from app.repositories.component_import_repository import ComponentImportRepository
from app.repositories.mapping_config_repository import MappingConfigRepository

__all__ = [
    "ComponentImportRepository",
    "MappingConfigRepository",
]
