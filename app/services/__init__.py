"""
app/services package marker.
"""

from app.services.import_orchestrator import (
    BatchPersistenceError,
    BatchResult,
    ImportOrchestrator,
    ImportSink,
    get_import_orchestrator,
)

__all__ = [
    "BatchPersistenceError",
    "BatchResult",
    "ImportOrchestrator",
    "ImportSink",
    "get_import_orchestrator",
]
