"""
app/api/routers/component_import.py

Component and field weld import HTTP endpoints.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Path, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_import_upload
from app.domain.import_fields import UnknownImportTypeError, get_import_definition
from app.repositories.component_import_repository import ComponentImportRepository
from app.repositories.mapping_config_repository import MappingConfigRepository
from app.schemas.component_import import ImportSummaryResponse
from app.services.import_orchestrator import ImportOrchestrator, get_import_orchestrator
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["imports"])


@router.post(
    "/projects/{project_id}/imports/{import_type}",
    response_model=ImportSummaryResponse,
)
def import_file(
    project_id: uuid.UUID = Path(..., description="Project receiving the imported rows"),
    import_type: str = Path(..., description="components or field_welds"),
    file: UploadFile = Depends(get_import_upload),
    mapping_config_name: str | None = Query(
        default=None,
        description="Optional stored synonym override config name",
    ),
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
) -> ImportSummaryResponse:
    """
    Import one CSV/XLSX file of components or field welds into a project.
    """

    try:
        definition = get_import_definition(import_type)
    except UnknownImportTypeError as exc:
        file.file.close()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    try:
        synonyms = MappingConfigRepository(db).get_synonym_overrides(
            import_type=definition.import_type,
            name=mapping_config_name,
            project_id=project_id,
        )
        if mapping_config_name and synonyms is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Mapping config {mapping_config_name!r} not found.",
            )

        sink = ComponentImportRepository(
            db,
            project_id=project_id,
            import_type=definition.import_type,
        )
        summary = orchestrator.run(
            file.file,
            definition.import_type,
            sink=sink,
            synonyms=synonyms,
            filename=file.filename,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Import failed for project_id=%s import_type=%s", project_id, import_type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist imported rows.",
        ) from exc
    finally:
        file.file.close()

    return ImportSummaryResponse.from_domain(summary)
