"""
app/repositories/mapping_config_repository.py

Persistence helpers for stored column synonym overrides.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.mapping_config import MappingConfig


class MappingConfigRepository:
    """
    Repository for lookups of import mapping configurations.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_active(
        self,
        *,
        import_type: str,
        name: str | None = None,
        project_id: uuid.UUID | None = None,
    ) -> MappingConfig | None:
        """
        Resolve one active config for an import type.

        A project-scoped config wins over a global (NULL project) one; among
        equals the most recently updated wins.
        """

        stmt = select(MappingConfig).where(
            MappingConfig.is_active.is_(True),
            MappingConfig.import_type == import_type,
        )
        if name:
            stmt = stmt.where(MappingConfig.name == name.strip())
        if project_id is None:
            stmt = stmt.where(MappingConfig.project_id.is_(None))
        else:
            stmt = stmt.where(
                (MappingConfig.project_id == project_id) | MappingConfig.project_id.is_(None)
            )
        stmt = stmt.order_by(
            MappingConfig.project_id.is_(None),
            MappingConfig.updated_at.desc(),
        )
        return self._session.execute(stmt).scalars().first()

    def get_synonym_overrides(
        self,
        *,
        import_type: str,
        name: str | None = None,
        project_id: uuid.UUID | None = None,
    ) -> dict[str, list[str]] | None:
        config = self.get_active(import_type=import_type, name=name, project_id=project_id)
        if config is None:
            return None
        return {
            str(field): [str(synonym) for synonym in synonyms]
            for field, synonyms in (config.synonym_overrides_json or {}).items()
        }

