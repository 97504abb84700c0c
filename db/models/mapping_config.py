"""
db/models/mapping_config.py

Stored column synonym overrides for component and field weld imports.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class MappingConfig(Base, TimestampMixin):
    __tablename__ = "mapping_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        comment="Human-readable config name",
    )
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        comment="Optional project scope; NULL applies to every project",
    )
    import_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="components or field_welds",
    )
    synonym_overrides_json: Mapped[dict[str, list[str]]] = mapped_column(
        JSONB,
        nullable=False,
        comment="Canonical field -> header synonyms replacing the defaults",
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "name",
            "project_id",
            "import_type",
            name="uq_mapping_configs_name_project_type",
        ),
        Index("ix_mapping_configs_name", "name"),
        Index("ix_mapping_configs_project_type_active", "project_id", "import_type", "is_active"),
    )
