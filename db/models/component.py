"""
db/models/component.py

Imported field components and field welds.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ProjectScopedMixin, TimestampMixin


class Component(Base, ProjectScopedMixin, TimestampMixin):
    """
    One tracked instance of a takeoff line or a field weld.

    A takeoff row with QTY = n produces n components sharing everything
    except the ``seq`` inside ``identity_key``. Threaded pipe is the
    exception: one aggregate row per pipe with summed linear feet.
    """

    __tablename__ = "components"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    drawing_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("drawings.id", ondelete="SET NULL"),
        nullable=True,
    )
    component_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="valve, pipe, field_weld, ...",
    )
    identity_key: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        comment="Structured identity; shape depends on component type",
    )
    identity_token: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Flattened identity key used for uniqueness",
    )
    attributes: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="Canonical field values from the import row",
    )
    source_row: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "project_id",
            "component_type",
            "identity_token",
            name="uq_components_project_type_identity",
        ),
        Index("ix_components_project_id", "project_id"),
        Index("ix_components_drawing_id", "drawing_id"),
    )
