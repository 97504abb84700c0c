"""
db/models/drawing.py

Drawing (isometric) registry per project.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ProjectScopedMixin, TimestampMixin


class Drawing(Base, ProjectScopedMixin, TimestampMixin):
    """
    One drawing referenced by imported components.

    ``drawing_no_norm`` is the trimmed, upper-cased, single-spaced drawing
    number used for matching; ``drawing_no_raw`` keeps the first spelling seen.
    """

    __tablename__ = "drawings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    drawing_no_raw: Mapped[str] = mapped_column(String(255), nullable=False)
    drawing_no_norm: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Normalized drawing number used for matching",
    )

    __table_args__ = (
        UniqueConstraint("project_id", "drawing_no_norm", name="uq_drawings_project_norm"),
        Index("ix_drawings_project_id", "project_id"),
    )
