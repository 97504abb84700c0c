"""create drawings, components and mapping_configs tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "drawings",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("drawing_no_raw", sa.String(length=255), nullable=False),
        sa.Column("drawing_no_norm", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "drawing_no_norm", name="uq_drawings_project_norm"),
    )
    op.create_index("ix_drawings_project_id", "drawings", ["project_id"], unique=False)

    op.create_table(
        "components",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("drawing_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("component_type", sa.String(length=32), nullable=False),
        sa.Column("identity_key", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("identity_token", sa.String(length=512), nullable=False),
        sa.Column("attributes", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("source_row", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["drawing_id"], ["drawings.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id",
            "component_type",
            "identity_token",
            name="uq_components_project_type_identity",
        ),
    )
    op.create_index("ix_components_project_id", "components", ["project_id"], unique=False)
    op.create_index("ix_components_drawing_id", "components", ["drawing_id"], unique=False)

    op.create_table(
        "mapping_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("import_type", sa.String(length=32), nullable=False),
        sa.Column("synonym_overrides_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("metadata_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "name",
            "project_id",
            "import_type",
            name="uq_mapping_configs_name_project_type",
        ),
    )
    op.create_index("ix_mapping_configs_name", "mapping_configs", ["name"], unique=False)
    op.create_index(
        "ix_mapping_configs_project_type_active",
        "mapping_configs",
        ["project_id", "import_type", "is_active"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_mapping_configs_project_type_active", table_name="mapping_configs")
    op.drop_index("ix_mapping_configs_name", table_name="mapping_configs")
    op.drop_table("mapping_configs")
    op.drop_index("ix_components_drawing_id", table_name="components")
    op.drop_index("ix_components_project_id", table_name="components")
    op.drop_table("components")
    op.drop_index("ix_drawings_project_id", table_name="drawings")
    op.drop_table("drawings")
