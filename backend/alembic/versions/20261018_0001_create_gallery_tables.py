"""create galleries and media_assets tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "galleries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("share_slug", sa.String(length=32), nullable=False),
        sa.Column("shared", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("share_slug", name="uq_galleries_share_slug"),
    )
    op.create_index("ix_galleries_owner_id", "galleries", ["owner_id"])

    op.create_table(
        "media_assets",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("gallery_id", sa.String(length=36), sa.ForeignKey("galleries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("object_key", sa.String(length=1024), nullable=False),
        sa.Column("storage_name", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=1024), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("shared", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("share_slug", sa.String(length=32), nullable=True),
        sa.UniqueConstraint("share_slug", name="uq_media_assets_share_slug"),
    )
    op.create_index("ix_media_assets_gallery_id", "media_assets", ["gallery_id"])
    op.create_index("ix_media_assets_owner_id", "media_assets", ["owner_id"])
    op.create_index("ix_media_assets_gallery_uploaded", "media_assets", ["gallery_id", "uploaded_at"])
    op.create_index(
        "ix_media_assets_gallery_shared_uploaded",
        "media_assets",
        ["gallery_id", "shared", "uploaded_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_media_assets_gallery_shared_uploaded", table_name="media_assets")
    op.drop_index("ix_media_assets_gallery_uploaded", table_name="media_assets")
    op.drop_index("ix_media_assets_owner_id", table_name="media_assets")
    op.drop_index("ix_media_assets_gallery_id", table_name="media_assets")
    op.drop_table("media_assets")
    op.drop_index("ix_galleries_owner_id", table_name="galleries")
    op.drop_table("galleries")
