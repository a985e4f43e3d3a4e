"""create csv_uploads history table

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "csv_uploads",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("upload_id", sa.String(length=64), nullable=False),
        sa.Column("filename", sa.String(length=500), nullable=False),
        sa.Column("data_type", sa.String(length=50), nullable=False),
        sa.Column("total_rows", sa.Integer(), nullable=False),
        sa.Column("valid_rows", sa.Integer(), nullable=False),
        sa.Column("invalid_rows", sa.Integer(), nullable=False),
        sa.Column("committed_rows", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("uploaded_by", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_csv_uploads_upload_id", "csv_uploads", ["upload_id"], unique=False)
    op.create_index("ix_csv_uploads_uploaded_by", "csv_uploads", ["uploaded_by"], unique=False)
    op.create_index("ix_csv_uploads_created_at", "csv_uploads", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_csv_uploads_created_at", table_name="csv_uploads")
    op.drop_index("ix_csv_uploads_uploaded_by", table_name="csv_uploads")
    op.drop_index("ix_csv_uploads_upload_id", table_name="csv_uploads")
    op.drop_table("csv_uploads")
