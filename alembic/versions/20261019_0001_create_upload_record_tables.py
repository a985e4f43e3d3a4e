"""create CSV upload destination tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _ownership_columns() -> list[sa.Column]:
    return [
        sa.Column("upload_id", sa.String(length=64), nullable=False),
        sa.Column("uploaded_by", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "kpi_metrics",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("metric_name", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("target", sa.Float(), nullable=True),
        sa.Column("period", sa.String(length=10), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_ownership_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_kpi_metrics_upload_id", "kpi_metrics", ["upload_id"], unique=False)
    op.create_index(
        "ix_kpi_metrics_metric_name_period",
        "kpi_metrics",
        ["metric_name", "period"],
        unique=False,
    )

    op.create_table(
        "content_performance",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content_title", sa.String(length=500), nullable=False),
        sa.Column("views", sa.BigInteger(), nullable=False),
        sa.Column("engagement_rate", sa.Float(), nullable=True),
        sa.Column("revenue", sa.Float(), nullable=True),
        sa.Column("platform", sa.String(length=20), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        *_ownership_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_content_performance_upload_id", "content_performance", ["upload_id"], unique=False)
    op.create_index("ix_content_performance_platform", "content_performance", ["platform"], unique=False)

    op.create_table(
        "risks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("severity", sa.String(length=20), nullable=False),
        sa.Column("likelihood", sa.String(length=20), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("mitigation", sa.Text(), nullable=True),
        *_ownership_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_risks_upload_id", "risks", ["upload_id"], unique=False)
    op.create_index("ix_risks_severity", "risks", ["severity"], unique=False)

    op.create_table(
        "bugs_sprints",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("severity", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("sprint_name", sa.String(length=255), nullable=True),
        sa.Column("assignee", sa.String(length=255), nullable=True),
        sa.Column("priority", sa.String(length=20), nullable=True),
        *_ownership_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bugs_sprints_upload_id", "bugs_sprints", ["upload_id"], unique=False)
    op.create_index("ix_bugs_sprints_status", "bugs_sprints", ["status"], unique=False)
    op.create_index("ix_bugs_sprints_sprint_name", "bugs_sprints", ["sprint_name"], unique=False)

    op.create_table(
        "infra_metrics",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("metric_name", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("threshold", sa.Float(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("service", sa.String(length=255), nullable=True),
        sa.Column("environment", sa.String(length=20), nullable=True),
        *_ownership_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_infra_metrics_upload_id", "infra_metrics", ["upload_id"], unique=False)
    op.create_index(
        "ix_infra_metrics_metric_name_timestamp",
        "infra_metrics",
        ["metric_name", "timestamp"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_infra_metrics_metric_name_timestamp", table_name="infra_metrics")
    op.drop_index("ix_infra_metrics_upload_id", table_name="infra_metrics")
    op.drop_table("infra_metrics")
    op.drop_index("ix_bugs_sprints_sprint_name", table_name="bugs_sprints")
    op.drop_index("ix_bugs_sprints_status", table_name="bugs_sprints")
    op.drop_index("ix_bugs_sprints_upload_id", table_name="bugs_sprints")
    op.drop_table("bugs_sprints")
    op.drop_index("ix_risks_severity", table_name="risks")
    op.drop_index("ix_risks_upload_id", table_name="risks")
    op.drop_table("risks")
    op.drop_index("ix_content_performance_platform", table_name="content_performance")
    op.drop_index("ix_content_performance_upload_id", table_name="content_performance")
    op.drop_table("content_performance")
    op.drop_index("ix_kpi_metrics_metric_name_period", table_name="kpi_metrics")
    op.drop_index("ix_kpi_metrics_upload_id", table_name="kpi_metrics")
    op.drop_table("kpi_metrics")
