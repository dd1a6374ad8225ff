"""create report core tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "agents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("team", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), server_default="active", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_agents"),
    )
    op.create_index("ix_agents_status", "agents", ["status"], unique=False)

    op.create_table(
        "daily_kpis",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("quality", sa.Float(), nullable=True),
        sa.Column("handle_time_seconds", sa.Float(), nullable=True),
        sa.Column("retention_rate", sa.Float(), nullable=True),
        sa.Column("customer_voice_score", sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agent_id"], ["agents.id"], ondelete="CASCADE", name="fk_daily_kpis_agent_id_agents"),
        sa.PrimaryKeyConstraint("id", name="pk_daily_kpis"),
        sa.UniqueConstraint("agent_id", "date", name="uq_daily_kpis_agent_date"),
    )
    op.create_index("ix_daily_kpis_date", "daily_kpis", ["date"], unique=False)

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("leave_type", sa.String(length=32), server_default="vacation", nullable=False),
        sa.Column("status", sa.String(length=32), server_default="requested", nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("approved_by", sa.String(length=255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agent_id"], ["agents.id"], ondelete="CASCADE", name="fk_leave_requests_agent_id_agents"),
        sa.PrimaryKeyConstraint("id", name="pk_leave_requests"),
    )
    op.create_index(
        "ix_leave_requests_agent_status",
        "leave_requests",
        ["agent_id", "status"],
        unique=False,
    )

    op.create_table(
        "coaching_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Integer(), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=32), server_default="scheduled", nullable=False),
        sa.Column("effectiveness", sa.String(length=32), server_default="unset", nullable=False),
        sa.Column("focus_area", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agent_id"], ["agents.id"], ondelete="CASCADE", name="fk_coaching_sessions_agent_id_agents"),
        sa.PrimaryKeyConstraint("id", name="pk_coaching_sessions"),
    )
    op.create_index(
        "ix_coaching_sessions_agent_date",
        "coaching_sessions",
        ["agent_id", "scheduled_date"],
        unique=False,
    )
    op.create_index("ix_coaching_sessions_status", "coaching_sessions", ["status"], unique=False)

    op.create_table(
        "audits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Integer(), nullable=False),
        sa.Column("audit_date", sa.Date(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("auditor", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agent_id"], ["agents.id"], ondelete="CASCADE", name="fk_audits_agent_id_agents"),
        sa.PrimaryKeyConstraint("id", name="pk_audits"),
    )
    op.create_index("ix_audits_agent_date", "audits", ["agent_id", "audit_date"], unique=False)

    op.create_table(
        "agent_attendance",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("leave_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agent_id"], ["agents.id"], ondelete="CASCADE", name="fk_agent_attendance_agent_id_agents"),
        sa.PrimaryKeyConstraint("id", name="pk_agent_attendance"),
        sa.UniqueConstraint("agent_id", "date", name="uq_agent_attendance_agent_date"),
    )
    op.create_index("ix_agent_attendance_leave_id", "agent_attendance", ["leave_id"], unique=False)

    op.create_table(
        "upload_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("file_type", sa.String(length=16), nullable=False),
        sa.Column("report_type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("records_processed", sa.Integer(), nullable=False),
        sa.Column("errors", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("warnings", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_upload_logs"),
    )


def downgrade() -> None:
    op.drop_table("upload_logs")
    op.drop_index("ix_agent_attendance_leave_id", table_name="agent_attendance")
    op.drop_table("agent_attendance")
    op.drop_index("ix_audits_agent_date", table_name="audits")
    op.drop_table("audits")
    op.drop_index("ix_coaching_sessions_status", table_name="coaching_sessions")
    op.drop_index("ix_coaching_sessions_agent_date", table_name="coaching_sessions")
    op.drop_table("coaching_sessions")
    op.drop_index("ix_leave_requests_agent_status", table_name="leave_requests")
    op.drop_table("leave_requests")
    op.drop_index("ix_daily_kpis_date", table_name="daily_kpis")
    op.drop_table("daily_kpis")
    op.drop_index("ix_agents_status", table_name="agents")
    op.drop_table("agents")
