"""create leadflow schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0a1b2c3d4e5f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("auth_user_id", sa.String(64), unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(30)),
        sa.Column("role", sa.String(20), nullable=False, server_default="Employee"),
        sa.Column("department", sa.String(100)),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("join_date", sa.Date(), server_default=sa.func.current_date()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('Admin', 'Employee')", name="ck_user_role"),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_user_status"),
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("lead_name", sa.String(200), nullable=False),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("contact_person", sa.String(200)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(30)),
        sa.Column("assignee", sa.String(255)),
        sa.Column("priority", sa.String(20), nullable=False, server_default="Medium"),
        sa.Column("status", sa.String(20), nullable=False, server_default="New"),
        sa.Column("lead_source", sa.String(100)),
        sa.Column("service", sa.String(100)),
        sa.Column("location", sa.String(200)),
        sa.Column("notes", sa.Text()),
        sa.Column("next_follow_up_date", sa.Date()),
        sa.Column("follow_up_time", sa.String(20)),
        sa.Column(
            "overdue_reminder_sent",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "upcoming_reminder_sent",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('New', 'Contacted', 'Qualified', 'Proposal', "
            "'Negotiation', 'Won', 'Lost')",
            name="ck_lead_status",
        ),
        sa.CheckConstraint(
            "priority IN ('Low', 'Medium', 'High', 'Urgent')",
            name="ck_lead_priority",
        ),
    )
    op.create_index("idx_leads_assignee", "leads", ["assignee"])
    # reminder scans: date range plus one unset flag
    op.create_index(
        "idx_leads_follow_up_overdue",
        "leads",
        ["next_follow_up_date"],
        postgresql_where=sa.text("overdue_reminder_sent = false"),
    )
    op.create_index(
        "idx_leads_follow_up_upcoming",
        "leads",
        ["next_follow_up_date"],
        postgresql_where=sa.text("upcoming_reminder_sent = false"),
    )

    op.create_table(
        "follow_up_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "lead_id",
            sa.Integer(),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("status", sa.String(20)),
        sa.Column("priority", sa.String(20)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_follow_up_history_lead_id", "follow_up_history", ["lead_id"])

    op.create_table(
        "call_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "lead_id",
            sa.Integer(),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(30)),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_call_logs_lead_id", "call_logs", ["lead_id"])

    op.create_table(
        "sticky_notes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("reminder_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "is_reminder_sent",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "lead_id",
            sa.Integer(),
            sa.ForeignKey("leads.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("email", sa.String(255)),
        sa.Column("color", sa.String(20), nullable=False, server_default="yellow"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "idx_sticky_notes_pending_reminder",
        "sticky_notes",
        ["reminder_at"],
        postgresql_where=sa.text("is_reminder_sent = false"),
    )


def downgrade() -> None:
    op.drop_index("idx_sticky_notes_pending_reminder", table_name="sticky_notes")
    op.drop_table("sticky_notes")
    op.drop_index("ix_call_logs_lead_id", table_name="call_logs")
    op.drop_table("call_logs")
    op.drop_index("ix_follow_up_history_lead_id", table_name="follow_up_history")
    op.drop_table("follow_up_history")
    op.drop_index("idx_leads_follow_up_upcoming", table_name="leads")
    op.drop_index("idx_leads_follow_up_overdue", table_name="leads")
    op.drop_index("idx_leads_assignee", table_name="leads")
    op.drop_table("leads")
    op.drop_table("users")
