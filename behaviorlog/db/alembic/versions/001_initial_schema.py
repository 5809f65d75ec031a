"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates:
- organizations, users (credential lookup, not row-secured)
- clients, behaviors, behavior_logs, comments, announcements
- audit_logs (append-only)
- row security policies on tenant tables (PostgreSQL only)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from behaviorlog.db.row_security import drop_row_security_statements, row_security_statements

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _json() -> sa.types.TypeEngine:
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables and, on PostgreSQL, their row security policies."""
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("notify_announcements", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("role IN ('staff', 'supervisor')", name="ck_users_role"),
    )
    op.create_index("idx_users_org", "users", ["org_id"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("client_code", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.UniqueConstraint("org_id", "client_code", name="uq_clients_org_code"),
    )
    op.create_index("idx_clients_org", "clients", ["org_id"])

    op.create_table(
        "behaviors",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
    )
    op.create_index("idx_behaviors_org", "behaviors", ["org_id"])

    op.create_table(
        "behavior_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("behavior_id", sa.Uuid(), nullable=False),
        sa.Column("staff_id", sa.Uuid(), nullable=False),
        sa.Column("intensity", sa.Integer(), nullable=False),
        sa.Column("duration_min", sa.Integer(), nullable=True),
        sa.Column("antecedent", sa.Text(), nullable=True),
        sa.Column("behavior_observed", sa.Text(), nullable=True),
        sa.Column("consequence", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("incident", sa.Boolean(), nullable=False),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"]),
        sa.ForeignKeyConstraint(["behavior_id"], ["behaviors.id"]),
        sa.ForeignKeyConstraint(["staff_id"], ["users.id"]),
        sa.CheckConstraint("intensity BETWEEN 1 AND 5", name="ck_behavior_logs_intensity"),
    )
    op.create_index("idx_behavior_logs_org_logged", "behavior_logs", ["org_id", "logged_at"])
    op.create_index("idx_behavior_logs_org_client", "behavior_logs", ["org_id", "client_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("log_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["log_id"], ["behavior_logs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
    )
    op.create_index("idx_comments_org_log", "comments", ["org_id", "log_id"])

    op.create_table(
        "announcements",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("priority", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.CheckConstraint(
            "priority IN ('urgent', 'high', 'normal', 'low')", name="ck_announcements_priority"
        ),
    )
    op.create_index("idx_announcements_org_active", "announcements", ["org_id", "active"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.Text(), nullable=False),
        sa.Column("entity_id", sa.Text(), nullable=True),
        sa.Column("metadata", _json(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
    )
    op.create_index("idx_audit_logs_org_ts", "audit_logs", ["org_id", "timestamp"])
    op.create_index(
        "idx_audit_logs_org_actor_ts", "audit_logs", ["org_id", "actor_id", "timestamp"]
    )

    if op.get_bind().dialect.name == "postgresql":
        for statement in row_security_statements():
            op.execute(statement)


def downgrade() -> None:
    """Drop row security and all tables."""
    if op.get_bind().dialect.name == "postgresql":
        for statement in drop_row_security_statements():
            op.execute(statement)

    op.drop_table("audit_logs")
    op.drop_table("announcements")
    op.drop_table("comments")
    op.drop_table("behavior_logs")
    op.drop_table("behaviors")
    op.drop_table("clients")
    op.drop_table("users")
    op.drop_table("organizations")
