"""Initial schema: users, platform connections, per-platform stats, sessions.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _owner_columns() -> list[sa.Column]:
    """user_id + platform_type, shared by every per-platform table."""
    return [
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("platform_type", sa.String(50), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "user_platforms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_owner_columns(),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "platform_type", name="uq_user_platforms_user_platform"),
    )

    op.create_table(
        "platform_profiles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_owner_columns(),
        sa.Column("total_solved", sa.Integer(), nullable=True),
        sa.Column("easy_solved", sa.Integer(), nullable=True),
        sa.Column("medium_solved", sa.Integer(), nullable=True),
        sa.Column("hard_solved", sa.Integer(), nullable=True),
        sa.Column("total_submissions", sa.Integer(), nullable=True),
        sa.Column("acceptance_rate", sa.String(50), nullable=True),
        sa.Column("ranking", sa.String(100), nullable=True),
        sa.Column("contest_attended", sa.Integer(), nullable=True),
        sa.Column("additional_data", _JSON, nullable=True),
        sa.Column("data_status", sa.String(16), server_default="fresh", nullable=False),
        sa.Column("status_reason", sa.String(255), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "platform_type", name="uq_platform_profiles_user_platform"),
    )

    op.create_table(
        "submission_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_owner_columns(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.UniqueConstraint("user_id", "platform_type", "date", name="uq_submission_stats_user_platform_date"),
    )

    op.create_table(
        "language_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_owner_columns(),
        sa.Column("language", sa.String(100), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.String(50), nullable=False),
    )
    op.create_index("ix_language_stats_user_platform", "language_stats", ["user_id", "platform_type"])

    op.create_table(
        "badges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_owner_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(255), nullable=False),
    )
    op.create_index("ix_badges_user_platform", "badges", ["user_id", "platform_type"])

    op.create_table(
        "contest_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_owner_columns(),
        sa.Column("contest_name", sa.String(255), nullable=False),
        sa.Column("ranking", sa.String(100), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
    )
    op.create_index("ix_contest_history_user_platform", "contest_history", ["user_id", "platform_type"])

    op.create_table(
        "session",
        sa.Column("sid", sa.String(255), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sess", _JSON, nullable=False),
        sa.Column("expire", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_session_expire", "session", ["expire"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("ix_session_expire", table_name="session")
    op.drop_table("session")
    op.drop_index("ix_contest_history_user_platform", table_name="contest_history")
    op.drop_table("contest_history")
    op.drop_index("ix_badges_user_platform", table_name="badges")
    op.drop_table("badges")
    op.drop_index("ix_language_stats_user_platform", table_name="language_stats")
    op.drop_table("language_stats")
    op.drop_table("submission_stats")
    op.drop_table("platform_profiles")
    op.drop_table("user_platforms")
    op.drop_table("users")
