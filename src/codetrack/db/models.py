"""ORM models for users, platform connections, per-platform stats and sessions.

Every per-platform table is keyed by (user_id, platform_type); the
platform_type column holds a ``PlatformType`` value.
"""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from codetrack.db.base import Base, JSONType


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    platforms: Mapped[list[UserPlatform]] = relationship("UserPlatform", back_populates="user")
    sessions: Mapped[list[UserSession]] = relationship("UserSession", back_populates="user")


# ---------------------------------------------------------------------------
# Platform connections
# ---------------------------------------------------------------------------


class UserPlatform(Base):
    """A user's link to an account on an external platform."""

    __tablename__ = "user_platforms"
    __table_args__ = (UniqueConstraint("user_id", "platform_type", name="uq_user_platforms_user_platform"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform_type: Mapped[str] = mapped_column(String(50), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="platforms")


class PlatformProfile(Base):
    """Latest aggregate snapshot for one (user, platform)."""

    __tablename__ = "platform_profiles"
    __table_args__ = (UniqueConstraint("user_id", "platform_type", name="uq_platform_profiles_user_platform"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform_type: Mapped[str] = mapped_column(String(50), nullable=False)
    total_solved: Mapped[int | None] = mapped_column(Integer, nullable=True)
    easy_solved: Mapped[int | None] = mapped_column(Integer, nullable=True)
    medium_solved: Mapped[int | None] = mapped_column(Integer, nullable=True)
    hard_solved: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_submissions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    acceptance_rate: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ranking: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contest_attended: Mapped[int | None] = mapped_column(Integer, nullable=True)
    additional_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    data_status: Mapped[str] = mapped_column(String(16), nullable=False, default="fresh", server_default="fresh")
    status_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class SubmissionStat(Base):
    """Submission count for one day on one platform."""

    __tablename__ = "submission_stats"
    __table_args__ = (
        UniqueConstraint("user_id", "platform_type", "date", name="uq_submission_stats_user_platform_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform_type: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False)


class LanguageStat(Base):
    """Problems solved (or submissions made) in one language."""

    __tablename__ = "language_stats"
    __table_args__ = (Index("ix_language_stats_user_platform", "user_id", "platform_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform_type: Mapped[str] = mapped_column(String(50), nullable=False)
    language: Mapped[str] = mapped_column(String(100), nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False)
    percentage: Mapped[str] = mapped_column(String(50), nullable=False)


class Badge(Base):
    """Achievement derived from platform stats; recomputed on every refresh."""

    __tablename__ = "badges"
    __table_args__ = (Index("ix_badges_user_platform", "user_id", "platform_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform_type: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(255), nullable=False)


class ContestHistory(Base):
    """One contest participation."""

    __tablename__ = "contest_history"
    __table_args__ = (Index("ix_contest_history_user_platform", "user_id", "platform_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform_type: Mapped[str] = mapped_column(String(50), nullable=False)
    contest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    ranking: Mapped[str] = mapped_column(String(100), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class UserSession(Base):
    """Server-side login session. ``sid`` is the SHA-256 of the cookie token."""

    __tablename__ = "session"

    sid: Mapped[str] = mapped_column(String(255), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sess: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    expire: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    user: Mapped[User] = relationship("User", back_populates="sessions")
