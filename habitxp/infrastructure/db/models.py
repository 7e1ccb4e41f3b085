"""
SQLAlchemy ORM models (habit metadata + leveling state)
"""
from datetime import date as date_type, datetime
from sqlalchemy import (
    String, Integer, Float, Text, TIMESTAMP, Date, func, false, Boolean, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from habitxp.infrastructure.db.session import Base


class Category(Base):
    """Habit category (Health, Mind, ...) shared by all users."""
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(String(20), nullable=False, server_default="#6366f1")
    icon: Mapped[str] = mapped_column(String(50), nullable=False, server_default="star")


class HabitModel(Base):
    """Habit metadata the XP engine needs; difficulty and cadence are mandatory."""
    __tablename__ = "habits"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)  # -> categories

    title: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)  # trivial/easy/normal/hard/epic
    cadence: Mapped[str] = mapped_column(String(16), nullable=False)  # daily/weekly/custom
    target: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class HabitCompletion(Base):
    """One completion per habit per day, with the XP it actually produced."""
    __tablename__ = "habit_completions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    habit_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    completion_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    amount: Mapped[float | None] = mapped_column(Float, nullable=True)

    xp_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    category_gain: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    overall_gain: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("habit_id", "completion_date", name="uq_habit_completion_day"),
        Index("ix_habit_completions_user_date", "user_id", "completion_date"),
    )


class UserProgress(Base):
    """Overall level state, one row per user."""
    __tablename__ = "user_progress"

    user_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    overall_level: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    overall_current_xp: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    overall_total_xp: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __mapper_args__ = {"version_id_col": version}


class CategoryProgressModel(Base):
    """Per-(user, category) level state; rank is always derived from level."""
    __tablename__ = "category_progress"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    category_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    xp: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    rank: Mapped[str] = mapped_column(String(32), nullable=False, server_default="Novice")
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __mapper_args__ = {"version_id_col": version}


class StreakModel(Base):
    """Per-(user, habit) streak counter."""
    __tablename__ = "streaks"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    habit_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    cadence: Mapped[str] = mapped_column(String(16), nullable=False)  # copied from the habit at creation
    count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    last_completed_on: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __mapper_args__ = {"version_id_col": version}
