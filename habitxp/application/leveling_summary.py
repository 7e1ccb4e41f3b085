"""LevelingSummaryService - read side of the leveling tables."""
import logging
from datetime import date, timedelta

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habitxp.application.leveling import local_today
from habitxp.domain.leveling_curve import xp_needed_for_next
from habitxp.domain.rank import Rank
from habitxp.infrastructure.db.models import (
    Category,
    CategoryProgressModel,
    HabitCompletion,
    HabitModel,
    StreakModel,
    UserProgress,
)

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = 7


class LevelingSummaryService:
    def __init__(self, db: Session):
        self.db = db

    def get_summary(self, user_id: int, today: date | None = None) -> dict:
        """Overall progress, per-category progress and today's XP per habit."""
        if today is None:
            today = local_today()

        health = self.check_health()
        if not health["tables_exist"]:
            # Leveling tables unreachable: level-1 defaults, flagged unhealthy
            return {
                "healthy": False,
                "error": health["error"],
                "overall": {"level": 1, "current_xp": 0, "needed_xp": xp_needed_for_next(1), "total_xp": 0},
                "categories": [],
                "today_xp_by_habit": {},
            }

        return {
            "healthy": True,
            "error": None,
            "overall": self._overall(user_id),
            "categories": self._categories(user_id, today),
            "today_xp_by_habit": self._today_xp_by_habit(user_id, today),
        }

    def _overall(self, user_id: int) -> dict:
        state = self.db.query(UserProgress).filter(UserProgress.user_id == user_id).first()
        if state:
            level, current_xp, total_xp = (
                state.overall_level, state.overall_current_xp, state.overall_total_xp
            )
        else:
            level, current_xp, total_xp = 1, 0, 0

        return {
            "level": level,
            "current_xp": current_xp,
            "needed_xp": xp_needed_for_next(level),
            "total_xp": total_xp,
        }

    def _categories(self, user_id: int, today: date) -> list[dict]:
        """Every category, with defaults where the user has no progress yet."""
        since = today - timedelta(days=RECENT_WINDOW_DAYS)

        recent = dict(
            self.db.query(HabitModel.category_id, func.count(HabitCompletion.id))
            .join(HabitCompletion, HabitCompletion.habit_id == HabitModel.id)
            .filter(
                HabitModel.user_id == user_id,
                HabitCompletion.completion_date >= since,
            )
            .group_by(HabitModel.category_id)
            .all()
        )

        rows = (
            self.db.query(Category, CategoryProgressModel)
            .outerjoin(
                CategoryProgressModel,
                (CategoryProgressModel.category_id == Category.id)
                & (CategoryProgressModel.user_id == user_id),
            )
            .order_by(Category.name)
            .all()
        )

        return [
            {
                "category_id": category.id,
                "category_name": category.name,
                "category_color": category.color,
                "category_icon": category.icon,
                "level": progress.level if progress else 1,
                "xp": progress.xp if progress else 0,
                "rank": progress.rank if progress else Rank.NOVICE.value,
                "last_7_day_completions": int(recent.get(category.id, 0)),
            }
            for category, progress in rows
        ]

    def _today_xp_by_habit(self, user_id: int, today: date) -> dict[int, int]:
        rows = (
            self.db.query(HabitCompletion.habit_id, func.sum(HabitCompletion.category_gain))
            .filter(
                HabitCompletion.user_id == user_id,
                HabitCompletion.completion_date == today,
                HabitCompletion.xp_applied.is_(True),
            )
            .group_by(HabitCompletion.habit_id)
            .all()
        )
        return {habit_id: int(xp or 0) for habit_id, xp in rows}

    def check_health(self) -> dict:
        """Probe the leveling tables; report the driver error instead of raising."""
        try:
            for model in (UserProgress, CategoryProgressModel, StreakModel):
                self.db.query(model).limit(1).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Leveling tables not available: %s", exc)
            return {"tables_exist": False, "error": str(exc)}
        return {"tables_exist": True, "error": None}
