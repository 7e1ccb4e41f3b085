"""
Habit completion → XP award use case.

Flow per completion (one transaction):
  1. load the active habit (explicit difficulty/cadence, no defaults)
  2. reject a second completion of the same habit on the same day
  3. lock or lazily create user_progress, category_progress, streaks rows
  4. derive today's saturation from gains persisted on earlier completions
  5. run the leveling engine, write the new state + completion row, commit

Rows are read with SELECT ... FOR UPDATE and carry a version counter, so two
awards for the same user/category never overwrite each other. A lost race is
rolled back and retried from scratch.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from habitxp.config import get_settings
from habitxp.domain.leveling_curve import (
    LevelingValidationError,
    category_xp_for_next,
    xp_needed_for_next,
)
from habitxp.domain.progression import (
    CategoryProgress,
    CategoryTransition,
    CompletionContext,
    OverallProgress,
    OverallTransition,
    Streak,
    apply_completion,
)
from habitxp.domain.rank import Rank
from habitxp.domain.xp_formula import XPBreakdown, parse_cadence, parse_difficulty
from habitxp.infrastructure.db.models import (
    CategoryProgressModel,
    HabitCompletion,
    HabitModel,
    StreakModel,
    UserProgress,
)

logger = logging.getLogger(__name__)


class CompletionError(ValueError):
    pass


class HabitNotFoundError(CompletionError):
    pass


class AlreadyCompletedError(CompletionError):
    pass


class ConcurrentUpdateConflict(CompletionError):
    """Another award for the same user/category kept winning the race."""


class CorruptProgressError(RuntimeError):
    """A stored progress row breaks the level/XP/rank invariants."""


@dataclass(frozen=True)
class ProgressBars:
    overall_current_xp: int
    overall_needed_xp: int
    category_xp: int
    category_needed_xp: int


@dataclass(frozen=True)
class CompletionResult:
    habit_id: int
    completion_date: date
    streak_count: int
    breakdown: XPBreakdown
    overall_transition: OverallTransition
    category_transition: CategoryTransition
    bars: ProgressBars


def local_today() -> date:
    """Calendar date in the configured application timezone."""
    return datetime.now(ZoneInfo(get_settings().TIMEZONE)).date()


def today_fraction_from_habit(db: Session, user_id: int, habit_id: int, day: date) -> float:
    """
    Share of the user's XP earned on ``day`` that came from ``habit_id``.

    Uses the category_gain persisted on each completion, so the fraction is
    exact rather than re-estimated from difficulty tables.
    """
    rows = (
        db.query(HabitCompletion.habit_id, func.coalesce(func.sum(HabitCompletion.category_gain), 0))
        .filter(
            HabitCompletion.user_id == user_id,
            HabitCompletion.completion_date == day,
            HabitCompletion.xp_applied.is_(True),
        )
        .group_by(HabitCompletion.habit_id)
        .all()
    )
    total = sum(int(xp) for _, xp in rows)
    if total <= 0:
        return 0.0
    from_habit = sum(int(xp) for hid, xp in rows if hid == habit_id)
    return from_habit / total


class CompleteHabitUseCase:
    """Marks a habit done for today and applies the resulting XP."""

    def __init__(self, db: Session):
        self.db = db
        self.max_retries = get_settings().LEVELING_MAX_RETRIES

    def execute(
        self,
        user_id: int,
        habit_id: int,
        amount: float | None = None,
        today: date | None = None,
    ) -> CompletionResult:
        if today is None:
            today = local_today()

        attempt = 1
        while True:
            try:
                return self._complete(user_id, habit_id, amount, today)
            except (StaleDataError, IntegrityError) as exc:
                self.db.rollback()
                if self._is_duplicate(habit_id, today):
                    raise AlreadyCompletedError("habit already completed today") from exc
                if attempt >= self.max_retries:
                    logger.warning(
                        "Giving up on habit_id=%s for user_id=%s after %d attempts",
                        habit_id, user_id, attempt,
                    )
                    raise ConcurrentUpdateConflict(
                        "progress was updated concurrently, please retry"
                    ) from exc
                logger.info(
                    "Concurrent award on habit_id=%s (attempt %d): %s", habit_id, attempt, exc
                )
                attempt += 1
            except Exception:
                self.db.rollback()
                raise

    # ------------------------------------------------------------------
    # One attempt
    # ------------------------------------------------------------------

    def _complete(self, user_id: int, habit_id: int, amount: float | None, today: date) -> CompletionResult:
        habit = self.db.query(HabitModel).filter(
            HabitModel.id == habit_id,
            HabitModel.user_id == user_id,
            HabitModel.is_archived.is_(False),
        ).first()
        if not habit:
            raise HabitNotFoundError(f"Habit #{habit_id} not found")

        if self._is_duplicate(habit_id, today):
            raise AlreadyCompletedError("habit already completed today")

        context = CompletionContext(
            difficulty=parse_difficulty(habit.difficulty),
            cadence=parse_cadence(habit.cadence),
            amount=amount,
            target=habit.target,
            today_fraction_from_habit=today_fraction_from_habit(self.db, user_id, habit_id, today),
        )

        user_row = self._lock_user_progress(user_id)
        category_row = self._lock_category_progress(user_id, habit.category_id)
        streak_row = self._lock_streak(user_id, habit)

        try:
            overall = OverallProgress(
                level=user_row.overall_level,
                current_xp=user_row.overall_current_xp,
                total_xp=user_row.overall_total_xp,
            )
            category = CategoryProgress(
                level=category_row.level,
                xp=category_row.xp,
                rank=category_row.rank,
            )
        except LevelingValidationError as exc:
            logger.error("Stored progress of user_id=%s is inconsistent: %s", user_id, exc)
            raise CorruptProgressError(str(exc)) from exc

        outcome = apply_completion(
            context,
            overall=overall,
            category=category,
            streak=Streak(
                cadence=parse_cadence(streak_row.cadence),
                count=streak_row.count,
                last_completed_on=streak_row.last_completed_on,
            ),
            today=today,
        )

        user_row.overall_level = outcome.overall.level
        user_row.overall_current_xp = outcome.overall.current_xp
        user_row.overall_total_xp = outcome.overall.total_xp

        category_row.level = outcome.category.level
        category_row.xp = outcome.category.xp
        category_row.rank = outcome.category.rank.value

        streak_row.count = outcome.streak.count
        streak_row.last_completed_on = outcome.streak.last_completed_on

        self.db.add(HabitCompletion(
            habit_id=habit_id,
            user_id=user_id,
            completion_date=today,
            amount=amount,
            xp_applied=True,
            category_gain=outcome.breakdown.category_gain,
            overall_gain=outcome.breakdown.overall_gain,
        ))
        self.db.commit()

        self._log_transitions(user_id, habit.category_id, outcome.overall_transition, outcome.category_transition)

        return CompletionResult(
            habit_id=habit_id,
            completion_date=today,
            streak_count=outcome.streak.count,
            breakdown=outcome.breakdown,
            overall_transition=outcome.overall_transition,
            category_transition=outcome.category_transition,
            bars=ProgressBars(
                overall_current_xp=outcome.overall.current_xp,
                overall_needed_xp=xp_needed_for_next(outcome.overall.level),
                category_xp=outcome.category.xp,
                category_needed_xp=category_xp_for_next(outcome.category.level),
            ),
        )

    def _is_duplicate(self, habit_id: int, today: date) -> bool:
        return self.db.query(HabitCompletion.id).filter(
            HabitCompletion.habit_id == habit_id,
            HabitCompletion.completion_date == today,
        ).first() is not None

    # ------------------------------------------------------------------
    # Get-or-create with row locks
    # ------------------------------------------------------------------

    def _lock_user_progress(self, user_id: int) -> UserProgress:
        row = (
            self.db.query(UserProgress)
            .filter(UserProgress.user_id == user_id)
            .with_for_update()
            .first()
        )
        if not row:
            row = UserProgress(user_id=user_id, overall_level=1, overall_current_xp=0, overall_total_xp=0)
            self.db.add(row)
            self.db.flush()
        return row

    def _lock_category_progress(self, user_id: int, category_id: int) -> CategoryProgressModel:
        row = (
            self.db.query(CategoryProgressModel)
            .filter(
                CategoryProgressModel.user_id == user_id,
                CategoryProgressModel.category_id == category_id,
            )
            .with_for_update()
            .first()
        )
        if not row:
            row = CategoryProgressModel(
                user_id=user_id, category_id=category_id, level=1, xp=0, rank=Rank.NOVICE.value,
            )
            self.db.add(row)
            self.db.flush()
        return row

    def _lock_streak(self, user_id: int, habit: HabitModel) -> StreakModel:
        row = (
            self.db.query(StreakModel)
            .filter(StreakModel.user_id == user_id, StreakModel.habit_id == habit.id)
            .with_for_update()
            .first()
        )
        if not row:
            row = StreakModel(
                user_id=user_id, habit_id=habit.id, cadence=habit.cadence,
                count=0, last_completed_on=None,
            )
            self.db.add(row)
            self.db.flush()
        return row

    @staticmethod
    def _log_transitions(
        user_id: int,
        category_id: int,
        overall: OverallTransition,
        category: CategoryTransition,
    ) -> None:
        if overall.leveled_up:
            logger.info("User %d reached overall level %d", user_id, overall.new_level)
        if category.leveled_up:
            logger.info(
                "User %d reached level %d in category %d", user_id, category.new_level, category_id
            )
        if category.rank_changed:
            logger.info(
                "User %d is now %s in category %d", user_id, category.new_rank.value, category_id
            )
