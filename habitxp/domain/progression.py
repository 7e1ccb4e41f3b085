"""
Progression ledger: applies XP gains to overall and category progress.

All functions are pure: they never touch the values passed in and return
the updated value together with a transition summary.

  OverallProgress.current_xp  resets on every level-up (progress-bar semantics)
  CategoryProgress.xp         is absolute and only grows (lifetime counter)
"""
from dataclasses import dataclass, replace
from datetime import date

from habitxp.domain.leveling_curve import (
    MAX_LEVEL,
    LevelingValidationError,
    check_level,
    xp_needed_for_next,
    xp_to_reach_level,
)
from habitxp.domain.rank import Rank, parse_rank, rank_for
from habitxp.domain.xp_formula import (
    Cadence,
    Difficulty,
    StreakPolicy,
    XPBreakdown,
    compute_xp,
    policy_for,
)


@dataclass(frozen=True)
class OverallProgress:
    level: int = 1
    current_xp: int = 0
    total_xp: int = 0

    def __post_init__(self):
        check_level(self.level)
        if self.current_xp < 0 or self.total_xp < 0:
            raise LevelingValidationError("overall XP must not be negative")
        if self.level < MAX_LEVEL and self.current_xp >= xp_needed_for_next(self.level):
            raise LevelingValidationError(
                f"current_xp {self.current_xp} already covers level {self.level}"
            )


@dataclass(frozen=True)
class CategoryProgress:
    level: int = 1
    xp: int = 0
    rank: Rank = Rank.NOVICE

    def __post_init__(self):
        check_level(self.level)
        if self.xp < 0:
            raise LevelingValidationError("category XP must not be negative")
        if self.xp < xp_to_reach_level(self.level) or (
            self.level < MAX_LEVEL and self.xp >= xp_to_reach_level(self.level + 1)
        ):
            raise LevelingValidationError(f"xp {self.xp} does not match level {self.level}")
        if parse_rank(self.rank) != rank_for(self.level):
            raise LevelingValidationError(
                f"rank {self.rank} does not match level {self.level}"
            )


@dataclass(frozen=True)
class OverallTransition:
    leveled_up: bool
    new_level: int


@dataclass(frozen=True)
class CategoryTransition:
    leveled_up: bool
    new_level: int
    rank_changed: bool
    new_rank: Rank


def _check_gain(gain: int) -> None:
    if gain < 0:
        raise LevelingValidationError(f"XP gain must not be negative, got {gain}")


def award_overall(progress: OverallProgress, gain: int) -> tuple[OverallProgress, OverallTransition]:
    """Add ``gain`` to overall progress, possibly crossing several levels at once."""
    _check_gain(gain)
    level = progress.level
    current_xp = progress.current_xp + gain

    while level < MAX_LEVEL and current_xp >= xp_needed_for_next(level):
        current_xp -= xp_needed_for_next(level)
        level += 1

    updated = OverallProgress(
        level=level,
        current_xp=current_xp,
        total_xp=progress.total_xp + gain,
    )
    return updated, OverallTransition(leveled_up=level > progress.level, new_level=level)


def award_category(progress: CategoryProgress, gain: int) -> tuple[CategoryProgress, CategoryTransition]:
    """Add ``gain`` to a category's absolute XP and re-derive level and rank."""
    _check_gain(gain)
    level = progress.level
    xp = progress.xp + gain

    while level < MAX_LEVEL and xp >= xp_to_reach_level(level + 1):
        level += 1

    new_rank = rank_for(level)
    updated = CategoryProgress(level=level, xp=xp, rank=new_rank)
    return updated, CategoryTransition(
        leveled_up=level > progress.level,
        new_level=level,
        rank_changed=new_rank != parse_rank(progress.rank),
        new_rank=new_rank,
    )


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Streak:
    cadence: Cadence
    count: int = 0
    last_completed_on: date | None = None


def advance_streak(streak: Streak, today: date, policy: StreakPolicy | None = None) -> Streak:
    """
    Count a completion made on ``today``.

    Elapsed whole periods since the last completion:
      0  → same period, count unchanged
      1  → count + 1
      >1 → streak broken, restart at 1
    """
    policy = policy_for(streak.cadence, policy)

    if streak.last_completed_on is None:
        return replace(streak, count=1, last_completed_on=today)

    elapsed_days = (today - streak.last_completed_on).days
    if elapsed_days < 0:
        raise LevelingValidationError(
            f"completion date {today} is before last completion {streak.last_completed_on}"
        )

    elapsed = elapsed_days // policy.period_days
    if elapsed == 0:
        count = streak.count
    elif elapsed == 1:
        count = streak.count + 1
    else:
        count = 1
    return replace(streak, count=count, last_completed_on=today)


# ---------------------------------------------------------------------------
# One completion, end to end
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompletionContext:
    """Validated habit metadata and same-day context supplied by the caller."""
    difficulty: Difficulty
    cadence: Cadence
    amount: float | None = None
    target: float | None = None
    today_fraction_from_habit: float = 0.0
    streak_policy: StreakPolicy | None = None


@dataclass(frozen=True)
class CompletionOutcome:
    breakdown: XPBreakdown
    overall: OverallProgress
    category: CategoryProgress
    streak: Streak
    overall_transition: OverallTransition
    category_transition: CategoryTransition


def apply_completion(
    context: CompletionContext,
    overall: OverallProgress,
    category: CategoryProgress,
    streak: Streak,
    today: date,
) -> CompletionOutcome:
    """Streak → XP breakdown → category and overall awards."""
    new_streak = advance_streak(streak, today, context.streak_policy)
    breakdown = compute_xp(
        difficulty=context.difficulty,
        cadence=context.cadence,
        streak_count=new_streak.count,
        amount=context.amount,
        target=context.target,
        today_fraction_from_habit=context.today_fraction_from_habit,
        streak_policy=context.streak_policy,
    )
    new_category, category_transition = award_category(category, breakdown.category_gain)
    new_overall, overall_transition = award_overall(overall, breakdown.overall_gain)

    return CompletionOutcome(
        breakdown=breakdown,
        overall=new_overall,
        category=new_category,
        streak=new_streak,
        overall_transition=overall_transition,
        category_transition=category_transition,
    )
