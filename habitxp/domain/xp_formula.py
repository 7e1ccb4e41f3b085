"""
XP formula for a single habit completion.

  habit_xp      = round(base[difficulty] * quality)     quality = clamp(amount/target, 0.25, 1.5)
  streak        = min(habit_xp, floor(min(streak, cap) * rate * habit_xp))
  mult          = 1.0 up to 60% same-day saturation, linear down to 0.5 at 100%
  category_gain = round((habit_xp + streak) * mult)
  overall_gain  = round(0.75 * category_gain)
"""
import math
from dataclasses import dataclass
from enum import Enum

from habitxp.domain.leveling_curve import LevelingValidationError, round_half_up


class Difficulty(str, Enum):
    TRIVIAL = "trivial"
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    EPIC = "epic"


class Cadence(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


DIFFICULTY_BASE: dict[Difficulty, int] = {
    Difficulty.TRIVIAL: 5,
    Difficulty.EASY: 10,
    Difficulty.NORMAL: 20,
    Difficulty.HARD: 35,
    Difficulty.EPIC: 60,
}

QUALITY_MIN = 0.25
QUALITY_MAX = 1.5

SATURATION_THRESHOLD = 0.6
SATURATION_SPAN = 0.4  # 60% .. 100%
MIN_MULTIPLIER = 0.5

OVERALL_SHARE = 0.75


@dataclass(frozen=True)
class StreakPolicy:
    """Streak bonus rate/cap and the length of one cadence period."""
    rate: float
    cap: int
    period_days: int


DAILY_POLICY = StreakPolicy(rate=0.10, cap=30, period_days=1)
WEEKLY_POLICY = StreakPolicy(rate=0.12, cap=26, period_days=7)


def policy_for(cadence: Cadence | str, override: StreakPolicy | None = None) -> StreakPolicy:
    """
    Return the streak policy for a cadence.

    Custom cadences behave like daily ones unless the caller passes a policy.
    """
    cadence = parse_cadence(cadence)
    if override is not None:
        return override
    if cadence == Cadence.WEEKLY:
        return WEEKLY_POLICY
    return DAILY_POLICY


@dataclass(frozen=True)
class XPBreakdown:
    habit_xp: int
    streak: int
    mult: float
    category_gain: int
    overall_gain: int


def parse_difficulty(value: Difficulty | str) -> Difficulty:
    try:
        return Difficulty(value)
    except ValueError:
        raise LevelingValidationError(f"Unknown difficulty: {value!r}") from None


def parse_cadence(value: Cadence | str) -> Cadence:
    try:
        return Cadence(value)
    except ValueError:
        raise LevelingValidationError(f"Unknown cadence: {value!r}") from None


def quality_factor(amount: float | None = None, target: float | None = None) -> float:
    """amount/target clamped to [0.25, 1.5]; 1.0 when either side is missing or zero."""
    if (amount is not None and amount < 0) or (target is not None and target < 0):
        raise LevelingValidationError("amount and target must not be negative")
    if not amount or not target:
        return 1.0
    return max(QUALITY_MIN, min(QUALITY_MAX, amount / target))


def streak_bonus(habit_xp: int, streak_count: int, policy: StreakPolicy) -> int:
    """Bonus XP for the current streak, never more than habit_xp itself."""
    if streak_count < 0:
        raise LevelingValidationError(f"streak_count must not be negative, got {streak_count}")
    raw = math.floor(min(streak_count, policy.cap) * policy.rate * habit_xp)
    return min(habit_xp, raw)


def diminishing_returns(today_fraction_from_habit: float) -> float:
    """Same-day penalty when one habit dominates the user's XP for the day."""
    if not 0.0 <= today_fraction_from_habit <= 1.0:
        raise LevelingValidationError(
            f"today_fraction_from_habit must be within [0, 1], got {today_fraction_from_habit}"
        )
    if today_fraction_from_habit <= SATURATION_THRESHOLD:
        return 1.0
    overload = today_fraction_from_habit - SATURATION_THRESHOLD
    return max(MIN_MULTIPLIER, 1 - MIN_MULTIPLIER * (overload / SATURATION_SPAN))


def compute_xp(
    difficulty: Difficulty | str,
    cadence: Cadence | str,
    streak_count: int,
    amount: float | None = None,
    target: float | None = None,
    today_fraction_from_habit: float = 0.0,
    streak_policy: StreakPolicy | None = None,
) -> XPBreakdown:
    """
    Pure function: XP breakdown for one completion.

    Args:
        difficulty:                 Habit difficulty tier.
        cadence:                    Habit cadence (selects the streak policy).
        streak_count:               Streak length *after* this completion is counted.
        amount, target:             Optional quantified goal, e.g. 20 of 30 minutes.
        today_fraction_from_habit:  Share of today's XP already coming from this habit.
        streak_policy:              Explicit policy, used for custom cadences.

    Raises:
        LevelingValidationError: on unknown enums or out-of-contract numbers.
    """
    base = DIFFICULTY_BASE[parse_difficulty(difficulty)]
    policy = policy_for(cadence, streak_policy)

    habit_xp = round_half_up(base * quality_factor(amount, target))
    streak = streak_bonus(habit_xp, streak_count, policy)
    mult = diminishing_returns(today_fraction_from_habit)
    category_gain = round_half_up((habit_xp + streak) * mult)
    overall_gain = round_half_up(OVERALL_SHARE * category_gain)

    return XPBreakdown(
        habit_xp=habit_xp,
        streak=streak,
        mult=mult,
        category_gain=category_gain,
        overall_gain=overall_gain,
    )
