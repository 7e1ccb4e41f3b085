"""
Leveling curve shared by overall and per-category progress.

Threshold to *be at* level N (cumulative, absolute):
  level 1  →      0 XP
  level N  →  round(100 * N^1.6)

  Level 1 → 2:   303 XP
  Level 2 → 3:   277 XP more (580 total)
  ...

Level 100 is terminal: nothing is needed for a "next" level.
"""
import math

MIN_LEVEL = 1
MAX_LEVEL = 100

CURVE_BASE_XP = 100
CURVE_EXPONENT = 1.6


class LevelingValidationError(ValueError):
    """Caller passed a value outside the engine's contract (negative XP, level > 100, ...)."""


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (2.5 → 3, not 2)."""
    return int(math.floor(value + 0.5))


def check_level(level: int) -> None:
    if level < MIN_LEVEL or level > MAX_LEVEL:
        raise LevelingValidationError(
            f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}"
        )


def xp_to_reach_level(level: int) -> int:
    """Cumulative XP needed to be at the start of ``level``."""
    if level > MAX_LEVEL:
        raise LevelingValidationError(f"level must be <= {MAX_LEVEL}, got {level}")
    if level <= MIN_LEVEL:
        return 0
    return round_half_up(CURVE_BASE_XP * math.pow(level, CURVE_EXPONENT))


def xp_needed_for_next(level: int) -> int:
    """XP gap between ``level`` and ``level + 1`` (0 at the max level)."""
    check_level(level)
    if level >= MAX_LEVEL:
        return 0
    return xp_to_reach_level(level + 1) - xp_to_reach_level(level)


def category_xp_for_next(level: int) -> int:
    """Absolute XP a category must reach for its next level (0 at the max level)."""
    check_level(level)
    if level >= MAX_LEVEL:
        return 0
    return xp_to_reach_level(level + 1)
