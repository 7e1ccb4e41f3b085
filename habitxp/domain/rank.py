"""Narrative rank tiers derived from a category level."""
from enum import Enum

from habitxp.domain.leveling_curve import MAX_LEVEL, LevelingValidationError, check_level


class Rank(str, Enum):
    NOVICE = "Novice"
    APPRENTICE = "Apprentice"
    ADEPT = "Adept"
    EXPERT = "Expert"
    MASTER = "Master"
    GRANDMASTER = "Grandmaster"
    LEGENDARY = "Legendary"


# (min_level, rank), checked highest-first; Legendary is only the max level itself
RANK_THRESHOLDS: list[tuple[int, Rank]] = [
    (95, Rank.GRANDMASTER),
    (80, Rank.MASTER),
    (60, Rank.EXPERT),
    (40, Rank.ADEPT),
    (20, Rank.APPRENTICE),
]


def rank_for(level: int) -> Rank:
    check_level(level)
    if level == MAX_LEVEL:
        return Rank.LEGENDARY
    for min_level, rank in RANK_THRESHOLDS:
        if level >= min_level:
            return rank
    return Rank.NOVICE


def parse_rank(value: Rank | str) -> Rank:
    try:
        return Rank(value)
    except ValueError:
        raise LevelingValidationError(f"Unknown rank: {value!r}") from None
