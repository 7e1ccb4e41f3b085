"""Tests for category rank tiers"""
import pytest

from habitxp.domain.leveling_curve import LevelingValidationError
from habitxp.domain.rank import Rank, parse_rank, rank_for


@pytest.mark.parametrize("level, expected", [
    (1, Rank.NOVICE),
    (19, Rank.NOVICE),
    (20, Rank.APPRENTICE),
    (39, Rank.APPRENTICE),
    (40, Rank.ADEPT),
    (59, Rank.ADEPT),
    (60, Rank.EXPERT),
    (79, Rank.EXPERT),
    (80, Rank.MASTER),
    (94, Rank.MASTER),
    (95, Rank.GRANDMASTER),
    (99, Rank.GRANDMASTER),
    (100, Rank.LEGENDARY),
])
def test_tier_boundaries(level, expected):
    assert rank_for(level) == expected


def test_rank_never_decreases_with_level():
    order = list(Rank)
    ranks = [order.index(rank_for(level)) for level in range(1, 101)]
    assert all(a <= b for a, b in zip(ranks, ranks[1:]))


@pytest.mark.parametrize("level", [0, 101])
def test_out_of_range_level_rejected(level):
    with pytest.raises(LevelingValidationError):
        rank_for(level)


def test_parse_rank():
    assert parse_rank("Adept") == Rank.ADEPT
    with pytest.raises(LevelingValidationError):
        parse_rank("Overlord")
