"""
Tests for the progression ledger: overall/category awards, streaks and the
end-to-end completion pipeline.
"""
import pytest
from datetime import date, timedelta

from habitxp.domain.leveling_curve import (
    LevelingValidationError,
    MAX_LEVEL,
    xp_needed_for_next,
    xp_to_reach_level,
)
from habitxp.domain.progression import (
    CategoryProgress,
    CompletionContext,
    OverallProgress,
    Streak,
    advance_streak,
    apply_completion,
    award_category,
    award_overall,
)
from habitxp.domain.rank import Rank
from habitxp.domain.xp_formula import Cadence, Difficulty, StreakPolicy


# ---------------------------------------------------------------------------
# award_overall
# ---------------------------------------------------------------------------

class TestAwardOverall:
    def test_gain_below_threshold_accumulates(self):
        progress, transition = award_overall(OverallProgress(), 50)
        assert progress == OverallProgress(level=1, current_xp=50, total_xp=50)
        assert not transition.leveled_up
        assert transition.new_level == 1

    def test_exact_boundary_reached_in_steps(self):
        progress = OverallProgress()
        transitions = []
        for gain in (100, 100, xp_needed_for_next(1) - 200):
            progress, transition = award_overall(progress, gain)
            transitions.append(transition.leveled_up)

        assert progress.level == 2
        assert progress.current_xp == 0
        assert progress.total_xp == xp_needed_for_next(1)
        assert transitions == [False, False, True]

    def test_multi_level_jump(self):
        progress, transition = award_overall(OverallProgress(), xp_to_reach_level(11))
        assert progress.level == 11
        assert progress.current_xp == 0
        assert transition.leveled_up
        assert transition.new_level == 11

    def test_zero_gain_is_noop(self):
        start = OverallProgress(level=3, current_xp=10, total_xp=590)
        progress, transition = award_overall(start, 0)
        assert progress == start
        assert not transition.leveled_up

    def test_input_value_untouched(self):
        start = OverallProgress()
        progress, _ = award_overall(start, 500)
        assert start == OverallProgress()
        assert progress is not start

    def test_max_level_keeps_accumulating(self):
        start = OverallProgress(level=MAX_LEVEL, current_xp=0, total_xp=1_000_000)
        progress, transition = award_overall(start, 5_000)
        assert progress.level == MAX_LEVEL
        assert progress.current_xp == 5_000
        assert progress.total_xp == 1_005_000
        assert not transition.leveled_up

    def test_huge_gain_stops_at_max_level(self):
        progress, _ = award_overall(OverallProgress(), 10_000_000)
        assert progress.level == MAX_LEVEL
        assert progress.total_xp == 10_000_000

    def test_negative_gain_rejected(self):
        with pytest.raises(LevelingValidationError):
            award_overall(OverallProgress(), -1)

    def test_current_xp_over_threshold_rejected(self):
        with pytest.raises(LevelingValidationError):
            OverallProgress(level=1, current_xp=xp_needed_for_next(1), total_xp=303)

    def test_level_above_max_rejected(self):
        with pytest.raises(LevelingValidationError):
            OverallProgress(level=MAX_LEVEL + 1)


# ---------------------------------------------------------------------------
# award_category
# ---------------------------------------------------------------------------

class TestAwardCategory:
    def test_small_gain_stays_novice(self):
        progress, transition = award_category(CategoryProgress(), 40)
        assert progress == CategoryProgress(level=1, xp=40, rank=Rank.NOVICE)
        assert not transition.leveled_up
        assert not transition.rank_changed

    def test_exact_threshold_levels_up(self):
        progress, transition = award_category(CategoryProgress(), xp_to_reach_level(2))
        assert progress.level == 2
        assert transition.leveled_up

    def test_single_huge_gain_advances_many_levels(self):
        progress, transition = award_category(CategoryProgress(), xp_to_reach_level(11))
        assert progress.level == 11
        assert progress.xp == xp_to_reach_level(11)
        assert transition.new_level == 11
        assert transition.new_rank == Rank.NOVICE
        assert not transition.rank_changed

    def test_rank_change_reported(self):
        start = CategoryProgress(level=19, xp=xp_to_reach_level(20) - 10, rank=Rank.NOVICE)
        progress, transition = award_category(start, 10)
        assert progress.level == 20
        assert progress.rank == Rank.APPRENTICE
        assert transition.rank_changed
        assert transition.new_rank == Rank.APPRENTICE

    def test_xp_is_absolute_not_reset(self):
        progress, _ = award_category(CategoryProgress(), 400)
        assert progress.level == 2
        assert progress.xp == 400

    def test_reaching_max_level_is_legendary(self):
        progress, transition = award_category(CategoryProgress(), xp_to_reach_level(MAX_LEVEL) + 5_000)
        assert progress.level == MAX_LEVEL
        assert progress.rank == Rank.LEGENDARY
        assert transition.rank_changed

    def test_rank_accepts_stored_string(self):
        progress = CategoryProgress(level=1, xp=0, rank="Novice")
        _, transition = award_category(progress, 1)
        assert not transition.rank_changed

    def test_inconsistent_rank_rejected(self):
        with pytest.raises(LevelingValidationError):
            CategoryProgress(level=1, xp=0, rank=Rank.MASTER)

    def test_xp_below_level_threshold_rejected(self):
        with pytest.raises(LevelingValidationError):
            CategoryProgress(level=5, xp=0, rank=Rank.NOVICE)

    def test_negative_gain_rejected(self):
        with pytest.raises(LevelingValidationError):
            award_category(CategoryProgress(), -10)


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

class TestAdvanceStreak:
    def test_first_completion_starts_at_one(self):
        streak = advance_streak(Streak(cadence=Cadence.DAILY), date(2026, 3, 1))
        assert streak.count == 1
        assert streak.last_completed_on == date(2026, 3, 1)

    def test_consecutive_days_increment(self):
        streak = Streak(cadence=Cadence.DAILY)
        start = date(2026, 3, 1)
        for i in range(4):
            streak = advance_streak(streak, start + timedelta(days=i))
        assert streak.count == 4

    def test_two_day_gap_resets_to_one(self):
        streak = Streak(cadence=Cadence.DAILY, count=5, last_completed_on=date(2026, 3, 1))
        streak = advance_streak(streak, date(2026, 3, 3))
        assert streak.count == 1

    def test_same_day_leaves_count_unchanged(self):
        streak = Streak(cadence=Cadence.DAILY, count=5, last_completed_on=date(2026, 3, 1))
        streak = advance_streak(streak, date(2026, 3, 1))
        assert streak.count == 5

    def test_weekly_next_week_increments(self):
        streak = Streak(cadence=Cadence.WEEKLY, count=2, last_completed_on=date(2026, 3, 1))
        assert advance_streak(streak, date(2026, 3, 8)).count == 3

    def test_weekly_same_period_unchanged(self):
        streak = Streak(cadence=Cadence.WEEKLY, count=2, last_completed_on=date(2026, 3, 1))
        assert advance_streak(streak, date(2026, 3, 7)).count == 2

    def test_weekly_missed_week_resets(self):
        streak = Streak(cadence=Cadence.WEEKLY, count=2, last_completed_on=date(2026, 3, 1))
        assert advance_streak(streak, date(2026, 3, 15)).count == 1

    def test_custom_cadence_uses_daily_periods(self):
        streak = Streak(cadence=Cadence.CUSTOM, count=1, last_completed_on=date(2026, 3, 1))
        assert advance_streak(streak, date(2026, 3, 2)).count == 2

    def test_custom_cadence_with_explicit_period(self):
        policy = StreakPolicy(rate=0.10, cap=30, period_days=3)
        streak = Streak(cadence=Cadence.CUSTOM, count=1, last_completed_on=date(2026, 3, 1))
        assert advance_streak(streak, date(2026, 3, 4), policy).count == 2

    def test_completion_before_last_rejected(self):
        streak = Streak(cadence=Cadence.DAILY, count=1, last_completed_on=date(2026, 3, 5))
        with pytest.raises(LevelingValidationError):
            advance_streak(streak, date(2026, 3, 4))


# ---------------------------------------------------------------------------
# apply_completion
# ---------------------------------------------------------------------------

def test_apply_completion_end_to_end():
    today = date(2026, 3, 10)
    outcome = apply_completion(
        CompletionContext(difficulty=Difficulty.NORMAL, cadence=Cadence.DAILY),
        overall=OverallProgress(),
        category=CategoryProgress(),
        streak=Streak(cadence=Cadence.DAILY, count=9, last_completed_on=today - timedelta(days=1)),
        today=today,
    )

    assert outcome.streak.count == 10
    assert outcome.breakdown.habit_xp == 20
    assert outcome.breakdown.streak == 20
    assert outcome.breakdown.category_gain == 40
    assert outcome.breakdown.overall_gain == 30
    assert outcome.category.xp == 40
    assert outcome.overall.current_xp == 30
    assert outcome.overall.total_xp == 30
    assert not outcome.overall_transition.leveled_up
    assert not outcome.category_transition.leveled_up
