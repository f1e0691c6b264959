"""
tests/test_streak_engine.py — Unit Tests for the Daily Reward Schedule
=======================================================================

Pure calculation, no database.
"""

from __future__ import annotations

from datetime import date

import pytest

from slrp_economy.engine.rules import EconomyRules
from slrp_economy.engine.streak import (
    StreakState,
    already_claimed,
    compute_claim,
    next_monthly_claims,
    next_streak,
)


class TestNextStreak:
    def test_first_claim_starts_at_one(self):
        assert next_streak(StreakState(), date(2026, 3, 10)) == 1

    def test_consecutive_day_increments(self):
        state = StreakState(current_streak=4, last_claim_date=date(2026, 3, 9))
        assert next_streak(state, date(2026, 3, 10)) == 5

    def test_gap_resets_to_one(self):
        state = StreakState(current_streak=4, last_claim_date=date(2026, 3, 8))
        assert next_streak(state, date(2026, 3, 10)) == 1

    def test_month_boundary_is_still_consecutive(self):
        state = StreakState(current_streak=2, last_claim_date=date(2026, 2, 28))
        assert next_streak(state, date(2026, 3, 1)) == 3


class TestMonthlyClaims:
    def test_same_month_increments(self):
        state = StreakState(monthly_claims=3, monthly_reset_date=date(2026, 3, 4))
        assert next_monthly_claims(state, date(2026, 3, 5)) == 4

    def test_new_month_resets(self):
        state = StreakState(monthly_claims=27, monthly_reset_date=date(2026, 2, 28))
        assert next_monthly_claims(state, date(2026, 3, 1)) == 1

    def test_same_month_other_year_resets(self):
        state = StreakState(monthly_claims=10, monthly_reset_date=date(2025, 3, 20))
        assert next_monthly_claims(state, date(2026, 3, 21)) == 1


class TestComputeClaim:
    def test_base_reward(self):
        outcome = compute_claim(StreakState(), date(2026, 3, 10))
        assert outcome.reward == 25
        assert outcome.current_streak == 1
        assert outcome.longest_streak == 1
        assert outcome.monthly_claims == 1
        assert outcome.description == "Daily login bonus"

    def test_seventh_day_adds_streak_bonus(self):
        state = StreakState(
            current_streak=6, longest_streak=6,
            last_claim_date=date(2026, 3, 9),
            monthly_claims=6, monthly_reset_date=date(2026, 3, 9),
        )
        outcome = compute_claim(state, date(2026, 3, 10))
        assert outcome.current_streak == 7
        assert outcome.reward == 125
        assert outcome.description == "Daily login + 7-day streak bonus (Day 7)"

    def test_fourteenth_day_also_gets_bonus(self):
        state = StreakState(current_streak=13, last_claim_date=date(2026, 3, 9))
        assert compute_claim(state, date(2026, 3, 10)).reward == 125

    def test_monthly_threshold_adds_monthly_bonus(self):
        state = StreakState(
            current_streak=1, last_claim_date=date(2026, 3, 27),
            monthly_claims=27, monthly_reset_date=date(2026, 3, 27),
        )
        outcome = compute_claim(state, date(2026, 3, 29))
        assert outcome.monthly_claims == 28
        assert outcome.reward == 25 + 500
        assert outcome.description == "Daily login + Monthly streak reward!"

    def test_both_bonuses_stack(self):
        state = StreakState(
            current_streak=27, longest_streak=27,
            last_claim_date=date(2026, 3, 27),
            monthly_claims=27, monthly_reset_date=date(2026, 3, 27),
        )
        outcome = compute_claim(state, date(2026, 3, 28))
        assert outcome.current_streak == 28
        assert outcome.reward == 25 + 100 + 500

    def test_longest_streak_never_decreases(self):
        state = StreakState(
            current_streak=3, longest_streak=40, last_claim_date=date(2026, 3, 1),
        )
        outcome = compute_claim(state, date(2026, 3, 10))
        assert outcome.current_streak == 1
        assert outcome.longest_streak == 40

    def test_custom_rules(self):
        rules = EconomyRules(daily_base_reward=10, streak_bonus=5, streak_bonus_interval=2)
        state = StreakState(current_streak=1, last_claim_date=date(2026, 3, 9))
        outcome = compute_claim(state, date(2026, 3, 10), rules)
        assert outcome.reward == 15
        assert outcome.description == "Daily login + 2-day streak bonus (Day 2)"

    @pytest.mark.parametrize("interval", [0, -1])
    def test_non_positive_interval_disables_streak_bonus(self, interval):
        rules = EconomyRules(streak_bonus_interval=interval)
        assert compute_claim(StreakState(), date(2026, 3, 10), rules).reward == 25


def test_already_claimed():
    state = StreakState(last_claim_date=date(2026, 3, 10))
    assert already_claimed(state, date(2026, 3, 10))
    assert not already_claimed(state, date(2026, 3, 11))
