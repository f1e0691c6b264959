"""
slrp_economy.engine.streak — Daily claim streak & reward schedule
==================================================================

Pure calculation, no DB I/O.  Given the stored streak state and the UTC
claim date, work out the next state and how many tokens the claim is
worth.  :mod:`slrp_economy.services.streak_tracker` persists the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from slrp_economy.engine.rules import DEFAULT_RULES, EconomyRules


@dataclass(frozen=True, slots=True)
class StreakState:
    """What is stored for a user before the claim (all zero/None if new)."""

    current_streak: int = 0
    longest_streak: int = 0
    last_claim_date: date | None = None
    monthly_claims: int = 0
    monthly_reset_date: date | None = None


@dataclass(frozen=True, slots=True)
class ClaimOutcome:
    """State after a successful claim plus the reward it earns."""

    current_streak: int
    longest_streak: int
    monthly_claims: int
    reward: int
    description: str


def already_claimed(state: StreakState, today: date) -> bool:
    return state.last_claim_date == today


def next_streak(state: StreakState, today: date) -> int:
    """Consecutive-day rule: +1 only if the last claim was yesterday."""
    if state.last_claim_date == today - timedelta(days=1):
        return state.current_streak + 1
    return 1


def next_monthly_claims(state: StreakState, today: date) -> int:
    """Count this claim in the current calendar month, resetting on rollover."""
    reset = state.monthly_reset_date
    if reset is not None and (reset.year, reset.month) == (today.year, today.month):
        return state.monthly_claims + 1
    return 1


def compute_claim(
    state: StreakState,
    today: date,
    rules: EconomyRules = DEFAULT_RULES,
) -> ClaimOutcome:
    """Apply the daily reward schedule.

    Base reward, plus the streak bonus on every ``streak_bonus_interval``-th
    consecutive day, plus the monthly bonus once ``monthly_claim_threshold``
    claims land in one calendar month.  The caller is responsible for
    rejecting a second claim on the same day (see :func:`already_claimed`).
    """
    streak = next_streak(state, today)
    monthly = next_monthly_claims(state, today)

    reward = rules.daily_base_reward
    description = "Daily login bonus"

    if rules.streak_bonus_interval > 0 and streak % rules.streak_bonus_interval == 0:
        reward += rules.streak_bonus
        description = (
            f"Daily login + {rules.streak_bonus_interval}-day streak bonus (Day {streak})"
        )

    if monthly >= rules.monthly_claim_threshold:
        reward += rules.monthly_bonus
        description = "Daily login + Monthly streak reward!"

    return ClaimOutcome(
        current_streak=streak,
        longest_streak=max(state.longest_streak, streak),
        monthly_claims=monthly,
        reward=reward,
        description=description,
    )
