"""
slrp_economy.services.streak_tracker — Persisted login streaks
===============================================================

Wraps :mod:`slrp_economy.engine.streak` with storage.  The write is
conditional on the ``last_claim_date`` that was read, so of two racing
claims for the same day exactly one matches and the other is reported as
"already claimed".
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from slrp_economy.database.engine import insert_if_absent
from slrp_economy.database.models import LoginStreak
from slrp_economy.engine.rules import EconomyRules
from slrp_economy.engine.streak import ClaimOutcome, StreakState, already_claimed, compute_claim
from slrp_economy.errors import BusinessRuleViolation

logger = logging.getLogger(__name__)


def _already_claimed() -> BusinessRuleViolation:
    return BusinessRuleViolation(
        "Already claimed today", code="already_claimed", alreadyClaimed=True,
    )


def get_state(session: Session, user_id: str) -> StreakState | None:
    row = session.scalar(select(LoginStreak).where(LoginStreak.user_id == user_id))
    if row is None:
        return None
    return StreakState(
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        last_claim_date=row.last_claim_date,
        monthly_claims=row.monthly_claims,
        monthly_reset_date=row.monthly_reset_date,
    )


def claim(session: Session, user_id: str, today: date, rules: EconomyRules) -> ClaimOutcome:
    """Record today's claim and return the new streak with its reward.

    Raises :class:`BusinessRuleViolation` if *today* was already claimed.
    """
    stored = get_state(session, user_id)
    state = stored or StreakState()
    if already_claimed(state, today):
        raise _already_claimed()

    outcome = compute_claim(state, today, rules)
    values = {
        "current_streak": outcome.current_streak,
        "longest_streak": outcome.longest_streak,
        "last_claim_date": today,
        "monthly_claims": outcome.monthly_claims,
        "monthly_reset_date": today,
    }

    if stored is None:
        if not insert_if_absent(session, LoginStreak, user_id=user_id, **values):
            # Another request created the row first, i.e. claimed today.
            raise _already_claimed()
        return outcome

    if state.last_claim_date is None:
        guard = LoginStreak.last_claim_date.is_(None)
    else:
        guard = LoginStreak.last_claim_date == state.last_claim_date
    result = session.execute(
        update(LoginStreak)
        .where(LoginStreak.user_id == user_id, guard)
        .values(updated_at=func.now(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise _already_claimed()
    return outcome


def streak_dict(state: StreakState | None) -> dict:
    state = state or StreakState()
    return {
        "current_streak": state.current_streak,
        "longest_streak": state.longest_streak,
        "last_claim_date": state.last_claim_date.isoformat() if state.last_claim_date else None,
        "monthly_claims": state.monthly_claims,
    }
