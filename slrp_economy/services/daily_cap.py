"""
slrp_economy.services.daily_cap — Daily earning ceiling
========================================================

One ``daily_earning_caps`` row per (user, UTC date).  An earn request is
clamped to whatever allowance is left; only an exhausted allowance rejects
the award outright.

The counter is advanced with an optimistic check: the ``UPDATE`` only
matches if ``total_earned`` still holds the value the clamp was computed
from.  A concurrent earn makes it match nothing, and the loop re-reads and
re-clamps, so the sum of grants for a day can never pass the cap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from slrp_economy.database.engine import insert_if_absent
from slrp_economy.database.models import DailyEarningCap
from slrp_economy.engine.ledger_math import clamp_to_cap
from slrp_economy.errors import BusinessRuleViolation, ConcurrencyConflict

logger = logging.getLogger(__name__)

MAX_OPTIMISTIC_RETRIES = 5


@dataclass(frozen=True, slots=True)
class CapCheck:
    allowed: bool
    remaining: int


def earned_on(session: Session, user_id: str, day: date) -> int:
    return session.scalar(
        select(DailyEarningCap.total_earned).where(
            DailyEarningCap.user_id == user_id,
            DailyEarningCap.earn_date == day,
        )
    ) or 0


def check(session: Session, user_id: str, requested: int, *, day: date, cap: int) -> CapCheck:
    """Would *requested* fit entirely in today's remaining allowance?"""
    remaining = cap - earned_on(session, user_id, day)
    return CapCheck(allowed=remaining >= requested, remaining=remaining)


def _cap_reached(remaining: int) -> BusinessRuleViolation:
    return BusinessRuleViolation(
        f"Daily earning cap reached. Remaining: {max(remaining, 0)} tokens",
        code="daily_cap_reached",
    )


def reserve(session: Session, user_id: str, requested: int, *, day: date, cap: int) -> int:
    """Book up to *requested* tokens against the user's allowance for *day*.

    Returns the granted amount (``min(requested, remaining)``).

    Raises
    ------
    BusinessRuleViolation
        If nothing is left for the day.
    ConcurrencyConflict
        If the optimistic write lost :data:`MAX_OPTIMISTIC_RETRIES` times.
    """
    for attempt in range(1, MAX_OPTIMISTIC_RETRIES + 1):
        observed = session.scalar(
            select(DailyEarningCap.total_earned).where(
                DailyEarningCap.user_id == user_id,
                DailyEarningCap.earn_date == day,
            )
        )
        granted, remaining = clamp_to_cap(requested, observed or 0, cap)
        if granted <= 0:
            raise _cap_reached(remaining)

        if observed is None:
            if insert_if_absent(
                session, DailyEarningCap,
                user_id=user_id, earn_date=day, total_earned=granted,
            ):
                return granted
        else:
            result = session.execute(
                update(DailyEarningCap)
                .where(
                    DailyEarningCap.user_id == user_id,
                    DailyEarningCap.earn_date == day,
                    DailyEarningCap.total_earned == observed,
                )
                .values(total_earned=observed + granted, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                return granted

        logger.debug("Daily cap write for %s lost a race (attempt %d)", user_id, attempt)

    logger.warning("Daily cap reservation for %s gave up after %d attempts",
                   user_id, MAX_OPTIMISTIC_RETRIES)
    raise ConcurrencyConflict("Too many simultaneous requests. Please try again.")
