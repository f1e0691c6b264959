"""
slrp_economy.services.earning_service — Earning entry points
=============================================================

Every way of earning tokens funnels into :func:`award_tokens`:

1. reserve the amount against today's cap (clamped to what is left)
2. credit the wallet
3. append the ledger entry
4. mint seasonal currency for every active season

The three entry points (daily claim, mini-game win, approved gallery
submission) only decide *how much* and *whether*; they never touch the
wallet themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from slrp_economy.database.engine import get_session
from slrp_economy.database.models import LoginIpLog, TransactionSource, TransactionType
from slrp_economy.engine.rules import EconomyRules
from slrp_economy.errors import BusinessRuleViolation, ValidationError
from slrp_economy.services import (
    daily_cap,
    identity,
    seasonal_service,
    streak_tracker,
    transaction_log,
    wallet_store,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AwardResult:
    granted: int
    new_balance: int
    seasonal: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DailyClaimResult:
    granted: int
    new_balance: int
    streak: int
    reward: int
    monthly_claims: int


# ---------------------------------------------------------------------------
# Shared award routine
# ---------------------------------------------------------------------------
def award_tokens(
    session: Session,
    user_id: str,
    requested: int,
    *,
    source: TransactionSource,
    description: str,
    rules: EconomyRules,
    now: datetime,
    reference_id: str | None = None,
) -> AwardResult:
    """Grant up to *requested* tokens inside the caller's transaction."""
    granted = daily_cap.reserve(
        session, user_id, requested, day=now.date(), cap=rules.daily_earn_cap,
    )
    new_balance = wallet_store.credit(session, user_id, granted)
    transaction_log.record(
        session,
        user_id=user_id,
        amount=granted,
        transaction_type=TransactionType.EARN,
        source=source,
        description=description,
        reference_id=reference_id,
        created_at=now,
    )
    minted = seasonal_service.on_earn(session, user_id, granted)
    if granted < requested:
        logger.info("Award to %s clamped by daily cap: %d of %d", user_id, granted, requested)
    return AwardResult(granted=granted, new_balance=new_balance, seasonal=minted)


def _check_cooldown(
    session: Session,
    user_id: str,
    source: TransactionSource,
    *,
    cooldown_seconds: int,
    now: datetime,
    error: BusinessRuleViolation,
) -> None:
    wait = transaction_log.cooldown_remaining(
        session, user_id, source, cooldown_seconds=cooldown_seconds, now=now,
    )
    if wait > 0:
        raise error


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------
def claim_daily(engine, user_id: str, *, rules: EconomyRules, now: datetime) -> DailyClaimResult:
    """Claim today's login reward.

    The streak write and the award share one transaction: if the cap
    rejects the award, the streak is not advanced either.
    """
    with get_session(engine) as session:
        identity.require_profile(session, user_id)
        outcome = streak_tracker.claim(session, user_id, now.date(), rules)
        award = award_tokens(
            session, user_id, outcome.reward,
            source=TransactionSource.DAILY_LOGIN,
            description=outcome.description,
            rules=rules,
            now=now,
        )

    logger.info("User %s claimed daily reward: %d tokens (streak %d)",
                user_id, award.granted, outcome.current_streak)
    return DailyClaimResult(
        granted=award.granted,
        new_balance=award.new_balance,
        streak=outcome.current_streak,
        reward=outcome.reward,
        monthly_claims=outcome.monthly_claims,
    )


def earn_mini_game(
    engine,
    user_id: str,
    game_type: str,
    score: int | None,
    *,
    rules: EconomyRules,
    now: datetime,
    client_ip: str | None = None,
    user_agent: str | None = None,
) -> AwardResult:
    """Reward a mini-game win, at most once per cooldown window.

    Every attempt that gets past the cooldown and score checks is written
    to ``login_ip_log`` before the award, so cap-rejected wins are still
    visible to abuse monitoring.
    """
    if score is None or score <= 0:
        raise ValidationError("Invalid score")

    with get_session(engine) as session:
        identity.require_profile(session, user_id)
        _check_cooldown(
            session, user_id, TransactionSource.MINI_GAME,
            cooldown_seconds=rules.mini_game_cooldown_seconds,
            now=now,
            error=BusinessRuleViolation(
                "Cooldown active. Wait before earning again.",
                code="cooldown_active", cooldown=True,
            ),
        )

    log_client(engine, user_id, client_ip or "unknown", user_agent or "unknown")

    with get_session(engine) as session:
        award = award_tokens(
            session, user_id, rules.mini_game_reward,
            source=TransactionSource.MINI_GAME,
            description=f"Mini game win: {game_type or 'unknown'}",
            rules=rules,
            now=now,
        )
    return award


def earn_gallery(
    engine,
    caller_id: str,
    submission_user_id: str | None,
    *,
    rules: EconomyRules,
    now: datetime,
) -> AwardResult:
    """Reward an approved gallery submission to its author (or the caller)."""
    target = submission_user_id or caller_id

    with get_session(engine) as session:
        if submission_user_id and identity.get_profile(session, target) is None:
            raise BusinessRuleViolation("Submission user not found", code="user_not_found")
        identity.require_profile(session, target)
        _check_cooldown(
            session, target, TransactionSource.GALLERY_APPROVED,
            cooldown_seconds=rules.gallery_cooldown_seconds,
            now=now,
            error=BusinessRuleViolation(
                "Gallery reward cooldown active", code="cooldown_active", cooldown=True,
            ),
        )
        award = award_tokens(
            session, target, rules.gallery_reward,
            source=TransactionSource.GALLERY_APPROVED,
            description="Gallery submission approved",
            rules=rules,
            now=now,
        )

    logger.info("Gallery reward of %d tokens to %s (approved by %s)",
                award.granted, target, caller_id)
    return award


# ---------------------------------------------------------------------------
# Abuse-monitoring side channel
# ---------------------------------------------------------------------------
def log_client(engine, user_id: str, ip_address: str, user_agent: str | None) -> None:
    """Best-effort IP log.  Runs in its own transaction; failures are only logged."""
    try:
        with get_session(engine) as session:
            session.add(LoginIpLog(
                user_id=user_id, ip_address=ip_address[:64], user_agent=user_agent,
            ))
    except SQLAlchemyError:
        logger.warning("Could not record client IP for %s", user_id, exc_info=True)
