"""
slrp_economy.services.read_views — Wallet snapshot, leaderboards, stats
========================================================================

Read-only queries behind ``get_wallet``, ``get_leaderboard`` and
``get_economy_stats``.  Each returns a plain JSON-ready dict.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from slrp_economy.database.engine import get_session
from slrp_economy.database.models import LoginStreak, TokenTransaction, TransactionType, Wallet
from slrp_economy.engine.ledger_math import inflation_rate
from slrp_economy.engine.rules import EconomyRules
from slrp_economy.errors import AuthorizationError
from slrp_economy.services import (
    daily_cap,
    identity,
    seasonal_service,
    streak_tracker,
    transaction_log,
    wallet_store,
)

logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 10
EARNERS_WINDOW = timedelta(days=30)
WALLET_HISTORY = 20
STATS_HISTORY = 50


# ---------------------------------------------------------------------------
# Wallet snapshot
# ---------------------------------------------------------------------------
def get_wallet(engine, user_id: str, *, rules: EconomyRules, now: datetime) -> dict:
    today = now.date()
    with get_session(engine) as session:
        streak = streak_tracker.get_state(session, user_id)
        history = transaction_log.recent(session, user_id=user_id, limit=WALLET_HISTORY)
        return {
            "wallet": wallet_store.wallet_dict(wallet_store.get_wallet(session, user_id)),
            "streak": streak_tracker.streak_dict(streak),
            "dailyEarned": daily_cap.earned_on(session, user_id, today),
            "dailyCap": rules.daily_earn_cap,
            "seasonalBalances": seasonal_service.balances_for(session, user_id),
            "recentTransactions": [transaction_log.to_dict(tx) for tx in history],
            "canClaimDaily": streak is None or streak.last_claim_date != today,
        }


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------
def _enrich(session: Session, rows: list[dict]) -> list[dict]:
    identities = identity.identities_for(session, (r["user_id"] for r in rows))
    return [{**row, **identities[row["user_id"]]} for row in rows]


def _richest(session: Session, now: datetime) -> list[dict]:
    result = session.execute(
        select(Wallet.user_id, Wallet.balance, Wallet.lifetime_earned)
        .order_by(Wallet.balance.desc(), Wallet.user_id)
        .limit(LEADERBOARD_SIZE)
    )
    return [dict(r._mapping) for r in result]


def _top_earners_month(session: Session, now: datetime) -> list[dict]:
    total = func.sum(TokenTransaction.amount).label("total_earned")
    result = session.execute(
        select(TokenTransaction.user_id, total)
        .where(
            TokenTransaction.transaction_type == TransactionType.EARN.value,
            TokenTransaction.created_at >= now - EARNERS_WINDOW,
        )
        .group_by(TokenTransaction.user_id)
        .order_by(total.desc(), TokenTransaction.user_id)
        .limit(LEADERBOARD_SIZE)
    )
    return [{"user_id": r.user_id, "total_earned": int(r.total_earned)} for r in result]


def _top_spenders(session: Session, now: datetime) -> list[dict]:
    result = session.execute(
        select(Wallet.user_id, Wallet.lifetime_spent)
        .order_by(Wallet.lifetime_spent.desc(), Wallet.user_id)
        .limit(LEADERBOARD_SIZE)
    )
    return [dict(r._mapping) for r in result]


def _highest_streak(session: Session, now: datetime) -> list[dict]:
    result = session.execute(
        select(LoginStreak.user_id, LoginStreak.longest_streak, LoginStreak.current_streak)
        .order_by(LoginStreak.longest_streak.desc(), LoginStreak.user_id)
        .limit(LEADERBOARD_SIZE)
    )
    return [dict(r._mapping) for r in result]


LEADERBOARDS: dict[str, Callable[[Session, datetime], list[dict]]] = {
    "richest": _richest,
    "top_earners_month": _top_earners_month,
    "top_spenders": _top_spenders,
    "highest_streak": _highest_streak,
}


def get_leaderboard(engine, board: str, *, now: datetime) -> dict:
    """Top 10 for *board*; an unknown board is an empty list, not an error."""
    query = LEADERBOARDS.get(board)
    if query is None:
        return {"leaderboard": []}
    with get_session(engine) as session:
        return {"leaderboard": _enrich(session, query(session, now))}


# ---------------------------------------------------------------------------
# Owner stats
# ---------------------------------------------------------------------------
def get_economy_stats(engine, user_id: str) -> dict:
    """Economy-wide totals and the latest ledger activity.  Owners only."""
    with get_session(engine) as session:
        if not identity.is_owner(session, user_id):
            raise AuthorizationError("Unauthorized")

        totals = session.execute(
            select(
                func.coalesce(func.sum(Wallet.balance), 0),
                func.coalesce(func.sum(Wallet.lifetime_earned), 0),
                func.coalesce(func.sum(Wallet.lifetime_spent), 0),
                func.count(Wallet.user_id),
            )
        ).one()
        circulation, earned, spent, users = (int(v) for v in totals)

        feed = [transaction_log.to_dict(tx)
                for tx in transaction_log.recent(session, limit=STATS_HISTORY)]
        return {
            "totalCirculation": circulation,
            "totalEarned": earned,
            "totalSpent": spent,
            "totalUsers": users,
            "inflationRate": inflation_rate(circulation, earned),
            "recentTransactions": _enrich(session, feed),
        }
