"""
tests/test_read_views.py — Wallet snapshot, leaderboards & owner stats
=======================================================================
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from conftest import NOW, make_profile
from slrp_economy.database.models import LoginStreak, TokenTransaction
from slrp_economy.engine.rules import DEFAULT_RULES
from slrp_economy.errors import AuthorizationError
from slrp_economy.services import earning_service, read_views


class TestGetWallet:
    def test_new_user_gets_zeros(self, db_engine):
        uid = make_profile(db_engine)
        snapshot = read_views.get_wallet(db_engine, uid, rules=DEFAULT_RULES, now=NOW)

        assert snapshot["wallet"] == {"balance": 0, "lifetime_earned": 0, "lifetime_spent": 0}
        assert snapshot["streak"]["current_streak"] == 0
        assert snapshot["dailyEarned"] == 0
        assert snapshot["dailyCap"] == 250
        assert snapshot["seasonalBalances"] == []
        assert snapshot["recentTransactions"] == []
        assert snapshot["canClaimDaily"] is True

    def test_after_claim(self, db_engine):
        uid = make_profile(db_engine)
        earning_service.claim_daily(db_engine, uid, rules=DEFAULT_RULES, now=NOW)

        snapshot = read_views.get_wallet(db_engine, uid, rules=DEFAULT_RULES, now=NOW)
        assert snapshot["wallet"]["balance"] == 25
        assert snapshot["streak"]["current_streak"] == 1
        assert snapshot["dailyEarned"] == 25
        assert snapshot["canClaimDaily"] is False
        assert snapshot["recentTransactions"][0]["source"] == "daily_login"

        tomorrow = read_views.get_wallet(
            db_engine, uid, rules=DEFAULT_RULES, now=NOW + timedelta(days=1),
        )
        assert tomorrow["canClaimDaily"] is True
        assert tomorrow["dailyEarned"] == 0

    def test_history_limited_to_twenty(self, db_engine):
        uid = make_profile(db_engine)
        with Session(db_engine) as session:
            for i in range(25):
                session.add(TokenTransaction(
                    user_id=uid, amount=1, transaction_type="earn", source="mini_game",
                    created_at=NOW - timedelta(minutes=i),
                ))
            session.commit()
        snapshot = read_views.get_wallet(db_engine, uid, rules=DEFAULT_RULES, now=NOW)
        assert len(snapshot["recentTransactions"]) == 20


class TestLeaderboards:
    def test_richest_enriched_with_identity(self, db_engine):
        poor = make_profile(db_engine, discord_id="1", username="poor", balance=10)
        rich = make_profile(db_engine, discord_id="2", username="rich", balance=500)

        board = read_views.get_leaderboard(db_engine, "richest", now=NOW)["leaderboard"]
        assert [row["user_id"] for row in board] == [rich, poor]
        assert board[0]["discord_username"] == "rich"
        assert board[0]["discord_id"] == "2"
        assert board[0]["balance"] == 500

    def test_capped_at_ten(self, db_engine):
        for i in range(12):
            make_profile(db_engine, balance=i)
        board = read_views.get_leaderboard(db_engine, "richest", now=NOW)["leaderboard"]
        assert len(board) == 10
        assert board[0]["balance"] == 11

    def test_top_earners_uses_trailing_thirty_days(self, db_engine):
        recent = make_profile(db_engine, username="recent")
        old = make_profile(db_engine, username="old")
        with Session(db_engine) as session:
            session.add_all([
                TokenTransaction(user_id=recent, amount=30, transaction_type="earn",
                                 source="mini_game", created_at=NOW - timedelta(days=2)),
                TokenTransaction(user_id=recent, amount=20, transaction_type="earn",
                                 source="daily_login", created_at=NOW - timedelta(days=29)),
                TokenTransaction(user_id=recent, amount=-500, transaction_type="spend",
                                 source="purchase", created_at=NOW - timedelta(days=1)),
                TokenTransaction(user_id=old, amount=999, transaction_type="earn",
                                 source="mini_game", created_at=NOW - timedelta(days=31)),
            ])
            session.commit()

        board = read_views.get_leaderboard(db_engine, "top_earners_month", now=NOW)["leaderboard"]
        assert board == [{
            "user_id": recent, "total_earned": 50,
            "discord_username": "recent", "discord_id": None, "discord_avatar": None,
        }]

    def test_top_spenders(self, db_engine):
        uid = make_profile(db_engine, balance=100)
        from slrp_economy.database.engine import get_session
        from slrp_economy.services import wallet_store

        with get_session(db_engine) as session:
            wallet_store.debit(session, uid, 40)
        [row] = read_views.get_leaderboard(db_engine, "top_spenders", now=NOW)["leaderboard"]
        assert row["lifetime_spent"] == 40

    def test_highest_streak(self, db_engine):
        a = make_profile(db_engine)
        b = make_profile(db_engine)
        with Session(db_engine) as session:
            session.add_all([
                LoginStreak(user_id=a, current_streak=1, longest_streak=9),
                LoginStreak(user_id=b, current_streak=4, longest_streak=4),
            ])
            session.commit()
        board = read_views.get_leaderboard(db_engine, "highest_streak", now=NOW)["leaderboard"]
        assert [(r["user_id"], r["longest_streak"]) for r in board] == [(a, 9), (b, 4)]

    def test_unknown_type_is_empty(self, db_engine):
        assert read_views.get_leaderboard(db_engine, "weirdest", now=NOW) == {"leaderboard": []}


class TestEconomyStats:
    def test_owner_only(self, db_engine):
        uid = make_profile(db_engine)
        with pytest.raises(AuthorizationError, match="Unauthorized"):
            read_views.get_economy_stats(db_engine, uid)

    def test_aggregates(self, db_engine):
        owner = make_profile(db_engine, owner=True, username="boss")
        make_profile(db_engine, balance=300)
        earning_service.claim_daily(db_engine, owner, rules=DEFAULT_RULES, now=NOW)

        stats = read_views.get_economy_stats(db_engine, owner)
        assert stats["totalCirculation"] == 325
        assert stats["totalEarned"] == 325
        assert stats["totalSpent"] == 0
        assert stats["totalUsers"] == 2
        assert stats["inflationRate"] == 100.0
        [tx] = stats["recentTransactions"]
        assert tx["discord_username"] == "boss"

    def test_empty_economy(self, db_engine):
        owner = make_profile(db_engine, owner=True)
        stats = read_views.get_economy_stats(db_engine, owner)
        assert stats["totalUsers"] == 0
        assert stats["inflationRate"] == 0.0
        assert stats["recentTransactions"] == []
