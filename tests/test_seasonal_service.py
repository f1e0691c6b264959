"""
tests/test_seasonal_service.py — Seasonal balance conversion
=============================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from conftest import NOW, make_profile
from slrp_economy.database.engine import get_session
from slrp_economy.database.models import SeasonalBalance, SeasonalCurrency, TokenTransaction, Wallet
from slrp_economy.errors import BusinessRuleViolation, ValidationError
from slrp_economy.services import seasonal_service


@pytest.fixture
def currency_id(db_engine) -> str:
    with Session(db_engine) as session:
        currency = SeasonalCurrency(name="Candy", slug="candy", multiplier=0.5, is_active=True)
        session.add(currency)
        session.commit()
        return currency.id


def _give(engine, uid: str, currency_id: str, amount: int) -> None:
    with Session(engine) as session:
        session.add(SeasonalBalance(user_id=uid, currency_id=currency_id, balance=amount))
        session.commit()


def test_convert_moves_into_wallet(db_engine, currency_id):
    uid = make_profile(db_engine)
    _give(db_engine, uid, currency_id, 40)

    assert seasonal_service.convert(db_engine, uid, currency_id, 30, now=NOW) == 30

    with Session(db_engine) as session:
        assert session.get(SeasonalBalance, (uid, currency_id)).balance == 10
        wallet = session.get(Wallet, uid)
        assert wallet.balance == 30
        assert wallet.lifetime_earned == 30
        [tx] = session.scalars(select(TokenTransaction)).all()
        assert (tx.transaction_type, tx.source, tx.amount) == ("earn", "seasonal_convert", 30)


def test_convert_insufficient(db_engine, currency_id):
    uid = make_profile(db_engine)
    _give(db_engine, uid, currency_id, 5)

    with pytest.raises(BusinessRuleViolation) as exc:
        seasonal_service.convert(db_engine, uid, currency_id, 6, now=NOW)
    assert exc.value.code == "insufficient_seasonal_balance"

    with Session(db_engine) as session:
        assert session.get(SeasonalBalance, (uid, currency_id)).balance == 5
        assert session.get(Wallet, uid) is None


def test_convert_without_balance_row(db_engine, currency_id):
    uid = make_profile(db_engine)
    with pytest.raises(BusinessRuleViolation):
        seasonal_service.convert(db_engine, uid, currency_id, 1, now=NOW)


@pytest.mark.parametrize("amount", [0, -3])
def test_convert_rejects_non_positive(db_engine, currency_id, amount):
    uid = make_profile(db_engine)
    with pytest.raises(ValidationError, match="Invalid parameters"):
        seasonal_service.convert(db_engine, uid, currency_id, amount, now=NOW)


def test_on_earn_accumulates(db_engine, currency_id):
    uid = make_profile(db_engine)
    with get_session(db_engine) as session:
        assert seasonal_service.on_earn(session, uid, 25) == {"candy": 12}
        assert seasonal_service.on_earn(session, uid, 25) == {"candy": 12}

    with get_session(db_engine) as session:
        [row] = seasonal_service.balances_for(session, uid)
    assert row["balance"] == 24
    assert row["seasonal_currencies"]["slug"] == "candy"
