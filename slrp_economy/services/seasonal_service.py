"""
slrp_economy.services.seasonal_service — Seasonal multiplier currencies
========================================================================

While a seasonal currency is active, every successful earn also mints
``floor(granted * multiplier)`` of it for the earner (:func:`on_earn`, called
from the shared award routine).  Seasonal balances convert back into the
main wallet 1:1.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from slrp_economy.database.engine import get_session, insert_if_absent
from slrp_economy.database.models import (
    SeasonalBalance,
    SeasonalCurrency,
    TransactionSource,
    TransactionType,
)
from slrp_economy.engine.ledger_math import seasonal_share
from slrp_economy.errors import BusinessRuleViolation, ValidationError
from slrp_economy.services import identity, transaction_log, wallet_store

logger = logging.getLogger(__name__)

CONVERSION_RATE = 1


def active_currencies(session: Session) -> list[SeasonalCurrency]:
    return list(session.scalars(
        select(SeasonalCurrency)
        .where(SeasonalCurrency.is_active.is_(True))
        .order_by(SeasonalCurrency.created_at)
    ).all())


def _add(session: Session, user_id: str, currency_id: str, amount: int) -> None:
    if insert_if_absent(
        session, SeasonalBalance,
        user_id=user_id, currency_id=currency_id, balance=amount,
    ):
        return
    session.execute(
        update(SeasonalBalance)
        .where(SeasonalBalance.user_id == user_id, SeasonalBalance.currency_id == currency_id)
        .values(balance=SeasonalBalance.balance + amount, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )


def on_earn(session: Session, user_id: str, granted: int) -> dict[str, int]:
    """Mint seasonal currency for an earn.  Returns ``{slug: minted}``."""
    minted: dict[str, int] = {}
    for currency in active_currencies(session):
        share = seasonal_share(granted, currency.multiplier)
        if share <= 0:
            continue
        _add(session, user_id, currency.id, share)
        minted[currency.slug] = share
    return minted


def convert(
    engine,
    user_id: str,
    currency_id: str,
    amount: int,
    *,
    now: datetime,
) -> int:
    """Move *amount* seasonal units into the wallet.  Returns the amount converted."""
    if not currency_id or amount <= 0:
        raise ValidationError("Invalid parameters")

    with get_session(engine) as session:
        identity.require_profile(session, user_id)
        result = session.execute(
            update(SeasonalBalance)
            .where(
                SeasonalBalance.user_id == user_id,
                SeasonalBalance.currency_id == currency_id,
                SeasonalBalance.balance >= amount,
            )
            .values(balance=SeasonalBalance.balance - amount, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise BusinessRuleViolation(
                "Insufficient seasonal balance", code="insufficient_seasonal_balance",
            )

        credited = amount * CONVERSION_RATE
        wallet_store.credit(session, user_id, credited)
        transaction_log.record(
            session,
            user_id=user_id,
            amount=credited,
            transaction_type=TransactionType.EARN,
            source=TransactionSource.SEASONAL_CONVERT,
            description="Seasonal currency conversion",
            reference_id=currency_id,
            created_at=now,
        )

    logger.info("User %s converted %d seasonal units of %s", user_id, amount, currency_id)
    return credited


def currency_dict(currency: SeasonalCurrency) -> dict:
    return {
        "id": currency.id,
        "name": currency.name,
        "slug": currency.slug,
        "icon": currency.icon,
        "multiplier": currency.multiplier,
        "is_active": currency.is_active,
    }


def balances_for(session: Session, user_id: str) -> list[dict]:
    """Seasonal balances joined with their currency metadata."""
    rows = session.execute(
        select(SeasonalBalance, SeasonalCurrency)
        .join(SeasonalCurrency, SeasonalCurrency.id == SeasonalBalance.currency_id)
        .where(SeasonalBalance.user_id == user_id)
        .order_by(SeasonalCurrency.created_at)
    ).all()
    return [
        {
            "id": f"{bal.user_id}:{bal.currency_id}",
            "balance": bal.balance,
            "currency_id": bal.currency_id,
            "seasonal_currencies": currency_dict(cur),
        }
        for bal, cur in rows
    ]
