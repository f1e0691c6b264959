"""
slrp_economy.services.wallet_store — Wallet balances
=====================================================

Every balance change is one SQL ``UPDATE`` that does the arithmetic in the
database (``balance = balance + :amount``).  Debits carry a
``balance >= :amount`` guard, so a debit either lands whole or matches no
row and reports failure; nothing ever reads a balance in Python, adjusts
it, and writes it back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from slrp_economy.database.engine import insert_if_absent
from slrp_economy.database.models import Wallet

logger = logging.getLogger(__name__)


def get_wallet(session: Session, user_id: str) -> Wallet | None:
    return session.get(Wallet, user_id)


def get_balance(session: Session, user_id: str) -> int:
    """Current balance, or 0 when the user has no wallet yet."""
    return session.scalar(
        select(Wallet.balance).where(Wallet.user_id == user_id)
    ) or 0


def ensure_wallet(session: Session, user_id: str) -> None:
    """Create an empty wallet unless one already exists."""
    exists = session.scalar(select(Wallet.user_id).where(Wallet.user_id == user_id))
    if exists is None and insert_if_absent(session, Wallet, user_id=user_id):
        logger.debug("Created wallet for %s", user_id)


def lock_wallets(session: Session, user_ids: Iterable[str]) -> None:
    """Row-lock several wallets in a fixed order.

    Two opposite transfers would otherwise lock the same pair of rows in
    opposite orders.  No-op on backends without ``SELECT … FOR UPDATE``.
    """
    ordered = sorted(set(user_ids))
    session.execute(
        select(Wallet.user_id)
        .where(Wallet.user_id.in_(ordered))
        .order_by(Wallet.user_id)
        .with_for_update()
    ).all()


def credit(session: Session, user_id: str, amount: int) -> int:
    """Add *amount* to balance and lifetime_earned.  Returns the new balance."""
    if amount < 0:
        raise ValueError("credit amount must be non-negative")
    ensure_wallet(session, user_id)
    return session.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id)
        .values(
            balance=Wallet.balance + amount,
            lifetime_earned=Wallet.lifetime_earned + amount,
            updated_at=func.now(),
        )
        .returning(Wallet.balance)
    ).scalar_one()


def debit(session: Session, user_id: str, amount: int) -> int | None:
    """Subtract *amount* from balance and add it to lifetime_spent.

    Returns the new balance, or ``None`` when the wallet is missing or
    holds less than *amount* (nothing is changed in that case).
    """
    if amount < 0:
        raise ValueError("debit amount must be non-negative")
    row = session.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id, Wallet.balance >= amount)
        .values(
            balance=Wallet.balance - amount,
            lifetime_spent=Wallet.lifetime_spent + amount,
            updated_at=func.now(),
        )
        .returning(Wallet.balance)
    ).first()
    if row is None:
        return None
    return row[0]


def wallet_dict(wallet: Wallet | None) -> dict:
    if wallet is None:
        return {"balance": 0, "lifetime_earned": 0, "lifetime_spent": 0}
    return {
        "user_id": wallet.user_id,
        "balance": wallet.balance,
        "lifetime_earned": wallet.lifetime_earned,
        "lifetime_spent": wallet.lifetime_spent,
        "updated_at": wallet.updated_at.isoformat() if wallet.updated_at else None,
    }
