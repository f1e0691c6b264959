"""
slrp_economy.services.transaction_log — Append-only token ledger
=================================================================

The only write path is :func:`record`.  Rows are never updated or
deleted; balances can be audited by summing a user's entries.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from slrp_economy.database.models import TokenTransaction, TransactionSource, TransactionType


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def record(
    session: Session,
    *,
    user_id: str,
    amount: int,
    transaction_type: TransactionType,
    source: TransactionSource,
    description: str,
    created_at: datetime,
    reference_id: str | None = None,
) -> TokenTransaction:
    """Append one entry.  *amount* is signed: credits positive, debits negative."""
    tx = TokenTransaction(
        user_id=user_id,
        amount=amount,
        transaction_type=transaction_type.value,
        source=source.value,
        description=description,
        reference_id=reference_id,
        created_at=created_at,
    )
    session.add(tx)
    session.flush()
    return tx


def last_activity(session: Session, user_id: str, source: TransactionSource) -> datetime | None:
    """Timestamp of the user's most recent entry from *source*."""
    last = session.scalar(
        select(TokenTransaction.created_at)
        .where(TokenTransaction.user_id == user_id, TokenTransaction.source == source.value)
        .order_by(TokenTransaction.created_at.desc())
        .limit(1)
    )
    return as_utc(last) if last is not None else None


def cooldown_remaining(
    session: Session,
    user_id: str,
    source: TransactionSource,
    *,
    cooldown_seconds: int,
    now: datetime,
) -> float:
    """Seconds until *user_id* may earn from *source* again (0 if free)."""
    last = last_activity(session, user_id, source)
    if last is None:
        return 0.0
    elapsed = (now - last).total_seconds()
    return max(0.0, cooldown_seconds - elapsed)


def recent(session: Session, *, user_id: str | None = None, limit: int = 20) -> list[TokenTransaction]:
    """Newest entries first, optionally for a single user."""
    stmt = select(TokenTransaction)
    if user_id is not None:
        stmt = stmt.where(TokenTransaction.user_id == user_id)
    stmt = stmt.order_by(TokenTransaction.created_at.desc(), TokenTransaction.id.desc()).limit(limit)
    return list(session.scalars(stmt).all())


def to_dict(tx: TokenTransaction) -> dict:
    return {
        "id": tx.id,
        "user_id": tx.user_id,
        "amount": tx.amount,
        "transaction_type": tx.transaction_type,
        "source": tx.source,
        "description": tx.description,
        "reference_id": tx.reference_id,
        "created_at": as_utc(tx.created_at).isoformat() if tx.created_at else None,
    }
