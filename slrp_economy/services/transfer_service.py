"""
slrp_economy.services.transfer_service — Peer-to-peer token transfers
======================================================================

The sender pays ``amount + tax``; the receiver gets ``amount``; the tax is
burned.  Receivers are addressed by Discord id, since that is what members
see of each other in the community.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from slrp_economy.database.engine import get_session
from slrp_economy.database.models import TokenTransfer, TransactionSource, TransactionType
from slrp_economy.engine.ledger_math import transfer_tax
from slrp_economy.engine.rules import EconomyRules
from slrp_economy.errors import BusinessRuleViolation, ValidationError
from slrp_economy.services import identity, transaction_log, wallet_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransferResult:
    sent: int
    tax: int
    new_balance: int
    receiver: str | None


def _insufficient(amount: int, tax: int) -> BusinessRuleViolation:
    return BusinessRuleViolation(
        f"Insufficient balance. Need {amount + tax} ({amount} + {tax} tax)",
        code="insufficient_balance",
    )


def _record(session: Session, sender_id: str, receiver_id: str, amount: int, tax: int,
            receiver_name: str, now: datetime) -> None:
    session.add(TokenTransfer(
        sender_id=sender_id, receiver_id=receiver_id,
        amount=amount, tax_amount=tax, created_at=now,
    ))
    transaction_log.record(
        session,
        user_id=sender_id,
        amount=-(amount + tax),
        transaction_type=TransactionType.TRANSFER_OUT,
        source=TransactionSource.TRANSFER,
        description=f"Transfer to {receiver_name}",
        reference_id=receiver_id,
        created_at=now,
    )
    transaction_log.record(
        session,
        user_id=receiver_id,
        amount=amount,
        transaction_type=TransactionType.TRANSFER_IN,
        source=TransactionSource.TRANSFER,
        description="Transfer from user",
        reference_id=sender_id,
        created_at=now,
    )


def transfer(
    engine,
    sender_id: str,
    receiver_discord_id: str,
    amount: int,
    *,
    rules: EconomyRules,
    now: datetime,
) -> TransferResult:
    """Move *amount* tokens from *sender_id* to the profile linked to
    *receiver_discord_id*.

    Raises
    ------
    ValidationError
        Non-positive amount or missing receiver.
    BusinessRuleViolation
        Unknown receiver, self-transfer, or balance below ``amount + tax``.
    """
    if not receiver_discord_id or amount <= 0:
        raise ValidationError("Invalid transfer parameters")

    tax = transfer_tax(amount, rules.transfer_tax_rate)

    with get_session(engine) as session:
        identity.require_profile(session, sender_id)
        receiver = identity.resolve_discord_id(session, receiver_discord_id)
        if receiver is None:
            raise BusinessRuleViolation("Receiver not found", code="receiver_not_found")
        if receiver.id == sender_id:
            raise BusinessRuleViolation("Cannot transfer to yourself", code="self_transfer")

        wallet_store.ensure_wallet(session, receiver.id)
        wallet_store.lock_wallets(session, (sender_id, receiver.id))

        new_balance = wallet_store.debit(session, sender_id, amount + tax)
        if new_balance is None:
            raise _insufficient(amount, tax)
        wallet_store.credit(session, receiver.id, amount)

        receiver_name = receiver.discord_username or receiver_discord_id
        _record(session, sender_id, receiver.id, amount, tax, receiver_name, now)
        result = TransferResult(
            sent=amount, tax=tax, new_balance=new_balance, receiver=receiver.discord_username,
        )

    logger.info("Transfer %s → %s: %d tokens (+%d tax burned)",
                sender_id, receiver_discord_id, amount, tax)
    return result
