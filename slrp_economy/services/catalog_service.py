"""
slrp_economy.services.catalog_service — Shop purchases, inventory & equip
==========================================================================

A purchase is four writes (wallet debit, stock increment, inventory
insert, ledger entry) in one transaction.  Each write that can lose a race
is guarded in SQL:

* debit — ``balance >= price``
* stock — ``sold_count < max_quantity`` for limited items
* ownership — unique (user_id, item_id)

If any guard fails the action raises, :func:`get_session` rolls back, and
the user is left exactly as before.

Equipping also refreshes ``user_profile_customization``, a denormalized
projection of equipped cosmetics that profile pages read directly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slrp_economy.database.engine import get_session, insert_if_absent
from slrp_economy.database.models import (
    InventoryEntry,
    ItemCategory,
    ProfileCustomization,
    ShopItem,
    TransactionSource,
    TransactionType,
)
from slrp_economy.errors import BusinessRuleViolation, ValidationError
from slrp_economy.services import identity, transaction_log, wallet_store

logger = logging.getLogger(__name__)


# category → (projection column, value taken from the item)
PROJECTION: dict[str, tuple[str, Callable[[ShopItem], str | None]]] = {
    ItemCategory.USERNAME_STYLE: ("username_color", lambda item: (item.item_data or {}).get("color")),
    ItemCategory.BADGE: ("equipped_badge_id", lambda item: item.id),
    ItemCategory.PROFILE_FRAME: ("equipped_frame_id", lambda item: item.id),
    ItemCategory.BIO_EFFECT: ("equipped_bio_effect", lambda item: (item.item_data or {}).get("effect")),
}


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    item_id: str
    item_name: str
    price: int
    new_balance: int


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def owns(session: Session, user_id: str, item_id: str) -> bool:
    return session.scalar(
        select(InventoryEntry.id).where(
            InventoryEntry.user_id == user_id, InventoryEntry.item_id == item_id,
        )
    ) is not None


def is_sold_out(item: ShopItem) -> bool:
    return (
        item.is_limited
        and item.max_quantity is not None
        and item.sold_count >= item.max_quantity
    )


def item_dict(item: ShopItem) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "category": item.category,
        "item_type": item.item_type,
        "price": item.price,
        "is_limited": item.is_limited,
        "max_quantity": item.max_quantity,
        "sold_count": item.sold_count,
        "is_active": item.is_active,
        "item_data": item.item_data or {},
        "display_order": item.display_order,
    }


def list_active_items(engine) -> list[dict]:
    with get_session(engine) as session:
        items = session.scalars(
            select(ShopItem)
            .where(ShopItem.is_active.is_(True))
            .order_by(ShopItem.display_order, ShopItem.name)
        ).all()
        return [item_dict(i) for i in items]


def list_inventory(engine, user_id: str) -> list[dict]:
    """The user's owned items with their catalog metadata."""
    with get_session(engine) as session:
        rows = session.execute(
            select(InventoryEntry, ShopItem)
            .join(ShopItem, ShopItem.id == InventoryEntry.item_id)
            .where(InventoryEntry.user_id == user_id)
            .order_by(InventoryEntry.purchased_at)
        ).all()
        return [
            {
                "id": entry.id,
                "item_id": entry.item_id,
                "is_equipped": entry.is_equipped,
                "purchased_at": entry.purchased_at.isoformat() if entry.purchased_at else None,
                "shop_items": item_dict(item),
            }
            for entry, item in rows
        ]


# ---------------------------------------------------------------------------
# Purchase
# ---------------------------------------------------------------------------
def _reserve_unit(session: Session, item_id: str) -> bool:
    """Bump ``sold_count`` unless that would oversell a limited item."""
    result = session.execute(
        update(ShopItem)
        .where(
            ShopItem.id == item_id,
            or_(
                ShopItem.is_limited.is_(False),
                ShopItem.max_quantity.is_(None),
                ShopItem.sold_count < ShopItem.max_quantity,
            ),
        )
        .values(sold_count=ShopItem.sold_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _grant(session: Session, user_id: str, item_id: str) -> bool:
    try:
        with session.begin_nested():
            session.add(InventoryEntry(user_id=user_id, item_id=item_id))
            session.flush()
    except IntegrityError:
        return False
    return True


def purchase(engine, user_id: str, item_id: str, *, now: datetime) -> PurchaseResult:
    """Buy *item_id* for *user_id*.

    Failure order: not found → not available → sold out → already owned →
    insufficient balance.  The same guards are re-applied by the writes
    themselves, so a concurrent purchase can only ever turn a success into
    one of these rejections, never into an oversell or a negative balance.
    """
    if not item_id:
        raise ValidationError("Missing itemId")

    with get_session(engine) as session:
        identity.require_profile(session, user_id)
        item = session.get(ShopItem, item_id)
        if item is None:
            raise BusinessRuleViolation("Item not found", code="item_not_found")
        if not item.is_active:
            raise BusinessRuleViolation("Item is not available", code="item_unavailable")
        if is_sold_out(item):
            raise BusinessRuleViolation("Item sold out", code="sold_out")
        if owns(session, user_id, item_id):
            raise BusinessRuleViolation("Already owned", code="already_owned")
        if wallet_store.get_balance(session, user_id) < item.price:
            raise BusinessRuleViolation("Insufficient balance", code="insufficient_balance")

        new_balance = wallet_store.debit(session, user_id, item.price)
        if new_balance is None:
            raise BusinessRuleViolation("Insufficient balance", code="insufficient_balance")
        if not _reserve_unit(session, item_id):
            raise BusinessRuleViolation("Item sold out", code="sold_out")
        if not _grant(session, user_id, item_id):
            raise BusinessRuleViolation("Already owned", code="already_owned")

        transaction_log.record(
            session,
            user_id=user_id,
            amount=-item.price,
            transaction_type=TransactionType.SPEND,
            source=TransactionSource.PURCHASE,
            description=f"Purchased: {item.name}",
            reference_id=item_id,
            created_at=now,
        )
        result = PurchaseResult(
            item_id=item.id, item_name=item.name, price=item.price, new_balance=new_balance,
        )

    logger.info("User %s bought %r for %d tokens", user_id, result.item_name, result.price)
    return result


# ---------------------------------------------------------------------------
# Equip
# ---------------------------------------------------------------------------
def _project(session: Session, user_id: str, item: ShopItem) -> None:
    mapping = PROJECTION.get(item.category)
    if mapping is None:
        return
    column, value_of = mapping
    insert_if_absent(session, ProfileCustomization, user_id=user_id)
    session.execute(
        update(ProfileCustomization)
        .where(ProfileCustomization.user_id == user_id)
        .values({column: value_of(item), "updated_at": func.now()})
        .execution_options(synchronize_session=False)
    )


def equip(engine, user_id: str, item_id: str, category: str) -> None:
    """Make *item_id* the user's one equipped item in its category."""
    if not item_id or not category:
        raise ValidationError("Missing itemId or category")

    with get_session(engine) as session:
        identity.require_profile(session, user_id)
        if not owns(session, user_id, item_id):
            raise BusinessRuleViolation("Item not owned", code="item_not_owned")
        item = session.get(ShopItem, item_id)
        if item is None:
            raise BusinessRuleViolation("Item not found", code="item_not_found")
        if item.category != category:
            raise ValidationError("Category does not match item")

        same_category = select(ShopItem.id).where(ShopItem.category == item.category)
        session.execute(
            update(InventoryEntry)
            .where(InventoryEntry.user_id == user_id, InventoryEntry.item_id.in_(same_category))
            .values(is_equipped=False)
            .execution_options(synchronize_session=False)
        )
        session.execute(
            update(InventoryEntry)
            .where(InventoryEntry.user_id == user_id, InventoryEntry.item_id == item_id)
            .values(is_equipped=True)
            .execution_options(synchronize_session=False)
        )
        _project(session, user_id, item)

    logger.info("User %s equipped %s (%s)", user_id, item_id, category)
