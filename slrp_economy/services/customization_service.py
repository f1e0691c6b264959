"""
slrp_economy.services.customization_service — Equipped-cosmetics reads
=======================================================================

Profile pages, leaderboards and member lists render a user's look from the
``user_profile_customization`` projection that
:func:`catalog_service.equip` keeps current.  Badge and frame ids are
resolved against ``shop_items`` here so callers get the badge emoji and
frame colour in the same response.

Users who never equipped anything have no projection row and get
:data:`DEFAULT_CUSTOMIZATION`.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select

from slrp_economy.database.engine import get_session
from slrp_economy.database.models import ProfileCustomization, ShopItem
from slrp_economy.errors import ValidationError

MAX_BATCH = 100

ANIMATED_BADGE_TYPE = "animated_badge"

DEFAULT_CUSTOMIZATION: dict = {
    "username_color": None,
    "equipped_badge_id": None,
    "equipped_frame_id": None,
    "equipped_bio_effect": None,
    "badge_emoji": None,
    "badge_animated": False,
    "frame_color": None,
}


def _customization_dict(row: ProfileCustomization, items: dict[str, ShopItem]) -> dict:
    badge = items.get(row.equipped_badge_id) if row.equipped_badge_id else None
    frame = items.get(row.equipped_frame_id) if row.equipped_frame_id else None
    return {
        "username_color": row.username_color,
        "equipped_badge_id": row.equipped_badge_id,
        "equipped_frame_id": row.equipped_frame_id,
        "equipped_bio_effect": row.equipped_bio_effect,
        "badge_emoji": (badge.item_data or {}).get("emoji") if badge else None,
        "badge_animated": badge is not None and badge.item_type == ANIMATED_BADGE_TYPE,
        "frame_color": (frame.item_data or {}).get("color") if frame else None,
    }


def get_customizations(engine, user_ids: Iterable[str]) -> dict[str, dict]:
    """Batch-load customizations keyed by user id (two queries at most).

    Every requested id is present in the result; ids without a projection
    row map to a copy of :data:`DEFAULT_CUSTOMIZATION`.
    """
    ids = list(dict.fromkeys(uid for uid in user_ids if uid))
    if len(ids) > MAX_BATCH:
        raise ValidationError(f"At most {MAX_BATCH} user ids per request")
    if not ids:
        return {}

    with get_session(engine) as session:
        rows = session.scalars(
            select(ProfileCustomization).where(ProfileCustomization.user_id.in_(ids))
        ).all()
        item_ids = {
            item_id
            for row in rows
            for item_id in (row.equipped_badge_id, row.equipped_frame_id)
            if item_id
        }
        items: dict[str, ShopItem] = {}
        if item_ids:
            items = {
                item.id: item
                for item in session.scalars(select(ShopItem).where(ShopItem.id.in_(item_ids)))
            }
        found = {row.user_id: _customization_dict(row, items) for row in rows}

    return {uid: found.get(uid, dict(DEFAULT_CUSTOMIZATION)) for uid in ids}


def get_customization(engine, user_id: str) -> dict:
    return get_customizations(engine, [user_id]).get(user_id, dict(DEFAULT_CUSTOMIZATION))
