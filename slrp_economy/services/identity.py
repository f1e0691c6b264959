"""
slrp_economy.services.identity — Profile lookups & role checks
===============================================================

The ledger never writes identities; it reads the ``profiles`` and
``user_roles`` tables that the site's auth layer maintains.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from slrp_economy.database.models import Profile, UserRole
from slrp_economy.errors import BusinessRuleViolation

OWNER_ROLE = "owner"


def get_profile(session: Session, user_id: str) -> Profile | None:
    return session.get(Profile, user_id)


def require_profile(session: Session, user_id: str) -> Profile:
    """Load the caller's profile; a token whose subject has none is rejected."""
    profile = session.get(Profile, user_id)
    if profile is None:
        raise BusinessRuleViolation("Unknown user", code="unknown_user")
    return profile


def resolve_discord_id(session: Session, discord_id: str) -> Profile | None:
    """Map a Discord snowflake to the internal profile, if one is linked."""
    return session.scalar(select(Profile).where(Profile.discord_id == str(discord_id)))


def is_owner(session: Session, user_id: str) -> bool:
    return session.get(UserRole, (user_id, OWNER_ROLE)) is not None


def public_identity(profile: Profile | None) -> dict:
    """The public display fields merged into leaderboard and feed rows."""
    if profile is None:
        return {"discord_username": None, "discord_id": None, "discord_avatar": None}
    return {
        "discord_username": profile.discord_username,
        "discord_id": profile.discord_id,
        "discord_avatar": profile.discord_avatar,
    }


def identities_for(session: Session, user_ids: Iterable[str]) -> dict[str, dict]:
    """Batch-load public identities for *user_ids* (one query)."""
    ids = set(user_ids)
    if not ids:
        return {}
    profiles = session.scalars(select(Profile).where(Profile.id.in_(ids))).all()
    found = {p.id: public_identity(p) for p in profiles}
    return {uid: found.get(uid, public_identity(None)) for uid in ids}
