"""
slrp_economy.api.routes.profiles — Public equipped-cosmetics lookups
=====================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from slrp_economy.api.deps import get_engine
from slrp_economy.services import customization_service

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/customizations")
def batch_customizations(
    user_ids: list[str] = Query(default=[]),
    engine=Depends(get_engine),
):
    """Customizations for many users, e.g. a leaderboard page.

    Accepts repeated ``user_ids`` parameters or one comma-separated value.
    """
    ids = [uid.strip() for raw in user_ids for uid in raw.split(",")]
    return {"customizations": customization_service.get_customizations(engine, ids)}


@router.get("/{user_id}/customization")
def user_customization(user_id: str, engine=Depends(get_engine)):
    return customization_service.get_customization(engine, user_id)
