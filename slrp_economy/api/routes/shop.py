"""
slrp_economy.api.routes.shop — Public catalog and the caller's inventory
=========================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from slrp_economy.api.deps import get_current_user, get_engine
from slrp_economy.services import catalog_service

router = APIRouter(tags=["shop"])


@router.get("/shop/items")
def list_items(engine=Depends(get_engine)):
    return {"items": catalog_service.list_active_items(engine)}


@router.get("/inventory")
def my_inventory(
    user_id: str = Depends(get_current_user),
    engine=Depends(get_engine),
):
    return {"inventory": catalog_service.list_inventory(engine, user_id)}
