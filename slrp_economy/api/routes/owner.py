"""
slrp_economy.api.routes.owner — Owner-only catalog, season & tuning edits
==========================================================================
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from slrp_economy.api.deps import get_current_owner, get_engine
from slrp_economy.database.models import ItemCategory
from slrp_economy.services import admin_service

router = APIRouter(prefix="/owner", tags=["owner"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ShopItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: ItemCategory
    item_type: str = "color"
    price: int = Field(gt=0)
    is_limited: bool = False
    max_quantity: int | None = Field(None, gt=0)
    is_active: bool = True
    item_data: dict[str, Any] = Field(default_factory=dict)
    display_order: int = 0


class ShopItemUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    item_type: str | None = None
    price: int | None = Field(None, gt=0)
    is_limited: bool | None = None
    max_quantity: int | None = Field(None, gt=0)
    is_active: bool | None = None
    item_data: dict[str, Any] | None = None
    display_order: int | None = None


class CurrencyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=50, pattern=r"^[a-z0-9_-]+$")
    multiplier: float = Field(1.0, gt=0)
    icon: str | None = None


class CurrencyToggle(BaseModel):
    is_active: bool


# ---------------------------------------------------------------------------
# Shop catalog
# ---------------------------------------------------------------------------
@router.get("/shop-items")
def list_shop_items(
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    return {"items": admin_service.list_shop_items(engine)}


@router.post("/shop-items", status_code=201)
def create_shop_item(
    body: ShopItemCreate,
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    fields = body.model_dump()
    fields["category"] = body.category.value
    return admin_service.create_shop_item(engine, actor_id=owner_id, **fields)


@router.patch("/shop-items/{item_id}")
def update_shop_item(
    item_id: str,
    body: ShopItemUpdate,
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    item = admin_service.update_shop_item(
        engine, item_id=item_id, actor_id=owner_id, **body.model_dump(exclude_unset=True),
    )
    if item is None:
        raise HTTPException(404, "Item not found")
    return item


@router.delete("/shop-items/{item_id}")
def delete_shop_item(
    item_id: str,
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    if not admin_service.delete_shop_item(engine, item_id=item_id, actor_id=owner_id):
        raise HTTPException(404, "Item not found")
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Seasonal currencies
# ---------------------------------------------------------------------------
@router.get("/currencies")
def list_currencies(
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    return {"currencies": admin_service.list_currencies(engine)}


@router.post("/currencies", status_code=201)
def create_currency(
    body: CurrencyCreate,
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    return admin_service.create_currency(
        engine,
        name=body.name,
        slug=body.slug,
        multiplier=body.multiplier,
        icon=body.icon,
        actor_id=owner_id,
    )


@router.put("/currencies/{currency_id}/active")
def toggle_currency(
    currency_id: str,
    body: CurrencyToggle,
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    currency = admin_service.set_currency_active(
        engine,
        currency_id=currency_id,
        active=body.is_active,
        actor_id=owner_id,
        now=datetime.now(UTC),
    )
    if currency is None:
        raise HTTPException(404, "Currency not found")
    return currency


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
@router.get("/settings")
def list_settings(
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    return {"settings": admin_service.list_settings(engine)}


@router.put("/settings")
def update_settings(
    body: dict[str, Any],
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    changed = admin_service.bulk_update_settings(engine, body, actor_id=owner_id)
    return {"changed": changed}


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------
@router.get("/audit")
def get_audit_log(
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    owner_id: str = Depends(get_current_owner),
    engine=Depends(get_engine),
):
    """Paginated owner audit log."""
    return admin_service.list_audit_log(engine, page=page, page_size=page_size)
