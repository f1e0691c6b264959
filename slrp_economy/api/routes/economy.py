"""
slrp_economy.api.routes.economy — The token-economy RPC endpoint
=================================================================
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import Engine

from slrp_economy.api.deps import get_current_user, get_engine
from slrp_economy.api.dispatcher import dispatch
from slrp_economy.database.engine import run_db
from slrp_economy.errors import ValidationError

router = APIRouter(tags=["economy"])
logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    cloudflare = request.headers.get("cf-connecting-ip", "").strip()
    if cloudflare:
        return cloudflare
    return request.client.host if request.client else None


@router.post("/token-economy")
async def token_economy(
    request: Request,
    user_id: str = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """Run one ``{"action": ..., ...params}`` request for the caller."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid request body")

    status_code, payload = await run_db(
        dispatch, engine, user_id, body,
        client_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return JSONResponse(payload, status_code=status_code)
