"""
slrp_economy.api.dispatcher — Action dispatch for the token-economy endpoint
============================================================================

Clients post ``{"action": "...", ...params}``.  :class:`Action` is the
closed set of actions; :data:`HANDLERS` maps each one to its parameter
model and handler.  A missing handler fails at import time.

:func:`dispatch` is synchronous (run it through ``run_db``) and never
raises: it returns ``(http_status, json_body)``.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, ClassVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from sqlalchemy import Engine

from slrp_economy.database.engine import get_session
from slrp_economy.engine.rules import EconomyRules, load_rules
from slrp_economy.errors import EconomyError, ValidationError
from slrp_economy.services import (
    catalog_service,
    earning_service,
    read_views,
    seasonal_service,
    transfer_service,
)

logger = logging.getLogger(__name__)


class Action(enum.StrEnum):
    CLAIM_DAILY = "claim_daily"
    EARN_MINI_GAME = "earn_mini_game"
    EARN_GALLERY = "earn_gallery"
    PURCHASE_ITEM = "purchase_item"
    EQUIP_ITEM = "equip_item"
    TRANSFER = "transfer"
    CONVERT_SEASONAL = "convert_seasonal"
    GET_WALLET = "get_wallet"
    GET_LEADERBOARD = "get_leaderboard"
    GET_ECONOMY_STATS = "get_economy_stats"


@dataclass(frozen=True, slots=True)
class ActionContext:
    """Everything a handler needs besides its parameters."""

    engine: Engine
    user_id: str
    rules: EconomyRules
    now: datetime
    client_ip: str | None = None
    user_agent: str | None = None


# ---------------------------------------------------------------------------
# Parameter models
# ---------------------------------------------------------------------------
class ActionParams(BaseModel):
    """Base for per-action parameters.  Accepts the camelCase wire names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    invalid_message: ClassVar[str] = "Invalid parameters"


class NoParams(ActionParams):
    pass


class MiniGameParams(ActionParams):
    invalid_message: ClassVar[str] = "Invalid score"

    game_type: str | None = Field(None, alias="gameType")
    score: StrictInt | None = None


class GalleryParams(ActionParams):
    submission_user_id: str | None = Field(None, alias="submissionUserId")


class PurchaseParams(ActionParams):
    invalid_message: ClassVar[str] = "Missing itemId"

    item_id: str = Field(alias="itemId")


class EquipParams(ActionParams):
    invalid_message: ClassVar[str] = "Missing itemId or category"

    item_id: str = Field(alias="itemId")
    category: str


class TransferParams(ActionParams):
    invalid_message: ClassVar[str] = "Invalid transfer parameters"

    receiver_discord_id: str = Field(alias="receiverDiscordId")
    amount: StrictInt

    @field_validator("receiver_discord_id", mode="before")
    @classmethod
    def _snowflake_as_text(cls, value: Any) -> Any:
        # Snowflakes arrive as numbers from some clients.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ConvertParams(ActionParams):
    currency_id: str = Field(alias="currencyId")
    amount: StrictInt


class LeaderboardParams(ActionParams):
    board: str = Field("richest", alias="type")


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------
def _claim_daily(ctx: ActionContext, params: NoParams) -> dict:
    result = earning_service.claim_daily(ctx.engine, ctx.user_id, rules=ctx.rules, now=ctx.now)
    return {
        "success": True,
        "amount": result.granted,
        "newBalance": result.new_balance,
        "streak": result.streak,
        "reward": result.reward,
        "monthlyClaims": result.monthly_claims,
    }


def _earn_mini_game(ctx: ActionContext, params: MiniGameParams) -> dict:
    award = earning_service.earn_mini_game(
        ctx.engine, ctx.user_id, params.game_type, params.score,
        rules=ctx.rules, now=ctx.now,
        client_ip=ctx.client_ip, user_agent=ctx.user_agent,
    )
    return {"success": True, "amount": award.granted, "newBalance": award.new_balance}


def _earn_gallery(ctx: ActionContext, params: GalleryParams) -> dict:
    award = earning_service.earn_gallery(
        ctx.engine, ctx.user_id, params.submission_user_id, rules=ctx.rules, now=ctx.now,
    )
    return {"success": True, "amount": award.granted, "newBalance": award.new_balance}


def _purchase_item(ctx: ActionContext, params: PurchaseParams) -> dict:
    result = catalog_service.purchase(ctx.engine, ctx.user_id, params.item_id, now=ctx.now)
    return {"success": True, "newBalance": result.new_balance, "item": result.item_name}


def _equip_item(ctx: ActionContext, params: EquipParams) -> dict:
    catalog_service.equip(ctx.engine, ctx.user_id, params.item_id, params.category)
    return {"success": True}


def _transfer(ctx: ActionContext, params: TransferParams) -> dict:
    result = transfer_service.transfer(
        ctx.engine, ctx.user_id, params.receiver_discord_id, params.amount,
        rules=ctx.rules, now=ctx.now,
    )
    return {
        "success": True,
        "sent": result.sent,
        "tax": result.tax,
        "newBalance": result.new_balance,
        "receiver": result.receiver,
    }


def _convert_seasonal(ctx: ActionContext, params: ConvertParams) -> dict:
    converted = seasonal_service.convert(
        ctx.engine, ctx.user_id, params.currency_id, params.amount, now=ctx.now,
    )
    return {"success": True, "converted": converted}


def _get_wallet(ctx: ActionContext, params: NoParams) -> dict:
    return read_views.get_wallet(ctx.engine, ctx.user_id, rules=ctx.rules, now=ctx.now)


def _get_leaderboard(ctx: ActionContext, params: LeaderboardParams) -> dict:
    return read_views.get_leaderboard(ctx.engine, params.board, now=ctx.now)


def _get_economy_stats(ctx: ActionContext, params: NoParams) -> dict:
    return read_views.get_economy_stats(ctx.engine, ctx.user_id)


Handler = Callable[[ActionContext, Any], dict]

HANDLERS: dict[Action, tuple[type[ActionParams], Handler]] = {
    Action.CLAIM_DAILY: (NoParams, _claim_daily),
    Action.EARN_MINI_GAME: (MiniGameParams, _earn_mini_game),
    Action.EARN_GALLERY: (GalleryParams, _earn_gallery),
    Action.PURCHASE_ITEM: (PurchaseParams, _purchase_item),
    Action.EQUIP_ITEM: (EquipParams, _equip_item),
    Action.TRANSFER: (TransferParams, _transfer),
    Action.CONVERT_SEASONAL: (ConvertParams, _convert_seasonal),
    Action.GET_WALLET: (NoParams, _get_wallet),
    Action.GET_LEADERBOARD: (LeaderboardParams, _get_leaderboard),
    Action.GET_ECONOMY_STATS: (NoParams, _get_economy_stats),
}

_unhandled = set(Action) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"Actions without a handler: {sorted(_unhandled)}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def parse(body: Any) -> tuple[Action, ActionParams]:
    """Validate the request body into an action and its typed parameters."""
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body")
    try:
        action = Action(body.get("action"))
    except ValueError:
        raise ValidationError("Invalid action")

    model, _ = HANDLERS[action]
    params = {k: v for k, v in body.items() if k != "action"}
    try:
        return action, model.model_validate(params)
    except pydantic.ValidationError:
        raise ValidationError(model.invalid_message)


def dispatch(
    engine: Engine,
    user_id: str,
    body: Any,
    *,
    client_ip: str | None = None,
    user_agent: str | None = None,
    now: datetime | None = None,
) -> tuple[int, dict]:
    """Run one action for *user_id*.  Returns ``(status_code, payload)``."""
    try:
        action, params = parse(body)
        with get_session(engine) as session:
            rules = load_rules(session)
        ctx = ActionContext(
            engine=engine,
            user_id=user_id,
            rules=rules,
            now=now or datetime.now(UTC),
            client_ip=client_ip,
            user_agent=user_agent,
        )
        _, handler = HANDLERS[action]
        return 200, handler(ctx, params)
    except EconomyError as exc:
        logger.debug("Action rejected for %s: %s (%s)", user_id, exc.message, exc.code)
        return exc.status_code, exc.to_body()
    except Exception:
        logger.exception("Token economy error")
        return 500, {"error": "Internal server error"}
