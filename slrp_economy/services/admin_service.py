"""
slrp_economy.services.admin_service — Audited owner edits
==========================================================

Every owner write follows the same pattern:
  1. Begin transaction
  2. Read "before" snapshot
  3. Apply change
  4. Write admin_log with before/after JSON
  5. Commit

Covers the shop catalog, seasonal currencies and economy tuning settings.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slrp_economy.database.engine import get_session
from slrp_economy.database.models import AdminLog, SeasonalCurrency, Setting, ShopItem
from slrp_economy.database.seed import DEFAULT_SETTINGS
from slrp_economy.errors import ValidationError

logger = logging.getLogger(__name__)

# Settings with an upper bound on top of the non-negative check.
SETTING_MAXIMUMS = {
    "economy.transfer_tax_rate": 1,
}


# ---------------------------------------------------------------------------
# Generic audit helpers
# ---------------------------------------------------------------------------

def _row_to_dict(obj: Any) -> dict | None:
    """Convert a SQLAlchemy model instance to a JSON-serializable dict."""
    if obj is None:
        return None
    result = {}
    for col in obj.__table__.columns:
        val = getattr(obj, col.key, None)
        if isinstance(val, (datetime, date)):
            val = val.isoformat()
        result[col.name] = val
    return result


def _log_admin_action(
    session: Session,
    *,
    actor_id: str,
    action_type: str,
    target_table: str,
    target_id: str | None,
    before: dict | None,
    after: dict | None,
) -> None:
    """Insert a row into admin_log within the current transaction."""
    session.add(AdminLog(
        actor_id=actor_id,
        action_type=action_type,
        target_table=target_table,
        target_id=target_id,
        before_snapshot=before,
        after_snapshot=after,
    ))


def _audited_create(engine, row: Any, *, table_name: str, actor_id: str) -> dict:
    with get_session(engine) as session:
        session.add(row)
        try:
            session.flush()
        except IntegrityError:
            raise ValidationError(f"Conflicts with an existing {table_name} row")
        session.refresh(row)
        after = _row_to_dict(row)
        _log_admin_action(
            session,
            actor_id=actor_id,
            action_type="CREATE",
            target_table=table_name,
            target_id=str(row.id),
            before=None,
            after=after,
        )
    logger.info("%s created %s %s", actor_id, table_name, after["id"])
    return after


def _audited_update(
    engine,
    model_cls: type,
    pk: str,
    *,
    table_name: str,
    actor_id: str,
    frozen_keys: tuple[str, ...] = ("id", "created_at"),
    **kwargs: Any,
) -> dict | None:
    """Generic audited UPDATE.  Returns the new snapshot, or ``None`` if not found."""
    with get_session(engine) as session:
        obj = session.get(model_cls, pk)
        if obj is None:
            return None
        before = _row_to_dict(obj)
        for key, value in kwargs.items():
            if hasattr(obj, key) and key not in frozen_keys:
                setattr(obj, key, value)
        session.flush()
        session.refresh(obj)
        after = _row_to_dict(obj)
        _log_admin_action(
            session,
            actor_id=actor_id,
            action_type="UPDATE",
            target_table=table_name,
            target_id=str(obj.id),
            before=before,
            after=after,
        )
    logger.info("%s updated %s %s", actor_id, table_name, pk)
    return after


def _audited_delete(engine, model_cls: type, pk: str, *, table_name: str, actor_id: str) -> bool:
    """Generic audited DELETE.  Returns ``True`` if the row existed."""
    with get_session(engine) as session:
        obj = session.get(model_cls, pk)
        if obj is None:
            return False
        _log_admin_action(
            session,
            actor_id=actor_id,
            action_type="DELETE",
            target_table=table_name,
            target_id=str(obj.id),
            before=_row_to_dict(obj),
            after=None,
        )
        session.delete(obj)
    logger.info("%s deleted %s %s", actor_id, table_name, pk)
    return True


# ---------------------------------------------------------------------------
# Shop catalog
# ---------------------------------------------------------------------------

def list_shop_items(engine) -> list[dict]:
    """Every catalog entry, active or not."""
    with get_session(engine) as session:
        items = session.scalars(
            select(ShopItem).order_by(ShopItem.display_order, ShopItem.name)
        ).all()
        return [_row_to_dict(i) for i in items]


def create_shop_item(engine, *, actor_id: str, **fields: Any) -> dict:
    if fields.get("is_limited") and not fields.get("max_quantity"):
        raise ValidationError("Limited items need a max_quantity")
    fields.setdefault("item_data", {})
    return _audited_create(
        engine, ShopItem(**fields), table_name="shop_items", actor_id=actor_id,
    )


def update_shop_item(engine, *, item_id: str, actor_id: str, **kwargs: Any) -> dict | None:
    # sold_count is owned by purchases
    return _audited_update(
        engine, ShopItem, item_id,
        table_name="shop_items",
        actor_id=actor_id,
        frozen_keys=("id", "created_at", "sold_count"),
        **kwargs,
    )


def delete_shop_item(engine, *, item_id: str, actor_id: str) -> bool:
    return _audited_delete(
        engine, ShopItem, item_id, table_name="shop_items", actor_id=actor_id,
    )


# ---------------------------------------------------------------------------
# Seasonal currencies
# ---------------------------------------------------------------------------

def list_currencies(engine) -> list[dict]:
    with get_session(engine) as session:
        rows = session.scalars(
            select(SeasonalCurrency).order_by(SeasonalCurrency.created_at)
        ).all()
        return [_row_to_dict(c) for c in rows]


def create_currency(
    engine,
    *,
    name: str,
    slug: str,
    multiplier: float = 1.0,
    icon: str | None = None,
    actor_id: str,
) -> dict:
    """Create a seasonal currency.  New currencies start inactive."""
    if multiplier <= 0:
        raise ValidationError("Multiplier must be positive")
    return _audited_create(
        engine,
        SeasonalCurrency(name=name, slug=slug, icon=icon, multiplier=multiplier, is_active=False),
        table_name="seasonal_currencies",
        actor_id=actor_id,
    )


def set_currency_active(
    engine,
    *,
    currency_id: str,
    active: bool,
    actor_id: str,
    now: datetime,
) -> dict | None:
    """Start or end a season, stamping when it happened."""
    stamp = {"activated_at": now} if active else {"deactivated_at": now}
    return _audited_update(
        engine, SeasonalCurrency, currency_id,
        table_name="seasonal_currencies",
        actor_id=actor_id,
        is_active=active,
        **stamp,
    )


# ---------------------------------------------------------------------------
# Economy settings
# ---------------------------------------------------------------------------

def list_settings(engine) -> list[dict]:
    with get_session(engine) as session:
        rows = session.scalars(
            select(Setting).order_by(Setting.category, Setting.key)
        ).all()
        return [
            {
                "key": r.key,
                "value": json.loads(r.value_json),
                "category": r.category,
                "description": r.description,
            }
            for r in rows
        ]


def bulk_update_settings(engine, settings: dict[str, Any], *, actor_id: str) -> int:
    """Overwrite tuning values.  Only keys the economy knows are accepted.

    Each actual change is recorded in ``admin_log``.  Returns the number of
    rows that changed.
    """
    unknown = sorted(set(settings) - set(DEFAULT_SETTINGS))
    if unknown:
        raise ValidationError(f"Unknown setting(s): {', '.join(unknown)}")

    changed = 0
    with get_session(engine) as session:
        for key, value in settings.items():
            default, category, description = DEFAULT_SETTINGS[key]
            if isinstance(default, int) and not isinstance(value, int):
                raise ValidationError(f"{key} must be an integer")
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValidationError(f"{key} must be a non-negative number")
            maximum = SETTING_MAXIMUMS.get(key)
            if maximum is not None and value > maximum:
                raise ValidationError(f"{key} must be between 0 and {maximum}")

            existing = session.get(Setting, key)
            before = None
            if existing is not None:
                before = {"key": key, "value": json.loads(existing.value_json)}
                existing.value_json = json.dumps(value)
            else:
                session.add(Setting(
                    key=key, value_json=json.dumps(value),
                    category=category, description=description,
                ))

            after = {"key": key, "value": value}
            if before != after:
                _log_admin_action(
                    session,
                    actor_id=actor_id,
                    action_type="UPDATE" if before else "CREATE",
                    target_table="settings",
                    target_id=key,
                    before=before,
                    after=after,
                )
                changed += 1

    logger.info("%s changed %d economy setting(s)", actor_id, changed)
    return changed


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

def list_audit_log(engine, *, page: int = 1, page_size: int = 25) -> dict:
    """Newest-first page of ``admin_log``."""
    with get_session(engine) as session:
        total = session.scalar(select(func.count()).select_from(AdminLog)) or 0
        rows = session.scalars(
            select(AdminLog)
            .order_by(AdminLog.timestamp.desc(), AdminLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()
        return {
            "total": total,
            "page": page,
            "page_size": page_size,
            "entries": [_row_to_dict(r) for r in rows],
        }
