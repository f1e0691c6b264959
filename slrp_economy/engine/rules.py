"""
slrp_economy.engine.rules — Typed economy tuning
=================================================

:class:`EconomyRules` is the single typed view of every economy knob.
Services never read the ``settings`` table directly; the dispatcher loads
the rules once per request and passes them down.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields

from sqlalchemy import select
from sqlalchemy.orm import Session

from slrp_economy.database.models import Setting

logger = logging.getLogger(__name__)

SETTING_PREFIX = "economy."


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Immutable economy tuning.  Defaults match the seeded settings."""

    daily_earn_cap: int = 250
    daily_base_reward: int = 25
    streak_bonus: int = 100
    streak_bonus_interval: int = 7
    monthly_claim_threshold: int = 28
    monthly_bonus: int = 500
    mini_game_reward: int = 50
    mini_game_cooldown_seconds: int = 60
    gallery_reward: int = 20
    gallery_cooldown_seconds: int = 300
    transfer_tax_rate: float = 0.05


DEFAULT_RULES = EconomyRules()


def load_rules(session: Session) -> EconomyRules:
    """Build :class:`EconomyRules` from ``economy.*`` settings rows.

    Unknown keys are ignored; missing or unparsable values fall back to
    the dataclass defaults.
    """
    rows = session.scalars(
        select(Setting).where(Setting.key.startswith(SETTING_PREFIX))
    ).all()
    stored = {row.key.removeprefix(SETTING_PREFIX): row.value_json for row in rows}

    overrides: dict[str, object] = {}
    for f in fields(EconomyRules):
        raw = stored.get(f.name)
        if raw is None:
            continue
        try:
            value = json.loads(raw)
            overrides[f.name] = float(value) if f.type == "float" else int(value)
        except (json.JSONDecodeError, TypeError, ValueError):
            logger.warning("Ignoring malformed setting %s%s=%r", SETTING_PREFIX, f.name, raw)
    return EconomyRules(**overrides)
