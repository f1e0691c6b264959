"""
slrp_economy.database.seed — Default Settings Seeder
=====================================================

Baseline economy tuning seeded on first startup.  Idempotent — only
inserts keys that don't already exist, so owner edits are never
overwritten.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from slrp_economy.database.models import Setting

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default settings catalogue
# ---------------------------------------------------------------------------
DEFAULT_SETTINGS: dict[str, tuple[object, str, str]] = {
    "economy.daily_earn_cap": (250, "economy", "Max tokens a user can earn per UTC day"),
    "economy.daily_base_reward": (25, "rewards", "Tokens granted for a daily claim"),
    "economy.streak_bonus": (100, "rewards", "Extra tokens on every Nth consecutive day"),
    "economy.streak_bonus_interval": (7, "rewards", "Streak length that triggers the bonus"),
    "economy.monthly_claim_threshold": (
        28, "rewards", "Claims within a calendar month needed for the monthly bonus",
    ),
    "economy.monthly_bonus": (500, "rewards", "Extra tokens once the monthly threshold is met"),
    "economy.mini_game_reward": (50, "rewards", "Tokens per mini-game win"),
    "economy.mini_game_cooldown_seconds": (
        60, "anti_abuse", "Min seconds between mini-game rewards",
    ),
    "economy.gallery_reward": (20, "rewards", "Tokens per approved gallery submission"),
    "economy.gallery_cooldown_seconds": (
        300, "anti_abuse", "Min seconds between gallery rewards for one user",
    ),
    "economy.transfer_tax_rate": (
        0.05, "economy", "Fraction of a transfer burned as tax (rounded up)",
    ),
}
"""Each entry maps ``key`` → ``(default_value, category, description)``."""


# ---------------------------------------------------------------------------
# Seeder
# ---------------------------------------------------------------------------
def seed_default_settings(engine: Engine) -> None:
    """Insert default settings that don't yet exist."""
    session = Session(engine)
    inserted = 0
    try:
        for key, (value, category, desc) in DEFAULT_SETTINGS.items():
            if session.get(Setting, key) is None:
                session.add(Setting(
                    key=key,
                    value_json=json.dumps(value),
                    category=category,
                    description=desc,
                ))
                inserted += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted:
        logger.info("Seeded %d default settings.", inserted)
