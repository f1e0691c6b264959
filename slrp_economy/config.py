"""
slrp_economy.config — YAML Configuration Loader
================================================

Reads ``config.yaml`` for **infrastructure-only** settings (community
identity, API host/port, log level).  Economy tuning (cap, rewards,
cooldowns, tax) lives in the ``settings`` table, editable by owners
without a redeploy.  Secrets (``DATABASE_URL``, ``JWT_SECRET``) come from
the environment / ``.env``.

Usage::

    from slrp_economy.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.token_name)        # "Tokens"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True, slots=True)
class EconomyConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str
    token_name: str

    # API
    api_host: str
    api_port: int

    log_level: str = "INFO"


def load_config(path: str | Path = "config.yaml") -> EconomyConfig:
    """Read *path* and return an :class:`EconomyConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return EconomyConfig(
        community_name=raw["community_name"],
        token_name=raw["token_name"],
        api_host=str(raw.get("api_host", "0.0.0.0")),
        api_port=int(raw["api_port"]),
        log_level=str(raw.get("log_level", "INFO")).upper(),
    )
