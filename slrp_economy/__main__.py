"""
slrp_economy.__main__ — Entry point for ``python -m slrp_economy``
==================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (host, port, log level).
3. Create the SQLAlchemy engine, ensure tables exist, seed settings.
4. Serve the API with uvicorn (blocking).

Run with::

    uv run python -m slrp_economy
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from slrp_economy.config import load_config
from slrp_economy.database.engine import create_db_engine, init_db

logger = logging.getLogger("slrp_economy")


def main() -> None:
    """Bootstrap and run the ledger API."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.info("Config loaded — %s (%s)", cfg.community_name, cfg.token_name)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)
    engine.dispose()

    # 4. API.
    logger.info("Starting ledger API on %s:%d…", cfg.api_host, cfg.api_port)
    uvicorn.run(
        "slrp_economy.api.main:app",
        host=cfg.api_host,
        port=cfg.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
