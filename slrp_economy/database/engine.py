"""
slrp_economy.database.engine — Database Connection & Async Helper
==================================================================

SQLAlchemy + psycopg2 is synchronous while the API runs on an ``asyncio``
event loop.  Route handlers therefore hand their database work to
:func:`run_db`, which runs it on the default thread pool so the loop is
never blocked.  Every ledger action is a plain synchronous function that
opens one session, does all of its reads and guarded writes, and commits
once.

Usage::

    from slrp_economy.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async route:
    result = await run_db(earning_service.claim_daily, engine, user_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slrp_economy.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine() -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    Each API request borrows one connection for the duration of a single
    action, so the pool stays small:

    * ``pool_size=5`` / ``max_overflow=10``
    * ``pool_timeout=10`` — fail fast instead of hanging a request.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all ledger tables and seed default economy settings.

    Safe to call on every startup.  In production the schema is owned by
    Alembic (``alembic upgrade head``); ``create_all`` covers dev/test.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")

    from slrp_economy.database.seed import seed_default_settings

    seed_default_settings(engine)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Yield a :class:`Session` that commits on success and rolls back on
    any exception, including business-rule rejections.

    This is what makes every ledger action all-or-nothing::

        with get_session(engine) as session:
            wallet_store.debit(session, user_id, 300)
            catalog_service.grant(session, user_id, item_id)
            # either both land or neither does
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def insert_if_absent(session: Session, model: type, **values: object) -> bool:
    """Insert one row inside a SAVEPOINT, tolerating a concurrent insert.

    Returns ``True`` if this call created the row, ``False`` if a row with
    the same primary key already existed (the violation is rolled back to
    the SAVEPOINT and the outer transaction stays usable).  Any other
    integrity failure, such as a foreign key pointing at a missing
    profile, is re-raised.  Uses a Core ``INSERT`` so nothing lands in the
    identity map.
    """
    try:
        with session.begin_nested():
            session.execute(insert(model).values(**values))
    except IntegrityError:
        pk = model.__table__.primary_key.columns
        existing = session.execute(
            select(*pk).where(*(col == values.get(col.key) for col in pk))
        ).first()
        if existing is None:
            raise
        return False
    return True


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Thin wrapper over :func:`asyncio.to_thread`::

        result = await run_db(read_views.get_wallet, engine, user_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
