"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of slrp_economy.api.deps which
# validates the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine, event  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from slrp_economy.database.engine import init_db  # noqa: E402
from slrp_economy.database.models import Profile, ShopItem, UserRole, Wallet  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with every ledger table and seeded settings.

    StaticPool keeps one shared connection so ``asyncio.to_thread`` workers
    see the same database.  pysqlite's own transaction handling breaks
    SAVEPOINT, so BEGIN is emitted by SQLAlchemy instead.  Foreign keys are
    switched on to match PostgreSQL.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def make_profile(
    engine: Engine,
    *,
    discord_id: str | None = None,
    username: str | None = None,
    balance: int | None = None,
    owner: bool = False,
) -> str:
    """Insert a profile (optionally with a funded wallet) and return its id."""
    with Session(engine) as session:
        profile = Profile(discord_id=discord_id, discord_username=username)
        session.add(profile)
        session.flush()
        if balance is not None:
            session.add(Wallet(user_id=profile.id, balance=balance, lifetime_earned=balance))
        if owner:
            session.add(UserRole(user_id=profile.id, role="owner"))
        session.commit()
        return profile.id


def make_item(engine: Engine, **overrides) -> str:
    """Insert a shop item and return its id."""
    values = {
        "name": "Crimson Name",
        "category": "username_style",
        "price": 300,
        "item_data": {"color": "#dc2626"},
    }
    values.update(overrides)
    with Session(engine) as session:
        item = ShopItem(**values)
        session.add(item)
        session.commit()
        return item.id


def make_token(sub: str, **claims) -> str:
    """Create a bearer JWT for *sub*."""
    import jwt

    from slrp_economy.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, **claims}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(sub: str) -> dict:
    return {"Authorization": f"Bearer {make_token(sub)}"}


@pytest.fixture
def client(db_engine):
    """FastAPI TestClient wired to the in-memory engine."""
    from fastapi.testclient import TestClient

    from slrp_economy.api.deps import get_config, get_engine
    from slrp_economy.api.main import app
    from slrp_economy.config import EconomyConfig

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: EconomyConfig(
        community_name="SLRP Test", token_name="Tokens", api_host="127.0.0.1", api_port=8000,
    )
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
