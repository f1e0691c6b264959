"""
SLRP Economy — Server-authoritative token ledger for a roleplay community
==========================================================================
Members earn tokens (daily claims, mini-games, approved gallery posts),
spend them on cosmetics, and send them to each other.  Every balance change
is a guarded SQL write plus an append-only ledger entry, so concurrent
requests can never overdraw a wallet, beat the daily cap, or oversell a
limited item.

Package layout::

    slrp_economy/
    ├── config.py          # YAML → typed Python config
    ├── errors.py          # Error taxonomy → HTTP mapping
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, sessions, async helper
    │   ├── models.py      # All ORM models
    │   └── seed.py        # Default economy settings
    ├── engine/
    │   ├── rules.py       # Typed economy tuning
    │   ├── streak.py      # Streak + daily reward schedule
    │   └── ledger_math.py # Cap clamp, tax, seasonal share, inflation
    ├── services/
    │   ├── wallet_store.py      # Atomic credit / guarded debit
    │   ├── daily_cap.py         # Per-day earning ceiling
    │   ├── streak_tracker.py    # Persisted streaks
    │   ├── seasonal_service.py  # Seasonal currencies
    │   ├── transaction_log.py   # Append-only ledger
    │   ├── catalog_service.py   # Purchase, inventory, equip
    │   ├── transfer_service.py  # Taxed peer-to-peer transfers
    │   ├── earning_service.py   # Shared award routine + entry points
    │   ├── read_views.py        # Wallet, leaderboards, owner stats
    │   ├── identity.py          # Profile lookups, owner role
    │   └── admin_service.py     # Audit-logged owner edits
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT auth, engine/config providers
        ├── dispatcher.py  # Action enum → handler table
        └── routes/        # token-economy, shop, owner endpoints
"""

__version__ = "0.1.0"
