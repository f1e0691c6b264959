"""
slrp_economy.database.models — SQLAlchemy 2.0 Data Models
==========================================================

Tables:
- profiles                    — Site identities (populated by the auth layer)
- user_roles                  — Role assignments (``owner`` gates economy stats)
- user_wallets                — Spendable balance + lifetime counters
- daily_earning_caps          — Per-user per-UTC-day earned total
- daily_login_streaks         — Consecutive-day claim tracking
- seasonal_currencies         — Time-limited multiplier currencies
- user_seasonal_balances      — Per-user per-currency seasonal balance
- token_transactions          — Append-only ledger of balance changes
- shop_items                  — Cosmetic catalog
- user_inventory              — Ownership + equip state
- user_profile_customization  — Denormalized equipped-cosmetics projection
- token_transfers             — Peer-to-peer transfers (net amount + tax)
- login_ip_log                — Best-effort abuse-monitoring side channel
- admin_log                   — Append-only audit trail of owner edits
- settings                    — Gameplay tuning key-value store
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all ledger ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class TransactionType(enum.StrEnum):
    """Direction of a ledger entry."""
    EARN = "earn"
    SPEND = "spend"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class TransactionSource(enum.StrEnum):
    """What caused a ledger entry."""
    DAILY_LOGIN = "daily_login"
    MINI_GAME = "mini_game"
    GALLERY_APPROVED = "gallery_approved"
    PURCHASE = "purchase"
    TRANSFER = "transfer"
    SEASONAL_CONVERT = "seasonal_convert"


class ItemCategory(enum.StrEnum):
    """Cosmetic slot — at most one equipped item per category per user."""
    USERNAME_STYLE = "username_style"
    BADGE = "badge"
    PROFILE_FRAME = "profile_frame"
    BIO_EFFECT = "bio_effect"


# ---------------------------------------------------------------------------
# Profile — identity rows owned by the auth layer
# ---------------------------------------------------------------------------
class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    discord_id: Mapped[str | None] = mapped_column(String(32), unique=True, default=None)
    discord_username: Mapped[str | None] = mapped_column(String(100), default=None)
    discord_avatar: Mapped[str | None] = mapped_column(String(255), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    wallet: Mapped[Wallet | None] = relationship(
        back_populates="profile", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Profile id={self.id} discord={self.discord_username!r}>"


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str] = mapped_column(String(30), primary_key=True)

    def __repr__(self) -> str:
        return f"<UserRole user={self.user_id} role={self.role!r}>"


# ---------------------------------------------------------------------------
# Wallet — one per user, created lazily
# ---------------------------------------------------------------------------
class Wallet(Base):
    __tablename__ = "user_wallets"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lifetime_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lifetime_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    profile: Mapped[Profile] = relationship(back_populates="wallet")

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_user_wallets_balance_nonneg"),
        Index("ix_user_wallets_balance_desc", "balance"),
        Index("ix_user_wallets_spent_desc", "lifetime_spent"),
    )

    def __repr__(self) -> str:
        return f"<Wallet user={self.user_id} balance={self.balance}>"


# ---------------------------------------------------------------------------
# DailyEarningCap — keyed by UTC date, reset implicitly
# ---------------------------------------------------------------------------
class DailyEarningCap(Base):
    __tablename__ = "daily_earning_caps"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    earn_date: Mapped[date] = mapped_column(Date, primary_key=True)
    total_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<DailyEarningCap user={self.user_id} date={self.earn_date} "
            f"earned={self.total_earned}>"
        )


# ---------------------------------------------------------------------------
# LoginStreak — consecutive daily claims
# ---------------------------------------------------------------------------
class LoginStreak(Base):
    __tablename__ = "daily_login_streaks"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_claim_date: Mapped[date | None] = mapped_column(Date, default=None)
    monthly_claims: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_reset_date: Mapped[date | None] = mapped_column(Date, default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_daily_login_streaks_longest", "longest_streak"),
    )

    def __repr__(self) -> str:
        return f"<LoginStreak user={self.user_id} streak={self.current_streak}>"


# ---------------------------------------------------------------------------
# Seasonal currencies
# ---------------------------------------------------------------------------
class SeasonalCurrency(Base):
    __tablename__ = "seasonal_currencies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    icon: Mapped[str | None] = mapped_column(String(50), default=None)
    multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<SeasonalCurrency slug={self.slug!r} active={self.is_active}>"


class SeasonalBalance(Base):
    __tablename__ = "user_seasonal_balances"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    currency_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("seasonal_currencies.id", ondelete="CASCADE"),
        primary_key=True,
    )
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    currency: Mapped[SeasonalCurrency] = relationship()

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_user_seasonal_balances_nonneg"),
    )

    def __repr__(self) -> str:
        return (
            f"<SeasonalBalance user={self.user_id} "
            f"currency={self.currency_id} balance={self.balance}>"
        )


# ---------------------------------------------------------------------------
# TokenTransaction — append-only ledger
# ---------------------------------------------------------------------------
class TokenTransaction(Base):
    __tablename__ = "token_transactions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    reference_id: Mapped[str | None] = mapped_column(String(64), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_token_transactions_user_time", "user_id", "created_at"),
        Index("ix_token_transactions_user_source_time", "user_id", "source", "created_at"),
        Index("ix_token_transactions_type_time", "transaction_type", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<TokenTransaction id={self.id} user={self.user_id} "
            f"amount={self.amount} source={self.source}>"
        )


# ---------------------------------------------------------------------------
# Shop catalog & inventory
# ---------------------------------------------------------------------------
class ShopItem(Base):
    """Cosmetic catalog entry.

    ``item_data`` holds the category-specific payload: ``color`` for
    username styles, ``emoji`` for badges, ``effect`` for bio effects.
    Limited items stop selling once ``sold_count`` reaches ``max_quantity``.
    """
    __tablename__ = "shop_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    item_type: Mapped[str] = mapped_column(String(30), nullable=False, default="color")
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    is_limited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_quantity: Mapped[int | None] = mapped_column(Integer, default=None)
    sold_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    item_data: Mapped[dict | None] = mapped_column(JSONB, default=dict)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_shop_items_price_positive"),
        Index("ix_shop_items_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<ShopItem id={self.id} name={self.name!r} price={self.price}>"


class InventoryEntry(Base):
    __tablename__ = "user_inventory"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    item_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shop_items.id", ondelete="CASCADE"), nullable=False
    )
    is_equipped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    item: Mapped[ShopItem] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_user_inventory_user_item"),
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryEntry user={self.user_id} item={self.item_id} "
            f"equipped={self.is_equipped}>"
        )


class ProfileCustomization(Base):
    """Read-optimized projection of a user's equipped cosmetics.

    Derived from ``user_inventory`` and rewritten in the same transaction
    as every equip.  Served to profile pages by
    :mod:`slrp_economy.services.customization_service`.
    """
    __tablename__ = "user_profile_customization"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    username_color: Mapped[str | None] = mapped_column(String(32), default=None)
    equipped_badge_id: Mapped[str | None] = mapped_column(String(36), default=None)
    equipped_frame_id: Mapped[str | None] = mapped_column(String(36), default=None)
    equipped_bio_effect: Mapped[str | None] = mapped_column(String(50), default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ProfileCustomization user={self.user_id}>"


# ---------------------------------------------------------------------------
# TokenTransfer — peer-to-peer moves, tax burned
# ---------------------------------------------------------------------------
class TokenTransfer(Base):
    __tablename__ = "token_transfers"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    sender_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    tax_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_token_transfers_amount_positive"),
        Index("ix_token_transfers_sender_time", "sender_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<TokenTransfer {self.sender_id} -> {self.receiver_id} "
            f"amount={self.amount} tax={self.tax_amount}>"
        )


# ---------------------------------------------------------------------------
# LoginIpLog — abuse monitoring side channel
# ---------------------------------------------------------------------------
class LoginIpLog(Base):
    __tablename__ = "login_ip_log"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False)
    user_agent: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_login_ip_log_user_time", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<LoginIpLog user={self.user_id} ip={self.ip_address!r}>"


# ---------------------------------------------------------------------------
# AdminLog — append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_id", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor_id} action={self.action_type}>"


# ---------------------------------------------------------------------------
# Setting — gameplay tuning key-value store
# ---------------------------------------------------------------------------
class Setting(Base):
    """Key-value configuration store.

    Economy tuning (daily cap, rewards, cooldowns, tax rate) lives here so
    owners can adjust values without redeploying.  Values are stored as
    JSON strings; :func:`slrp_economy.engine.rules.load_rules` turns them
    into a typed :class:`EconomyRules`.
    """
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="economy")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Setting key={self.key!r} category={self.category!r}>"
