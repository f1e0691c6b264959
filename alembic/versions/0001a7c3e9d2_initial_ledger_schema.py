"""Initial ledger schema

Revision ID: 0001a7c3e9d2
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001a7c3e9d2"
down_revision = None
branch_labels = None
depends_on = None


def _updated_at():
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(),
    )


def _profile_fk(name: str = "user_id", **kw):
    return sa.Column(
        name, sa.String(36),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"), **kw,
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("discord_id", sa.String(32), unique=True, nullable=True),
        sa.Column("discord_username", sa.String(100), nullable=True),
        sa.Column("discord_avatar", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "user_roles",
        _profile_fk(primary_key=True),
        sa.Column("role", sa.String(30), primary_key=True),
    )
    op.create_table(
        "user_wallets",
        _profile_fk(primary_key=True),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("lifetime_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("lifetime_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        _updated_at(),
        sa.CheckConstraint("balance >= 0", name="ck_user_wallets_balance_nonneg"),
    )
    op.create_index("ix_user_wallets_balance_desc", "user_wallets", ["balance"])
    op.create_index("ix_user_wallets_spent_desc", "user_wallets", ["lifetime_spent"])

    op.create_table(
        "daily_earning_caps",
        _profile_fk(primary_key=True),
        sa.Column("earn_date", sa.Date(), primary_key=True),
        sa.Column("total_earned", sa.Integer(), nullable=False, server_default="0"),
        _updated_at(),
    )
    op.create_table(
        "daily_login_streaks",
        _profile_fk(primary_key=True),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_claim_date", sa.Date(), nullable=True),
        sa.Column("monthly_claims", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("monthly_reset_date", sa.Date(), nullable=True),
        _updated_at(),
    )
    op.create_index("ix_daily_login_streaks_longest", "daily_login_streaks", ["longest_streak"])

    op.create_table(
        "seasonal_currencies",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False, unique=True),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("multiplier", sa.Float(), nullable=False, server_default="1.0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "user_seasonal_balances",
        _profile_fk(primary_key=True),
        sa.Column(
            "currency_id", sa.String(36),
            sa.ForeignKey("seasonal_currencies.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        _updated_at(),
        sa.CheckConstraint("balance >= 0", name="ck_user_seasonal_balances_nonneg"),
    )

    op.create_table(
        "token_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _profile_fk(nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(20), nullable=False),
        sa.Column("source", sa.String(30), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_id", sa.String(64), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
    )
    op.create_index(
        "ix_token_transactions_user_time", "token_transactions", ["user_id", "created_at"],
    )
    op.create_index(
        "ix_token_transactions_user_source_time", "token_transactions",
        ["user_id", "source", "created_at"],
    )
    op.create_index(
        "ix_token_transactions_type_time", "token_transactions",
        ["transaction_type", "created_at"],
    )

    op.create_table(
        "shop_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("item_type", sa.String(30), nullable=False, server_default="color"),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("is_limited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("max_quantity", sa.Integer(), nullable=True),
        sa.Column("sold_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "item_data", postgresql.JSONB(astext_type=sa.Text()),
            nullable=True, server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        _updated_at(),
        sa.CheckConstraint("price > 0", name="ck_shop_items_price_positive"),
    )
    op.create_index("ix_shop_items_category", "shop_items", ["category"])

    op.create_table(
        "user_inventory",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _profile_fk(nullable=False),
        sa.Column(
            "item_id", sa.String(36),
            sa.ForeignKey("shop_items.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("is_equipped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("purchased_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "item_id", name="uq_user_inventory_user_item"),
    )
    op.create_table(
        "user_profile_customization",
        _profile_fk(primary_key=True),
        sa.Column("username_color", sa.String(32), nullable=True),
        sa.Column("equipped_badge_id", sa.String(36), nullable=True),
        sa.Column("equipped_frame_id", sa.String(36), nullable=True),
        sa.Column("equipped_bio_effect", sa.String(50), nullable=True),
        _updated_at(),
    )

    op.create_table(
        "token_transfers",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _profile_fk("sender_id", nullable=False),
        _profile_fk("receiver_id", nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("tax_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_token_transfers_amount_positive"),
    )
    op.create_index(
        "ix_token_transfers_sender_time", "token_transfers", ["sender_id", "created_at"],
    )

    op.create_table(
        "login_ip_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_login_ip_log_user_time", "login_ip_log", ["user_id", "created_at"])

    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100), nullable=True),
        sa.Column("before_snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("after_snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_admin_log_actor_time", "admin_log", ["actor_id", "timestamp"])
    op.create_index(
        "ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"],
    )

    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value_json", sa.Text(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="economy"),
        sa.Column("description", sa.Text(), nullable=True),
        _updated_at(),
    )


def downgrade() -> None:
    for table in (
        "settings",
        "admin_log",
        "login_ip_log",
        "token_transfers",
        "user_profile_customization",
        "user_inventory",
        "shop_items",
        "token_transactions",
        "user_seasonal_balances",
        "seasonal_currencies",
        "daily_login_streaks",
        "daily_earning_caps",
        "user_wallets",
        "user_roles",
        "profiles",
    ):
        op.drop_table(table)
