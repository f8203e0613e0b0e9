"""create wallet, pricing, session and settlement tables

Revision ID: 3f9c1e7a2b40
Revises: 
Create Date: 2026-10-19 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c1e7a2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "wallets",
        sa.Column("account_id", sa.String(length=64), primary_key=True),
        sa.Column("balance_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="INR"),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("balance_cents >= 0", name="ck_wallets_balance_non_negative"),
    )

    op.create_table(
        "wallet_topup_orders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=64), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="INR"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_channel", sa.String(length=50)),
        sa.Column("reference_no", sa.String(length=100)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_wallet_topup_orders_account_id", "wallet_topup_orders", ["account_id"])

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=64), sa.ForeignKey("wallets.account_id"), nullable=False),
        sa.Column("session_id", sa.String(length=140)),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="INR"),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_wallet_transactions_account_id", "wallet_transactions", ["account_id"])
    op.create_index("ix_wallet_transactions_session_id", "wallet_transactions", ["session_id"])

    op.create_table(
        "provider_pricing",
        sa.Column("provider_id", sa.String(length=64), primary_key=True),
        sa.Column("chat_rate_cents", sa.Integer(), nullable=False),
        sa.Column("audio_rate_cents", sa.Integer(), nullable=False),
        sa.Column("video_rate_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint(
            "chat_rate_cents > 0 AND audio_rate_cents > 0 AND video_rate_cents > 0",
            name="ck_provider_pricing_positive_rates",
        ),
    )

    op.create_table(
        "consultation_sessions",
        sa.Column("id", sa.String(length=140), primary_key=True),
        sa.Column("participant_a", sa.String(length=64), nullable=False),
        sa.Column("participant_b", sa.String(length=64), nullable=False),
        sa.Column("payer_id", sa.String(length=64), nullable=False),
        sa.Column("provider_id", sa.String(length=64), nullable=False),
        sa.Column("session_type", sa.String(length=10), nullable=False, server_default="chat"),
        sa.Column("rate_per_minute_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="awaiting_funds"),
        sa.Column("billing_cycle", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("accumulated_deducted_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("suspended_at", sa.DateTime(timezone=True)),
        sa.Column("ended_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("accumulated_deducted_cents >= 0", name="ck_sessions_deducted_non_negative"),
    )
    op.create_index("ix_consultation_sessions_participant_a", "consultation_sessions", ["participant_a"])
    op.create_index("ix_consultation_sessions_participant_b", "consultation_sessions", ["participant_b"])

    op.create_table(
        "session_settlements",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("session_id", sa.String(length=140), sa.ForeignKey("consultation_sessions.id"), nullable=False),
        sa.Column("billing_cycle", sa.Integer(), nullable=False),
        sa.Column("payer_id", sa.String(length=64), nullable=False),
        sa.Column("provider_id", sa.String(length=64), nullable=False),
        sa.Column("session_type", sa.String(length=10), nullable=False),
        sa.Column("rate_per_minute_cents", sa.Integer(), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("billed_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("provider_earnings_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("platform_revenue_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("uncollected_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="INR"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("session_id", "billing_cycle", name="uq_session_settlements_cycle"),
    )
    op.create_index("ix_session_settlements_session_id", "session_settlements", ["session_id"])
    op.create_index("ix_session_settlements_provider_id", "session_settlements", ["provider_id"])


def downgrade() -> None:
    op.drop_index("ix_session_settlements_provider_id", table_name="session_settlements")
    op.drop_index("ix_session_settlements_session_id", table_name="session_settlements")
    op.drop_table("session_settlements")
    op.drop_index("ix_consultation_sessions_participant_b", table_name="consultation_sessions")
    op.drop_index("ix_consultation_sessions_participant_a", table_name="consultation_sessions")
    op.drop_table("consultation_sessions")
    op.drop_table("provider_pricing")
    op.drop_index("ix_wallet_transactions_session_id", table_name="wallet_transactions")
    op.drop_index("ix_wallet_transactions_account_id", table_name="wallet_transactions")
    op.drop_table("wallet_transactions")
    op.drop_index("ix_wallet_topup_orders_account_id", table_name="wallet_topup_orders")
    op.drop_table("wallet_topup_orders")
    op.drop_table("wallets")
