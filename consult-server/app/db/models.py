"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Wallet(Base):
    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_wallets_balance_non_negative"),
    )

    account_id = Column(String(64), primary_key=True)
    balance_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="INR")
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    transactions = relationship("WalletTransaction", back_populates="wallet", cascade="all, delete-orphan")


class WalletTopupOrder(Base):
    __tablename__ = "wallet_topup_orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(64), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default="pending")  # pending, success, failed
    payment_channel = Column(String(50))
    reference_no = Column(String(100))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    confirmed_at = Column(DateTime(timezone=True))


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(64), ForeignKey("wallets.account_id"), nullable=False, index=True)
    session_id = Column(String(140), nullable=True, index=True)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, default="INR")
    type = Column(String(20), nullable=False)  # topup, session_debit, earning
    description = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    wallet = relationship("Wallet", back_populates="transactions")


class ProviderPricing(Base):
    __tablename__ = "provider_pricing"
    __table_args__ = (
        CheckConstraint(
            "chat_rate_cents > 0 AND audio_rate_cents > 0 AND video_rate_cents > 0",
            name="ck_provider_pricing_positive_rates",
        ),
    )

    provider_id = Column(String(64), primary_key=True)
    chat_rate_cents = Column(Integer, nullable=False)
    audio_rate_cents = Column(Integer, nullable=False)
    video_rate_cents = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ConsultationSession(Base):
    __tablename__ = "consultation_sessions"
    __table_args__ = (
        CheckConstraint("accumulated_deducted_cents >= 0", name="ck_sessions_deducted_non_negative"),
    )

    id = Column(String(140), primary_key=True)
    participant_a = Column(String(64), nullable=False, index=True)
    participant_b = Column(String(64), nullable=False, index=True)
    payer_id = Column(String(64), nullable=False)
    provider_id = Column(String(64), nullable=False)
    session_type = Column(String(10), nullable=False, default="chat")
    rate_per_minute_cents = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="awaiting_funds")
    billing_cycle = Column(Integer, nullable=False, default=1)
    accumulated_deducted_cents = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True))
    suspended_at = Column(DateTime(timezone=True))
    ended_at = Column(DateTime(timezone=True))
    free_trial_ends_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    settlements = relationship("SessionSettlement", back_populates="session")


class SessionSettlement(Base):
    __tablename__ = "session_settlements"
    __table_args__ = (
        UniqueConstraint("session_id", "billing_cycle", name="uq_session_settlements_cycle"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    session_id = Column(String(140), ForeignKey("consultation_sessions.id"), nullable=False, index=True)
    billing_cycle = Column(Integer, nullable=False)
    payer_id = Column(String(64), nullable=False)
    provider_id = Column(String(64), nullable=False, index=True)
    session_type = Column(String(10), nullable=False)
    rate_per_minute_cents = Column(Integer, nullable=False)
    duration_seconds = Column(Integer, nullable=False, default=0)
    billed_minutes = Column(Integer, nullable=False, default=0)
    total_amount_cents = Column(Integer, nullable=False, default=0)
    provider_earnings_cents = Column(Integer, nullable=False, default=0)
    platform_revenue_cents = Column(Integer, nullable=False, default=0)
    uncollected_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="INR")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    session = relationship("ConsultationSession", back_populates="settlements")
