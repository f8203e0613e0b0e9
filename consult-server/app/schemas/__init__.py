"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenData(BaseModel):
    account_id: str
    role: str


class SuccessResponse(BaseModel):
    success: bool = True
    message: str = "OK"
    data: Optional[Any] = None


class WalletSnapshotResponse(BaseModel):
    account_id: str
    balance_cents: int
    currency: str
    balance: str


class WalletTransactionResponse(BaseModel):
    id: str
    amount_cents: int
    currency: str
    type: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    session_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WalletTransactionListResponse(BaseModel):
    transactions: list[WalletTransactionResponse] = Field(default_factory=list)


class WalletEarningsResponse(BaseModel):
    account_id: str
    total_earnings_cents: int
    currency: str
    total_earnings: str


class WalletTopupRequest(BaseModel):
    amount_cents: int = Field(..., gt=0)
    payment_channel: Optional[str] = None
    reference_no: Optional[str] = None


class WalletTopupResponse(BaseModel):
    id: str
    amount_cents: int
    currency: str
    status: str
    payment_channel: Optional[str] = None
    reference_no: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WalletTopupListResponse(BaseModel):
    orders: list[WalletTopupResponse] = Field(default_factory=list)


class WalletTopupReviewRequest(BaseModel):
    action: Literal["approve", "reject"]
    remark: Optional[str] = None


class TopupReviewResponse(WalletTopupResponse):
    activated_sessions: list[str] = Field(default_factory=list)


class BalanceCheckResponse(BaseModel):
    allowed: bool
    balance_cents: int
    required_cents: int
    shortfall_cents: int = 0


class PricingUpdateRequest(BaseModel):
    chat_rate_per_minute_cents: int = Field(..., gt=0)
    audio_rate_per_minute_cents: int = Field(..., gt=0)
    video_rate_per_minute_cents: int = Field(..., gt=0)


class PricingResponse(BaseModel):
    provider_id: str
    configured: bool
    chat_rate_per_minute_cents: Optional[int] = None
    audio_rate_per_minute_cents: Optional[int] = None
    video_rate_per_minute_cents: Optional[int] = None
    updated_at: Optional[datetime] = None


class SessionOpenRequest(BaseModel):
    counterpart_id: str = Field(..., min_length=1, max_length=64)
    session_type: Literal["chat", "audio", "video"] = "chat"


class GateDecisionResponse(BaseModel):
    allowed: bool
    is_payer: bool
    balance_cents: int
    required_cents: int
    shortfall_cents: int = 0
    in_free_trial: bool = False


class SessionResponse(BaseModel):
    id: str
    participant_a: str
    participant_b: str
    payer_id: str
    provider_id: str
    session_type: str
    rate_per_minute_cents: int
    status: str
    billing_cycle: int
    accumulated_deducted_cents: int
    started_at: Optional[datetime] = None
    suspended_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    free_trial_ends_at: Optional[datetime] = None
    in_free_trial: bool = False
    is_payer: bool
    actions_allowed: bool
    billing_running: bool = False


class SessionStateResponse(BaseModel):
    session: SessionResponse
    gate: GateDecisionResponse


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse] = Field(default_factory=list)


class SettlementResponse(BaseModel):
    id: str
    session_id: str
    billing_cycle: int
    payer_id: str
    provider_id: str
    session_type: str
    rate_per_minute_cents: int
    duration_seconds: int
    billed_minutes: int
    total_amount_cents: int
    provider_earnings_cents: int
    platform_revenue_cents: int
    uncollected_cents: int
    currency: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SettlementListResponse(BaseModel):
    settlements: list[SettlementResponse] = Field(default_factory=list)


class RevenueReportResponse(BaseModel):
    settlements: int
    total_amount_cents: int
    provider_earnings_cents: int
    platform_revenue_cents: int
    uncollected_cents: int
    currency: str


class WSMessage(BaseModel):
    type: str
    data: Optional[dict[str, Any]] = None
