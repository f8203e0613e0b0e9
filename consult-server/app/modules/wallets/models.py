"""Domain models for wallet operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

TRANSACTION_TOPUP = "topup"
TRANSACTION_SESSION_DEBIT = "session_debit"
TRANSACTION_EARNING = "earning"


@dataclass(slots=True)
class WalletSnapshot:
    account_id: str
    balance_cents: int
    currency: str
    updated_at: Optional[datetime]


@dataclass(slots=True, frozen=True)
class DebitResult:
    success: bool
    new_balance_cents: int


@dataclass(slots=True)
class WalletTransactionRecord:
    id: str
    account_id: str
    session_id: Optional[str]
    amount_cents: int
    currency: str
    type: str
    description: Optional[str]
    created_at: Optional[datetime]
