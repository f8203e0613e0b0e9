"""Wallet ledger exports"""

from .exceptions import InsufficientFundsError, LedgerWriteError, WalletError
from .models import DebitResult, WalletSnapshot, WalletTransactionRecord
from .service import WalletService

__all__ = [
    "DebitResult",
    "InsufficientFundsError",
    "LedgerWriteError",
    "WalletError",
    "WalletSnapshot",
    "WalletTransactionRecord",
    "WalletService",
]
