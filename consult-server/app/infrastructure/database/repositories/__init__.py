"""SQLAlchemy-backed repository implementations."""

from .pricing_repository import SqlPricingRepository
from .session_repository import SqlSessionRepository
from .settlement_repository import SqlSettlementRepository
from .topup_repository import SqlTopupRepository
from .wallet_repository import SqlWalletRepository

__all__ = [
    "SqlPricingRepository",
    "SqlSessionRepository",
    "SqlSettlementRepository",
    "SqlTopupRepository",
    "SqlWalletRepository",
]
