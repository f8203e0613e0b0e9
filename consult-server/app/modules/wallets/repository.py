"""Repository protocol for wallet operations."""

from __future__ import annotations

from typing import Protocol, Sequence

from app.db.models import Wallet as WalletModel, WalletTransaction as WalletTransactionModel


class WalletRepository(Protocol):
    async def get_wallet(self, account_id: str) -> WalletModel | None:
        ...

    async def get_balance(self, account_id: str) -> int | None:
        ...

    async def create_wallet(self, account_id: str, currency: str) -> WalletModel:
        ...

    async def debit_if_sufficient(self, account_id: str, amount_cents: int) -> int | None:
        ...

    async def credit(self, account_id: str, amount_cents: int) -> int | None:
        ...

    async def add_transaction(
        self,
        *,
        account_id: str,
        session_id: str | None,
        amount_cents: int,
        currency: str,
        type: str,
        description: str | None,
    ) -> WalletTransactionModel:
        ...

    async def list_transactions(self, account_id: str, limit: int, offset: int) -> Sequence[WalletTransactionModel]:
        ...

    async def sum_transactions(self, account_id: str, type: str) -> int:
        ...
