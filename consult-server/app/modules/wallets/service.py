"""Wallet ledger service.

Every balance change goes through a single conditional UPDATE in the store and
is recorded as a wallet transaction in the same database transaction. The
service never reads a balance and writes it back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Wallet as WalletModel, WalletTransaction as WalletTransactionModel
from app.infrastructure.database.repositories.wallet_repository import SqlWalletRepository

from .exceptions import InsufficientFundsError, LedgerWriteError
from .models import (
    TRANSACTION_EARNING,
    TRANSACTION_SESSION_DEBIT,
    TRANSACTION_TOPUP,
    DebitResult,
    WalletSnapshot,
    WalletTransactionRecord,
)
from .repository import WalletRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WalletService:
    repository: WalletRepository
    currency: str = "INR"

    @classmethod
    def with_session(cls, session: AsyncSession, currency: str = "INR") -> "WalletService":
        return cls(SqlWalletRepository(session), currency)

    async def ensure_wallet(self, account_id: str) -> WalletSnapshot:
        wallet = await self.repository.get_wallet(account_id)
        if wallet is None:
            wallet = await self.repository.create_wallet(account_id, self.currency)
        return self._to_snapshot(wallet)

    async def get_balance(self, account_id: str) -> int:
        balance = await self.repository.get_balance(account_id)
        return balance or 0

    async def can_afford(self, account_id: str, amount_cents: int) -> bool:
        return await self.get_balance(account_id) >= amount_cents

    async def debit(
        self,
        account_id: str,
        amount_cents: int,
        *,
        session_id: str | None = None,
        description: str | None = None,
    ) -> DebitResult:
        if amount_cents <= 0:
            raise ValueError("Debit amount must be positive")
        try:
            new_balance = await self.repository.debit_if_sufficient(account_id, amount_cents)
            if new_balance is None:
                balance = await self.get_balance(account_id)
                logger.warning(
                    "Debit of %s rejected for %s (balance %s)", amount_cents, account_id, balance
                )
                raise InsufficientFundsError(account_id, amount_cents, balance)
            await self.repository.add_transaction(
                account_id=account_id,
                session_id=session_id,
                amount_cents=-amount_cents,
                currency=self.currency,
                type=TRANSACTION_SESSION_DEBIT,
                description=description or "Consultation charge",
            )
        except SQLAlchemyError as exc:
            raise LedgerWriteError(f"Debit for {account_id} failed: {exc}") from exc
        logger.info("Debited %s from %s, balance now %s", amount_cents, account_id, new_balance)
        return DebitResult(success=True, new_balance_cents=new_balance)

    async def credit(
        self,
        account_id: str,
        amount_cents: int,
        *,
        type: str = TRANSACTION_TOPUP,
        session_id: str | None = None,
        description: str | None = None,
    ) -> int:
        if amount_cents <= 0:
            raise ValueError("Credit amount must be positive")
        try:
            await self.ensure_wallet(account_id)
            new_balance = await self.repository.credit(account_id, amount_cents)
            if new_balance is None:
                raise LedgerWriteError(f"Wallet for {account_id} disappeared during credit")
            await self.repository.add_transaction(
                account_id=account_id,
                session_id=session_id,
                amount_cents=amount_cents,
                currency=self.currency,
                type=type,
                description=description or "Wallet top-up",
            )
        except SQLAlchemyError as exc:
            raise LedgerWriteError(f"Credit for {account_id} failed: {exc}") from exc
        logger.info("Credited %s to %s (%s), balance now %s", amount_cents, account_id, type, new_balance)
        return new_balance

    async def list_transactions(self, account_id: str, limit: int = 20, offset: int = 0) -> list[WalletTransactionRecord]:
        rows = await self.repository.list_transactions(account_id, limit, offset)
        return [self._to_transaction(row) for row in rows]

    async def total_earnings(self, account_id: str) -> int:
        return await self.repository.sum_transactions(account_id, TRANSACTION_EARNING)

    @staticmethod
    def _to_snapshot(model: WalletModel) -> WalletSnapshot:
        return WalletSnapshot(
            account_id=model.account_id,
            balance_cents=model.balance_cents,
            currency=model.currency,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_transaction(model: WalletTransactionModel) -> WalletTransactionRecord:
        return WalletTransactionRecord(
            id=model.id,
            account_id=model.account_id,
            session_id=model.session_id,
            amount_cents=model.amount_cents,
            currency=model.currency,
            type=model.type,
            description=model.description,
            created_at=model.created_at,
        )
