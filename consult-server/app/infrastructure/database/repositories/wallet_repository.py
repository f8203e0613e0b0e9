"""SQLAlchemy implementation for wallet ledger"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Wallet, WalletTransaction

from .inserts import insert_if_absent


class SqlWalletRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_wallet(self, account_id: str) -> Wallet | None:
        stmt = (
            select(Wallet)
            .where(Wallet.account_id == account_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_balance(self, account_id: str) -> int | None:
        stmt = select(Wallet.balance_cents).where(Wallet.account_id == account_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_wallet(self, account_id: str, currency: str) -> Wallet:
        await insert_if_absent(
            self.session,
            Wallet,
            {"account_id": account_id, "currency": currency, "balance_cents": 0},
            index_elements=["account_id"],
        )
        wallet = await self.get_wallet(account_id)
        assert wallet is not None
        return wallet

    async def debit_if_sufficient(self, account_id: str, amount_cents: int) -> int | None:
        """Conditional decrement; None when the row is missing or the balance is short."""
        stmt = (
            update(Wallet)
            .where(Wallet.account_id == account_id, Wallet.balance_cents >= amount_cents)
            .values(balance_cents=Wallet.balance_cents - amount_cents)
            .returning(Wallet.balance_cents)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def credit(self, account_id: str, amount_cents: int) -> int | None:
        stmt = (
            update(Wallet)
            .where(Wallet.account_id == account_id)
            .values(balance_cents=Wallet.balance_cents + amount_cents)
            .returning(Wallet.balance_cents)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_transaction(
        self,
        *,
        account_id: str,
        session_id: str | None,
        amount_cents: int,
        currency: str,
        type: str,
        description: str | None,
    ) -> WalletTransaction:
        tx = WalletTransaction(
            account_id=account_id,
            session_id=session_id,
            amount_cents=amount_cents,
            currency=currency,
            type=type,
            description=description,
        )
        self.session.add(tx)
        await self.session.flush()
        await self.session.refresh(tx)
        return tx

    async def list_transactions(self, account_id: str, limit: int, offset: int) -> Sequence[WalletTransaction]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.account_id == account_id)
            .order_by(desc(WalletTransaction.created_at))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def sum_transactions(self, account_id: str, type: str) -> int:
        stmt = select(func.coalesce(func.sum(WalletTransaction.amount_cents), 0)).where(
            WalletTransaction.account_id == account_id,
            WalletTransaction.type == type,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
