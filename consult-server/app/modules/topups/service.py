"""Top-up order service.

Gateway order creation and webhook verification live outside this service; an
approved order ends here as a wallet credit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timeutils import utcnow
from app.db.models import WalletTopupOrder as TopupOrderModel
from app.infrastructure.database.repositories.topup_repository import SqlTopupRepository
from app.modules.wallets import WalletService

from .exceptions import TopupAlreadyProcessedError, TopupNotFoundError
from .models import STATUS_FAILED, STATUS_PENDING, STATUS_SUCCESS, TopupOrder
from .repository import TopupOrderRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TopupService:
    repository: TopupOrderRepository
    wallet_service: WalletService

    @classmethod
    def with_session(cls, session: AsyncSession, currency: str = "INR") -> "TopupService":
        return cls(SqlTopupRepository(session), WalletService.with_session(session, currency))

    async def create_order(
        self,
        *,
        account_id: str,
        amount_cents: int,
        payment_channel: str | None = None,
        reference_no: str | None = None,
    ) -> TopupOrder:
        if amount_cents <= 0:
            raise ValueError("Top-up amount must be positive")
        order = await self.repository.create(
            account_id=account_id,
            amount_cents=amount_cents,
            currency=self.wallet_service.currency,
            payment_channel=payment_channel,
            reference_no=reference_no,
        )
        return self._to_domain(order)

    async def mark_success(self, order_id: str) -> TopupOrder:
        """Confirm a pending order and credit the wallet exactly once."""
        order = await self._transition(order_id, STATUS_SUCCESS)
        await self.wallet_service.credit(
            order.account_id,
            order.amount_cents,
            description=f"Wallet top-up via {order.payment_channel or 'manual review'}",
        )
        logger.info("Top-up %s confirmed for %s", order.id, order.account_id)
        return order

    async def mark_failed(self, order_id: str) -> TopupOrder:
        return await self._transition(order_id, STATUS_FAILED)

    async def get_order(self, order_id: str) -> TopupOrder | None:
        order = await self.repository.get_order(order_id)
        return self._to_domain(order) if order else None

    async def list_orders(self, account_id: str, limit: int = 20, offset: int = 0, status: str | None = None) -> list[TopupOrder]:
        rows = await self.repository.list_orders(account_id, limit, offset, status)
        return [self._to_domain(row) for row in rows]

    async def list_orders_admin(self, status: str | None = None, limit: int = 20, offset: int = 0) -> list[TopupOrder]:
        rows = await self.repository.list_orders_all(status=status, limit=limit, offset=offset)
        return [self._to_domain(row) for row in rows]

    async def _transition(self, order_id: str, to_status: str) -> TopupOrder:
        model = await self.repository.transition_status(
            order_id,
            from_status=STATUS_PENDING,
            to_status=to_status,
            confirmed_at=utcnow(),
        )
        if model is None:
            if await self.repository.get_order(order_id) is None:
                raise TopupNotFoundError(order_id)
            raise TopupAlreadyProcessedError(order_id)
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: TopupOrderModel) -> TopupOrder:
        return TopupOrder(
            id=model.id,
            account_id=model.account_id,
            amount_cents=model.amount_cents,
            currency=model.currency,
            status=model.status,
            payment_channel=model.payment_channel,
            reference_no=model.reference_no,
            created_at=model.created_at,
            confirmed_at=model.confirmed_at,
        )
