"""Billing related dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.container import ApplicationContainer, get_container
from app.modules.billing import BillingService

from .database import get_db_session


def get_billing_service(
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_container),
) -> BillingService:
    return container.billing_service(db)


__all__ = ["get_billing_service"]
