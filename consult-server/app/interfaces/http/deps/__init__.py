"""Reusable FastAPI dependencies."""

from .billing import get_billing_service
from .database import get_db_session

__all__ = [
    "get_billing_service",
    "get_db_session",
]
