from fastapi import APIRouter

from app.interfaces.http.routers import admin, pricing, sessions, wallet


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
    router.include_router(pricing.router, prefix="/providers", tags=["pricing"])
    router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
    router.include_router(admin.router, prefix="/admin", tags=["admin"])
    return router


__all__ = [
    "create_api_router",
]
