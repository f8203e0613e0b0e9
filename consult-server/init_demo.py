"""
Seed demo data
Creates a priced provider, a funded client wallet and prints tokens for both
plus an admin token, for trying the API locally.
"""
import asyncio

from app.core.security import ROLE_ADMIN, ROLE_PROVIDER, ROLE_USER, create_access_token
from app.infrastructure.database import init_db, session_scope
from app.modules.pricing import PricingService
from app.modules.wallets import WalletService

PROVIDER_ID = "provider_demo_001"
CLIENT_ID = "client_demo_001"
ADMIN_ID = "admin"


async def seed_demo_data():
    """Create demo pricing and wallet balance"""
    await init_db()

    async with session_scope() as db:
        pricing_service = PricingService.with_session(db)
        if await pricing_service.get_pricing(PROVIDER_ID) is None:
            await pricing_service.update_pricing(
                PROVIDER_ID,
                chat_rate_cents=1000,
                audio_rate_cents=1500,
                video_rate_cents=2500,
            )
            print(f"Pricing created for {PROVIDER_ID}")
        else:
            print(f"Pricing for {PROVIDER_ID} already exists")

        wallet_service = WalletService.with_session(db)
        if await wallet_service.get_balance(CLIENT_ID) == 0:
            await wallet_service.credit(CLIENT_ID, 50_000, description="Demo credit")
            print(f"Wallet of {CLIENT_ID} funded")

    print("=" * 50)
    print(f"admin token:    {create_access_token(ADMIN_ID, ROLE_ADMIN)}")
    print(f"provider token: {create_access_token(PROVIDER_ID, ROLE_PROVIDER)}")
    print(f"client token:   {create_access_token(CLIENT_ID, ROLE_USER)}")
    print("=" * 50)


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
