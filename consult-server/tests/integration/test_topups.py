import pytest

from app.modules.topups import TopupAlreadyProcessedError, TopupNotFoundError, TopupService
from app.modules.topups.models import STATUS_FAILED, STATUS_PENDING, STATUS_SUCCESS


@pytest.fixture
def topup_service(db_session):
    return TopupService.with_session(db_session)


async def test_approved_order_credits_wallet_once(topup_service, wallet_service):
    order = await topup_service.create_order(account_id="client", amount_cents=2500, payment_channel="upi")
    assert order.status == STATUS_PENDING

    confirmed = await topup_service.mark_success(order.id)

    assert confirmed.status == STATUS_SUCCESS
    assert confirmed.confirmed_at is not None
    assert await wallet_service.get_balance("client") == 2500
    with pytest.raises(TopupAlreadyProcessedError):
        await topup_service.mark_success(order.id)
    assert await wallet_service.get_balance("client") == 2500


async def test_rejected_order_leaves_wallet_untouched(topup_service, wallet_service):
    order = await topup_service.create_order(account_id="client", amount_cents=2500)

    failed = await topup_service.mark_failed(order.id)

    assert failed.status == STATUS_FAILED
    assert await wallet_service.get_balance("client") == 0


async def test_unknown_order(topup_service):
    with pytest.raises(TopupNotFoundError):
        await topup_service.mark_success("missing")


async def test_listing_filters_by_status(topup_service):
    first = await topup_service.create_order(account_id="client", amount_cents=100)
    await topup_service.create_order(account_id="client", amount_cents=200)
    await topup_service.mark_failed(first.id)

    pending = await topup_service.list_orders("client", status=STATUS_PENDING)
    everything = await topup_service.list_orders_admin()

    assert [order.amount_cents for order in pending] == [200]
    assert len(everything) == 2
