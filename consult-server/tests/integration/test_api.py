"""HTTP surface exercised end to end through the ASGI app."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import get_settings
from app.core.container import ApplicationContainer, get_container
from app.core.security import ROLE_ADMIN, ROLE_PROVIDER, ROLE_USER, create_access_token
from app.interfaces.http.deps import get_db_session
from app.main import create_app

CLIENT = "client_42"
PROVIDER = "provider_7"


def _auth(account_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(account_id, role)}"}


CLIENT_HEADERS = _auth(CLIENT, ROLE_USER)
PROVIDER_HEADERS = _auth(PROVIDER, ROLE_PROVIDER)
ADMIN_HEADERS = _auth("admin", ROLE_ADMIN)


@pytest_asyncio.fixture
async def container(session_factory, clock) -> AsyncGenerator[ApplicationContainer, None]:
    container = ApplicationContainer(settings=get_settings(), session_factory=session_factory, now=clock)
    yield container
    await container.shutdown()


@pytest_asyncio.fixture
async def client(session_factory, container) -> AsyncGenerator[AsyncClient, None]:
    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_container] = lambda: container
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _set_pricing(client: AsyncClient, rate: int = 5) -> None:
    response = await client.put(
        "/api/providers/me/pricing",
        json={
            "chat_rate_per_minute_cents": rate,
            "audio_rate_per_minute_cents": rate,
            "video_rate_per_minute_cents": rate,
        },
        headers=PROVIDER_HEADERS,
    )
    assert response.status_code == 200, response.text


async def _fund(client: AsyncClient, amount: int) -> dict:
    created = await client.post("/api/wallet/topups", json={"amount_cents": amount}, headers=CLIENT_HEADERS)
    assert created.status_code == 201, created.text
    reviewed = await client.post(
        f"/api/admin/topups/{created.json()['id']}/review",
        json={"action": "approve"},
        headers=ADMIN_HEADERS,
    )
    assert reviewed.status_code == 200, reviewed.text
    return reviewed.json()


async def test_requests_without_token_are_rejected(client):
    response = await client.get("/api/wallet")

    assert response.status_code in (401, 403)


async def test_invalid_token_is_rejected(client):
    response = await client.get("/api/wallet", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


async def test_only_providers_set_pricing(client):
    response = await client.put(
        "/api/providers/me/pricing",
        json={
            "chat_rate_per_minute_cents": 5,
            "audio_rate_per_minute_cents": 5,
            "video_rate_per_minute_cents": 5,
        },
        headers=CLIENT_HEADERS,
    )

    assert response.status_code == 403


async def test_pricing_round_trip(client):
    missing = await client.get(f"/api/providers/{PROVIDER}/pricing", headers=CLIENT_HEADERS)
    assert missing.json()["configured"] is False

    await _set_pricing(client, rate=25)
    stored = await client.get(f"/api/providers/{PROVIDER}/pricing", headers=CLIENT_HEADERS)

    assert stored.json()["configured"] is True
    assert stored.json()["video_rate_per_minute_cents"] == 25


async def test_zero_rate_is_refused(client):
    response = await client.put(
        "/api/providers/me/pricing",
        json={
            "chat_rate_per_minute_cents": 0,
            "audio_rate_per_minute_cents": 5,
            "video_rate_per_minute_cents": 5,
        },
        headers=PROVIDER_HEADERS,
    )

    assert response.status_code == 422


async def test_consultation_lifecycle(client, container, clock):
    await _set_pricing(client)

    opened = await client.post(
        "/api/sessions",
        json={"counterpart_id": PROVIDER, "session_type": "chat"},
        headers=CLIENT_HEADERS,
    )
    assert opened.status_code == 200, opened.text
    body = opened.json()
    session_id = body["session"]["id"]
    assert body["session"]["status"] == "awaiting_funds"
    assert body["session"]["actions_allowed"] is False
    assert body["gate"] == {
        "allowed": False,
        "is_payer": True,
        "balance_cents": 0,
        "required_cents": 5,
        "shortfall_cents": 5,
        "in_free_trial": False,
    }

    review = await _fund(client, 100)
    assert review["status"] == "success"
    assert review["activated_sessions"] == [session_id]

    payer_view = (await client.get(f"/api/sessions/{session_id}", headers=CLIENT_HEADERS)).json()
    receiver_view = (await client.get(f"/api/sessions/{session_id}", headers=PROVIDER_HEADERS)).json()
    assert payer_view["status"] == "active"
    assert payer_view["actions_allowed"] is True
    assert payer_view["billing_running"] is True
    assert receiver_view["is_payer"] is False
    assert receiver_view["actions_allowed"] is True

    clock.advance(61)
    ended = await client.post(f"/api/sessions/{session_id}/end", headers=CLIENT_HEADERS)
    assert ended.status_code == 200, ended.text
    settlement = ended.json()
    assert settlement["billed_minutes"] == 2
    assert settlement["total_amount_cents"] == 10
    assert settlement["provider_earnings_cents"] == 8
    assert settlement["platform_revenue_cents"] == 2
    assert not container.clock.is_running(session_id)

    wallet = (await client.get("/api/wallet", headers=CLIENT_HEADERS)).json()
    assert wallet["balance_cents"] == 90
    assert wallet["balance"] == "₹0.90"

    earnings = (await client.get("/api/wallet/earnings", headers=PROVIDER_HEADERS)).json()
    assert earnings["total_earnings_cents"] == 8

    history = (await client.get("/api/wallet/transactions", headers=CLIENT_HEADERS)).json()
    assert sorted(tx["amount_cents"] for tx in history["transactions"]) == [-5, -5, 100]

    settlements = (await client.get(f"/api/sessions/{session_id}/settlements", headers=PROVIDER_HEADERS)).json()
    assert [s["billing_cycle"] for s in settlements["settlements"]] == [1]

    revenue = (await client.get("/api/admin/revenue", headers=ADMIN_HEADERS)).json()
    assert revenue["platform_revenue_cents"] == 2
    assert revenue["total_amount_cents"] == 10


async def test_balance_check_against_provider_pricing(client):
    await _set_pricing(client, rate=40)

    before = (await client.get(f"/api/wallet/check?provider_id={PROVIDER}", headers=CLIENT_HEADERS)).json()
    await _fund(client, 50)
    after = (await client.get(f"/api/wallet/check?provider_id={PROVIDER}", headers=CLIENT_HEADERS)).json()

    assert before == {"allowed": False, "balance_cents": 0, "required_cents": 40, "shortfall_cents": 40}
    assert after["allowed"] is True


async def test_balance_check_needs_a_rate_source(client):
    response = await client.get("/api/wallet/check", headers=CLIENT_HEADERS)

    assert response.status_code == 400


async def test_outsiders_get_forbidden(client):
    opened = await client.post(
        "/api/sessions",
        json={"counterpart_id": PROVIDER, "session_type": "audio"},
        headers=CLIENT_HEADERS,
    )
    session_id = opened.json()["session"]["id"]

    response = await client.get(f"/api/sessions/{session_id}", headers=_auth("someone_else", ROLE_USER))

    assert response.status_code == 403


async def test_unknown_session_is_not_found(client):
    response = await client.post("/api/sessions/nobody_nowhere/end", headers=CLIENT_HEADERS)

    assert response.status_code == 404


async def test_reviewing_twice_conflicts(client):
    created = await client.post("/api/wallet/topups", json={"amount_cents": 10}, headers=CLIENT_HEADERS)
    order_id = created.json()["id"]

    first = await client.post(f"/api/admin/topups/{order_id}/review", json={"action": "reject"}, headers=ADMIN_HEADERS)
    second = await client.post(f"/api/admin/topups/{order_id}/review", json={"action": "approve"}, headers=ADMIN_HEADERS)

    assert first.json()["status"] == "failed"
    assert second.status_code == 409


async def test_admin_routes_need_admin_role(client):
    response = await client.get("/api/admin/revenue", headers=CLIENT_HEADERS)

    assert response.status_code == 403


@pytest.mark.parametrize("session_type", ["fax", ""])
async def test_invalid_session_type_is_a_validation_error(client, session_type):
    response = await client.post(
        "/api/sessions",
        json={"counterpart_id": PROVIDER, "session_type": session_type},
        headers=CLIENT_HEADERS,
    )

    assert response.status_code == 422
