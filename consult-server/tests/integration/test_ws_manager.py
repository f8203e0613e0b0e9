import json

from app.interfaces.ws.manager import ConnectionManager
from app.modules.billing import BillingEvent


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def accept(self) -> None:
        return None

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(json.loads(text))

    async def close(self, code: int = 1000) -> None:
        return None


async def test_billing_event_reaches_both_participants():
    manager = ConnectionManager(timeout=300, check_interval=300)
    payer_socket, receiver_socket = FakeSocket(), FakeSocket()
    await manager.connect("client", payer_socket)
    await manager.connect("provider", receiver_socket)

    await manager.push_billing_event(
        BillingEvent(
            kind="suspended",
            session_id="client_provider",
            account_ids=("client", "provider"),
            payload={"shortfall_cents": 3},
        )
    )

    expected = {"type": "session_suspended", "data": {"session_id": "client_provider", "shortfall_cents": 3}}
    assert payer_socket.sent == [expected]
    assert receiver_socket.sent == [expected]
    await manager.disconnect("client", payer_socket)
    await manager.disconnect("provider", receiver_socket)


async def test_broken_socket_is_dropped():
    manager = ConnectionManager(timeout=300, check_interval=300)
    healthy, broken = FakeSocket(), FakeSocket(fail=True)
    await manager.connect("client", healthy)
    await manager.connect("client", broken)

    delivered = await manager.send_message("client", {"type": "ping"})

    assert delivered == 1
    assert manager.is_online("client")
    await manager.disconnect("client", healthy)
    assert not manager.is_online("client")
