from dataclasses import replace

import pytest

from app.modules.sessions import (
    ConcurrentSessionUpdateError,
    SessionNotFoundError,
    SessionParticipantError,
    SessionService,
    build_session_id,
    resolve_payer,
)


@pytest.fixture
def session_service(db_session):
    return SessionService.with_session(db_session)


def test_session_id_is_independent_of_order():
    assert build_session_id("bob", "alice") == build_session_id("alice", "bob") == "alice_bob"


@pytest.mark.parametrize("pair", [("alice", "alice"), ("", "bob")])
def test_session_needs_two_distinct_participants(pair):
    with pytest.raises(SessionParticipantError):
        build_session_id(*pair)


async def test_first_initiator_becomes_payer_for_good(session_service):
    first, created = await session_service.open_session(
        initiator_id="client", counterpart_id="provider", session_type="chat", rate_per_minute_cents=5
    )
    again, created_again = await session_service.open_session(
        initiator_id="provider", counterpart_id="client", session_type="video", rate_per_minute_cents=50
    )

    assert created and not created_again
    assert first.id == again.id
    assert again.payer_id == "client"
    assert again.provider_id == "provider"
    assert again.receiver_id == "provider"
    assert again.rate_per_minute_cents == 5
    assert resolve_payer(again.id, "provider", again) == "client"


def test_resolve_payer_without_session_takes_initiator():
    assert resolve_payer("alice_bob", "bob") == "bob"


async def test_stale_save_is_rejected(session_service):
    session, _ = await session_service.open_session(
        initiator_id="client", counterpart_id="provider", session_type="chat", rate_per_minute_cents=5
    )
    first = replace(session, accumulated_deducted_cents=5)
    await session_service.save(session, first)

    with pytest.raises(ConcurrentSessionUpdateError):
        await session_service.save(session, replace(session, accumulated_deducted_cents=10))
    assert (await session_service.get_session(session.id)).accumulated_deducted_cents == 5


async def test_outsiders_cannot_read_a_session(session_service):
    session, _ = await session_service.open_session(
        initiator_id="client", counterpart_id="provider", session_type="chat", rate_per_minute_cents=5
    )

    with pytest.raises(SessionParticipantError):
        await session_service.get_for_participant(session.id, "stranger")
    with pytest.raises(SessionNotFoundError):
        await session_service.get_session("nobody_nowhere")


async def test_unknown_session_type_is_rejected(session_service):
    with pytest.raises(ValueError):
        await session_service.open_session(
            initiator_id="client", counterpart_id="provider", session_type="fax", rate_per_minute_cents=5
        )
