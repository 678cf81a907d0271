from models import (
    STATE_BLOB_SIZE,
    ZERO_STATE,
    Player,
    ProtocolAction,
    ProtocolResult,
    RejectionKind,
    RelayRequest,
    Session,
)


def test_player_defaults_to_zeroed_state() -> None:
    player = Player(id=7)
    assert player.state == b"\x00" * 12
    assert len(ZERO_STATE) == STATE_BLOB_SIZE == 12


def test_players_have_independent_locks() -> None:
    a, b = Player(id=1), Player(id=2)
    assert a.lock is not b.lock


def test_session_deadline_is_its_id() -> None:
    session = Session(id=1_700_003_600)
    assert session.deadline == 1_700_003_600
    assert session.member_count() == 0

    session.players[1] = Player(id=1)
    assert session.member_count() == 1


def test_registration_rejections_carry_diagnostic_text() -> None:
    assert RejectionKind.REGISTRATION_EXPIRED.message == "registration rejected: time period expired"
    assert RejectionKind.SESSION_FULL.message == "registration rejected: max players reached"
    assert RejectionKind.ALREADY_REGISTERED.message == "registration rejected: already registered"

    registration = {kind for kind in RejectionKind if kind.is_registration}
    assert registration == {
        RejectionKind.REGISTRATION_EXPIRED,
        RejectionKind.SESSION_FULL,
        RejectionKind.ALREADY_REGISTERED,
    }


def test_protocol_result_rejected() -> None:
    result = ProtocolResult.rejected(RejectionKind.NOT_REGISTERED)
    assert result.action is ProtocolAction.REJECTED
    assert result.body == b""
    assert result.ok is False

    assert ProtocolResult(action=ProtocolAction.REGISTERED).ok is True


def test_relay_request_payload_is_optional() -> None:
    request = RelayRequest(player_id=1, session_id=2)
    assert request.payload is None
