"""Register / publish / broadcast decisions for relay requests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from models import (
    STATE_BLOB_SIZE,
    ProtocolAction,
    ProtocolResult,
    RegistrationOutcome,
    RejectionKind,
    RelayRequest,
)
from services.store import PlayerNotRegistered, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSION_CAPACITY = 32
STRICT_MAX_SESSION_CAPACITY = 8

_OUTCOME_REJECTIONS = {
    RegistrationOutcome.SESSION_FULL: RejectionKind.SESSION_FULL,
    RegistrationOutcome.DUPLICATE: RejectionKind.ALREADY_REGISTERED,
}


class SessionProtocol:
    """
    Stateless interpretation of one relay request against a SessionStore.

    A request with a payload is a publish: the caller must already be a member
    and the payload must be exactly STATE_BLOB_SIZE bytes. The response body is
    every other member's blob, back to back, with no delimiter.

    A request without a payload is a registration. The session id doubles as a
    unix-time deadline; once it has passed, registrations are refused.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        max_session_capacity: int = DEFAULT_MAX_SESSION_CAPACITY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_session_capacity < 1:
            raise ValueError("max_session_capacity must be at least 1")
        self._store = store
        self._capacity = max_session_capacity
        self._clock = clock

    @property
    def max_session_capacity(self) -> int:
        return self._capacity

    async def handle(self, request: RelayRequest) -> ProtocolResult:
        if request.player_id is None or request.session_id is None:
            return self._reject(request, RejectionKind.MALFORMED_REQUEST)
        if request.payload is not None:
            return await self.publish(request.session_id, request.player_id, request.payload)
        return await self.register(request.session_id, request.player_id)

    async def register(self, session_id: int, player_id: int) -> ProtocolResult:
        request = RelayRequest(player_id=player_id, session_id=session_id)
        if self._clock() > session_id:
            return self._reject(request, RejectionKind.REGISTRATION_EXPIRED)
        outcome = await self._store.register_player(session_id, player_id, capacity=self._capacity)
        if outcome is not RegistrationOutcome.REGISTERED:
            return self._reject(request, _OUTCOME_REJECTIONS[outcome])
        return ProtocolResult(action=ProtocolAction.REGISTERED)

    async def publish(self, session_id: int, player_id: int, payload: bytes) -> ProtocolResult:
        request = RelayRequest(player_id=player_id, session_id=session_id, payload=payload)
        if not self._store.player_exists(session_id, player_id):
            return self._reject(request, RejectionKind.NOT_REGISTERED)
        if len(payload) != STATE_BLOB_SIZE:
            return self._reject(request, RejectionKind.WRONG_PAYLOAD_SIZE)
        try:
            await self._store.write_state(session_id, player_id, payload)
        except PlayerNotRegistered:
            # Session was reaped between the membership check and the write.
            return self._reject(request, RejectionKind.NOT_REGISTERED)
        others = self._store.list_others_state(session_id, player_id)
        logger.debug(
            "[protocol] Publish: session=%s player=%s others=%d",
            session_id,
            player_id,
            len(others),
        )
        return ProtocolResult(
            action=ProtocolAction.PUBLISHED,
            body=b"".join(state for _, state in others),
        )

    def _reject(self, request: RelayRequest, kind: RejectionKind) -> ProtocolResult:
        logger.info(
            "[protocol] Rejected %s: session=%s player=%s",
            kind.value,
            request.session_id,
            request.player_id,
        )
        return ProtocolResult.rejected(kind)
