"""In-memory session store. Keyed by session ID, then player ID."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, suppress

from models import STATE_BLOB_SIZE, Player, RegistrationOutcome, Session

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """The backing storage failed to read or write session state."""


class PlayerNotRegistered(LookupError):
    pass


class SessionStore:
    """
    Session membership and per-player state blobs.

    Locking:
      - one asyncio.Lock serializes membership changes (create, register,
        delete), so capacity and duplicate checks are a single check-and-insert
      - each Player carries its own lock for state writes; writers to
        different players never contend
      - reads take no lock; a blob is replaced by swapping one reference
      - removing a session drops it from memory first, then waits on every
        player lock, so an in-flight write finishes before the backing data
        is deleted and the writer sees PlayerNotRegistered

    Subclasses persist mutations by overriding the ``_persist_*`` hooks, which
    run before the in-memory view changes.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[int, Session] = {}

    def session_exists(self, session_id: int) -> bool:
        return session_id in self._sessions

    def player_exists(self, session_id: int, player_id: int) -> bool:
        session = self._sessions.get(session_id)
        return session is not None and player_id in session.players

    def member_count(self, session_id: int) -> int:
        session = self._sessions.get(session_id)
        return session.member_count() if session else 0

    def session_ids(self) -> list[int]:
        return list(self._sessions)

    def get_state(self, session_id: int, player_id: int) -> bytes | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        player = session.players.get(player_id)
        return player.state if player else None

    async def create_session(self, session_id: int) -> Session:
        async with self._lock:
            return await self._create_session_locked(session_id)

    async def register_player(
        self,
        session_id: int,
        player_id: int,
        *,
        capacity: int | None = None,
    ) -> RegistrationOutcome:
        """
        Insert a player with a zeroed blob, creating the session if needed.

        The capacity check only applies to sessions that already exist, and is
        made under the same lock as the insert.
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                if capacity is not None and session.member_count() >= capacity:
                    return RegistrationOutcome.SESSION_FULL
                if player_id in session.players:
                    return RegistrationOutcome.DUPLICATE
            else:
                await self._create_session_with_player_locked(session_id, player_id)
                logger.info("[store] Registered player=%s session=%s", player_id, session_id)
                return RegistrationOutcome.REGISTERED
            await self._persist_new_player(session_id, player_id)
            session.players[player_id] = Player(id=player_id)
        logger.info("[store] Registered player=%s session=%s", player_id, session_id)
        return RegistrationOutcome.REGISTERED

    async def write_state(self, session_id: int, player_id: int, blob: bytes) -> None:
        if len(blob) != STATE_BLOB_SIZE:
            raise ValueError(f"state blob must be {STATE_BLOB_SIZE} bytes, got {len(blob)}")
        session = self._sessions.get(session_id)
        player = session.players.get(player_id) if session else None
        if player is None:
            raise PlayerNotRegistered(f"player {player_id} is not registered in session {session_id}")
        state = bytes(blob)
        async with player.lock:
            if not self._is_member(session_id, session, player):
                raise PlayerNotRegistered(f"session {session_id} was removed")
            await self._persist_state(session_id, player_id, state)
            if not self._is_member(session_id, session, player):
                # Removed while the write was in flight; the remover deletes the blob after us.
                raise PlayerNotRegistered(f"session {session_id} was removed")
            player.state = state

    def list_others_state(self, session_id: int, exclude_player_id: int) -> list[tuple[int, bytes]]:
        session = self._sessions.get(session_id)
        if session is None:
            return []
        return [
            (player.id, player.state)
            for player in list(session.players.values())
            if player.id != exclude_player_id
        ]

    async def delete_session(self, session_id: int) -> bool:
        async with self._lock:
            if session_id not in self._sessions:
                return False
            await self._remove_session_locked(session_id)
        return True

    async def reap_expired(self, cutoff: float) -> list[int]:
        """Delete every session whose deadline is strictly before ``cutoff``."""
        reaped: list[int] = []
        async with self._lock:
            for session_id in [sid for sid in self._sessions if sid < cutoff]:
                await self._remove_session_locked(session_id)
                reaped.append(session_id)
        if reaped:
            logger.info("[store] Reaped %d expired session(s): %s", len(reaped), reaped)
        return reaped

    async def _create_session_locked(self, session_id: int) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            await self._persist_new_session(session_id)
            session = Session(id=session_id)
            self._sessions[session_id] = session
            logger.info("[store] Session created: session=%s", session_id)
        return session

    async def _create_session_with_player_locked(self, session_id: int, player_id: int) -> None:
        await self._persist_new_session(session_id)
        try:
            await self._persist_new_player(session_id, player_id)
        except BaseException:
            with suppress(StorageError):
                await self._persist_session_removed(session_id)
            raise
        session = Session(id=session_id)
        session.players[player_id] = Player(id=player_id)
        self._sessions[session_id] = session
        logger.info("[store] Session created: session=%s", session_id)

    async def _remove_session_locked(self, session_id: int) -> None:
        session = self._sessions.pop(session_id)
        try:
            async with AsyncExitStack() as stack:
                for player in list(session.players.values()):
                    await stack.enter_async_context(player.lock)
                await self._persist_session_removed(session_id)
        except BaseException:
            self._sessions[session_id] = session
            raise

    def _is_member(self, session_id: int, session: Session, player: Player) -> bool:
        return self._sessions.get(session_id) is session and session.players.get(player.id) is player

    async def _persist_new_session(self, session_id: int) -> None:
        pass

    async def _persist_new_player(self, session_id: int, player_id: int) -> None:
        pass

    async def _persist_state(self, session_id: int, player_id: int, state: bytes) -> None:
        pass

    async def _persist_session_removed(self, session_id: int) -> None:
        pass
