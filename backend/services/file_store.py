"""Durable session store: one directory per session, one file per player."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
from contextlib import suppress
from pathlib import Path

from models import STATE_BLOB_SIZE, ZERO_STATE, Player, Session
from services.store import PlayerNotRegistered, SessionStore, StorageError

logger = logging.getLogger(__name__)


class FileSessionStore(SessionStore):
    """
    SessionStore that mirrors every mutation to disk.

    Layout under ``root``:
      <root>/<session_id>/<player_id>    raw state blob, STATE_BLOB_SIZE bytes

    Reads are served from memory. Disk writes happen first, so a failed write
    leaves the in-memory view unchanged and surfaces as StorageError. Only
    session creation makes a directory; a state write into a missing directory
    means the session was deleted and surfaces as PlayerNotRegistered.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        super().__init__()
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def load(self) -> int:
        """
        Rebuild the in-memory view from disk. Returns the number of players loaded.

        Entries whose names are not integers, and blobs of the wrong size, are
        skipped with a warning.
        """
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            loaded = 0
            for session_dir in sorted(self._root.iterdir()):
                session_id = _parse_id(session_dir.name)
                if session_id is None or not session_dir.is_dir():
                    logger.warning("[file_store] Skipping unexpected entry %s", session_dir)
                    continue
                session = Session(id=session_id)
                for player_file in sorted(session_dir.iterdir()):
                    player_id = _parse_id(player_file.name)
                    if player_id is None or not player_file.is_file():
                        logger.warning("[file_store] Skipping unexpected entry %s", player_file)
                        continue
                    state = player_file.read_bytes()
                    if len(state) != STATE_BLOB_SIZE:
                        logger.warning(
                            "[file_store] Skipping %s: blob is %d bytes, expected %d",
                            player_file,
                            len(state),
                            STATE_BLOB_SIZE,
                        )
                        continue
                    session.players[player_id] = Player(id=player_id, state=state)
                    loaded += 1
                self._sessions[session_id] = session
        except OSError as e:
            raise StorageError(f"failed to load sessions from {self._root}: {e}") from e
        logger.info(
            "[file_store] Loaded %d session(s), %d player(s) from %s",
            len(self._sessions),
            loaded,
            self._root,
        )
        return loaded

    async def _persist_new_session(self, session_id: int) -> None:
        await self._run(self._session_dir(session_id).mkdir, parents=True, exist_ok=True)

    async def _persist_new_player(self, session_id: int, player_id: int) -> None:
        await self._run(self._write_blob, session_id, player_id, ZERO_STATE)

    async def _persist_state(self, session_id: int, player_id: int, state: bytes) -> None:
        try:
            await asyncio.to_thread(self._write_blob, session_id, player_id, state)
        except FileNotFoundError as e:
            raise PlayerNotRegistered(f"session {session_id} directory is gone") from e
        except OSError as e:
            raise StorageError(f"storage operation _write_blob failed: {e}") from e

    async def _persist_session_removed(self, session_id: int) -> None:
        await self._run(self._remove_session_dir, session_id)

    def _session_dir(self, session_id: int) -> Path:
        return self._root / str(session_id)

    def _remove_session_dir(self, session_id: int) -> None:
        session_dir = self._session_dir(session_id)
        if session_dir.exists():
            shutil.rmtree(session_dir)

    def _write_blob(self, session_id: int, player_id: int, state: bytes) -> None:
        session_dir = self._session_dir(session_id)
        fd, tmp_name = tempfile.mkstemp(dir=session_dir, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(state)
            os.replace(tmp_name, session_dir / str(player_id))
        except BaseException:
            with suppress(OSError):
                os.unlink(tmp_name)
            raise

    async def _run(self, func, *args, **kwargs) -> None:
        try:
            await asyncio.to_thread(func, *args, **kwargs)
        except OSError as e:
            raise StorageError(f"storage operation {func.__name__} failed: {e}") from e


def _parse_id(name: str) -> int | None:
    try:
        return int(name)
    except ValueError:
        return None

