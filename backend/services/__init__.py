from .file_store import FileSessionStore
from .protocol import SessionProtocol
from .reaper import SessionReaper
from .store import PlayerNotRegistered, SessionStore, StorageError

__all__ = [
    "SessionStore",
    "FileSessionStore",
    "SessionProtocol",
    "SessionReaper",
    "StorageError",
    "PlayerNotRegistered",
]
