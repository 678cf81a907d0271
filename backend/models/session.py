import asyncio
from dataclasses import dataclass, field

STATE_BLOB_SIZE = 12                   # bytes per published state vector
ZERO_STATE = b"\x00" * STATE_BLOB_SIZE


@dataclass
class Player:
    id: int
    state: bytes = ZERO_STATE          # latest published blob
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)


@dataclass
class Session:
    id: int                            # doubles as the registration deadline (unix seconds)
    players: dict[int, Player] = field(default_factory=dict)

    @property
    def deadline(self) -> int:
        return self.id

    def member_count(self) -> int:
        return len(self.players)
