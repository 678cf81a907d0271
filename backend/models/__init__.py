from .protocol import (
    ProtocolAction,
    ProtocolResult,
    RegistrationOutcome,
    RejectionKind,
    RelayRequest,
)
from .session import STATE_BLOB_SIZE, ZERO_STATE, Player, Session

__all__ = [
    "Session",
    "Player",
    "STATE_BLOB_SIZE",
    "ZERO_STATE",
    "RelayRequest",
    "ProtocolAction",
    "ProtocolResult",
    "RegistrationOutcome",
    "RejectionKind",
]
