from dataclasses import dataclass
from enum import StrEnum


class RejectionKind(StrEnum):
    MALFORMED_REQUEST = "malformed_request"
    REGISTRATION_EXPIRED = "registration_expired"
    SESSION_FULL = "session_full"
    ALREADY_REGISTERED = "already_registered"
    NOT_REGISTERED = "not_registered"
    WRONG_PAYLOAD_SIZE = "wrong_payload_size"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]

    @property
    def is_registration(self) -> bool:
        return self in _REGISTRATION_REJECTIONS


_REJECTION_MESSAGES = {
    RejectionKind.MALFORMED_REQUEST: "uid (u) or game-id (r) not provided",
    RejectionKind.REGISTRATION_EXPIRED: "registration rejected: time period expired",
    RejectionKind.SESSION_FULL: "registration rejected: max players reached",
    RejectionKind.ALREADY_REGISTERED: "registration rejected: already registered",
    RejectionKind.NOT_REGISTERED: "not registered",
    RejectionKind.WRONG_PAYLOAD_SIZE: "wrong size",
}

_REGISTRATION_REJECTIONS = frozenset(
    {
        RejectionKind.REGISTRATION_EXPIRED,
        RejectionKind.SESSION_FULL,
        RejectionKind.ALREADY_REGISTERED,
    }
)


class ProtocolAction(StrEnum):
    REGISTERED = "registered"
    PUBLISHED = "published"
    REJECTED = "rejected"


class RegistrationOutcome(StrEnum):
    REGISTERED = "registered"
    SESSION_FULL = "session_full"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class RelayRequest:
    player_id: int | None              # query field `u`
    session_id: int | None             # query field `r`
    payload: bytes | None = None       # query field `p`, raw bytes


@dataclass(frozen=True)
class ProtocolResult:
    action: ProtocolAction
    body: bytes = b""
    rejection: RejectionKind | None = None

    @classmethod
    def rejected(cls, kind: RejectionKind) -> "ProtocolResult":
        return cls(action=ProtocolAction.REJECTED, rejection=kind)

    @property
    def ok(self) -> bool:
        return self.rejection is None
