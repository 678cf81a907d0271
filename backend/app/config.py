"""Relay settings, read from the environment (see backend/.env.example)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from services.protocol import DEFAULT_MAX_SESSION_CAPACITY
from services.reaper import DEFAULT_GRACE_SECONDS, DEFAULT_INTERVAL_SECONDS

DEFAULT_ENDPOINT_PATH = "/relay"
LEGACY_ENDPOINT_PATH = "/fat.php"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class RelaySettings:
    max_session_capacity: int = DEFAULT_MAX_SESSION_CAPACITY
    silent_rejections: bool = True
    endpoint_path: str = DEFAULT_ENDPOINT_PATH
    storage_dir: str | None = None            # None: in-memory only
    reap_grace_seconds: float = DEFAULT_GRACE_SECONDS
    reap_interval_seconds: float = DEFAULT_INTERVAL_SECONDS  # 0 disables reaping
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_session_capacity < 1:
            raise ValueError("RELAY_MAX_SESSION_CAPACITY must be at least 1")
        if self.reap_grace_seconds < 0:
            raise ValueError("RELAY_REAP_GRACE_SECONDS must not be negative")
        if self.reap_interval_seconds < 0:
            raise ValueError("RELAY_REAP_INTERVAL_SECONDS must not be negative")
        if not self.endpoint_path.startswith("/"):
            raise ValueError("RELAY_ENDPOINT_PATH must start with '/'")

    @property
    def reaping_enabled(self) -> bool:
        return self.reap_interval_seconds > 0


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings() -> RelaySettings:
    """Build settings from RELAY_* environment variables."""
    return RelaySettings(
        max_session_capacity=int(_env_str("RELAY_MAX_SESSION_CAPACITY", str(DEFAULT_MAX_SESSION_CAPACITY))),
        silent_rejections=_env_bool("RELAY_SILENT_REJECTIONS", True),
        endpoint_path=_env_str("RELAY_ENDPOINT_PATH", DEFAULT_ENDPOINT_PATH),
        storage_dir=os.environ.get("RELAY_STORAGE_DIR", "").strip() or None,
        reap_grace_seconds=float(_env_str("RELAY_REAP_GRACE_SECONDS", str(DEFAULT_GRACE_SECONDS))),
        reap_interval_seconds=float(_env_str("RELAY_REAP_INTERVAL_SECONDS", str(DEFAULT_INTERVAL_SECONDS))),
        host=_env_str("RELAY_HOST", "127.0.0.1"),
        port=int(_env_str("RELAY_PORT", "8000")),
        log_level=_env_str("RELAY_LOG_LEVEL", "INFO").upper(),
    )
