from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.config import RelaySettings, load_settings
from app.main import build_store, create_app
from services.file_store import FileSessionStore
from services.store import SessionStore


def test_health() -> None:
    client = TestClient(create_app(RelaySettings(reap_interval_seconds=0), store=SessionStore()))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_lifespan_starts_and_stops_reaper() -> None:
    app = create_app(RelaySettings(reap_interval_seconds=30), store=SessionStore())
    with TestClient(app):
        assert app.state.reaper.running
    assert app.state.reaper.running is False


def test_reaping_disabled_with_zero_interval() -> None:
    app = create_app(RelaySettings(reap_interval_seconds=0), store=SessionStore())
    assert app.state.reaper is None
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200


def test_settings_defaults() -> None:
    with patch.dict("os.environ", {}, clear=True):
        settings = load_settings()
    assert settings.max_session_capacity == 32
    assert settings.silent_rejections is True
    assert settings.endpoint_path == "/relay"
    assert settings.storage_dir is None
    assert settings.reaping_enabled is True


def test_settings_from_env() -> None:
    env = {
        "RELAY_MAX_SESSION_CAPACITY": "8",
        "RELAY_SILENT_REJECTIONS": "no",
        "RELAY_ENDPOINT_PATH": "/fat",
        "RELAY_STORAGE_DIR": "  /tmp/relay  ",
        "RELAY_REAP_INTERVAL_SECONDS": "0",
        "RELAY_LOG_LEVEL": "debug",
    }
    with patch.dict("os.environ", env, clear=True):
        settings = load_settings()
    assert settings.max_session_capacity == 8
    assert settings.silent_rejections is False
    assert settings.endpoint_path == "/fat"
    assert settings.storage_dir == "/tmp/relay"
    assert settings.reaping_enabled is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"RELAY_MAX_SESSION_CAPACITY": "0"},
        {"RELAY_SILENT_REJECTIONS": "maybe"},
        {"RELAY_ENDPOINT_PATH": "relay"},
        {"RELAY_REAP_GRACE_SECONDS": "-5"},
    ],
)
def test_invalid_settings_rejected(env: dict[str, str]) -> None:
    with patch.dict("os.environ", env, clear=True), pytest.raises(ValueError):
        load_settings()


def test_build_store_uses_file_store_when_dir_configured(tmp_path: Path) -> None:
    (tmp_path / "2000000000").mkdir()
    (tmp_path / "2000000000" / "4").write_bytes(b"\x04" * 12)

    store = build_store(RelaySettings(storage_dir=str(tmp_path)))

    assert isinstance(store, FileSessionStore)
    assert store.get_state(2_000_000_000, 4) == b"\x04" * 12
    assert type(build_store(RelaySettings())) is SessionStore
