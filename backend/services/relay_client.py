"""Async HTTP client for the relay endpoint, as used by a game client."""

from __future__ import annotations

import struct
from types import TracebackType
from urllib.parse import quote_from_bytes

import httpx

from models import STATE_BLOB_SIZE

_POSITION = struct.Struct("<3f")
DEFAULT_TIMEOUT_SECONDS = 5.0


def pack_position(x: float, y: float, z: float) -> bytes:
    """Encode a position vector as a state blob (three little-endian float32)."""
    return _POSITION.pack(x, y, z)


def unpack_position(blob: bytes) -> tuple[float, float, float]:
    return _POSITION.unpack(blob)


def split_states(body: bytes) -> list[bytes]:
    """Split a publish response into per-player blobs; a trailing partial blob is dropped."""
    usable = len(body) - len(body) % STATE_BLOB_SIZE
    return [body[i : i + STATE_BLOB_SIZE] for i in range(0, usable, STATE_BLOB_SIZE)]


class RelayClient:
    """
    Registers once, then publishes its own state and pulls everyone else's in
    the same call.

    Pass ``client`` to reuse an existing httpx.AsyncClient (for example one
    built on httpx.ASGITransport in tests); otherwise one is created and owned.
    """

    def __init__(
        self,
        base_url: str,
        session_id: int,
        player_id: int,
        *,
        endpoint_path: str = "/relay",
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.session_id = session_id
        self.player_id = player_id
        self._url = base_url.rstrip("/") + endpoint_path
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def register(self) -> str:
        """Returns the response text: empty on success or silent rejection."""
        response = await self._client.get(self._url, params={"r": self.session_id, "u": self.player_id})
        response.raise_for_status()
        return response.text

    async def publish(self, state: bytes) -> list[bytes]:
        if len(state) != STATE_BLOB_SIZE:
            raise ValueError(f"state must be {STATE_BLOB_SIZE} bytes, got {len(state)}")
        # The payload is raw bytes, so it is percent-encoded by hand rather than via params.
        url = f"{self._url}?r={self.session_id}&u={self.player_id}&p={quote_from_bytes(state, safe='')}"
        response = await self._client.get(url)
        response.raise_for_status()
        return split_states(response.content)

    async def publish_position(self, x: float, y: float, z: float) -> list[tuple[float, float, float]]:
        return [unpack_position(blob) for blob in await self.publish(pack_position(x, y, z))]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RelayClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
