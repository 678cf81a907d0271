"""Relay endpoint: register with `r` and `u`, then publish-and-pull with `p`."""

from __future__ import annotations

import logging
from urllib.parse import unquote_to_bytes

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

from models import ProtocolResult, RelayRequest
from services.protocol import SessionProtocol

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"


def parse_query(raw: bytes) -> dict[str, bytes]:
    """
    Decode a raw query string, keeping values as bytes.

    Starlette's query_params decode values as UTF-8, which would mangle a
    binary payload. Repeated keys keep the last value.
    """
    fields: dict[str, bytes] = {}
    for pair in raw.split(b"&"):
        if not pair:
            continue
        key, _, value = pair.partition(b"=")
        fields[_unquote(key).decode("latin-1")] = _unquote(value)
    return fields


def _unquote(raw: bytes) -> bytes:
    return unquote_to_bytes(raw.replace(b"+", b" "))


def _parse_int(raw: bytes | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def read_relay_request(request: Request) -> RelayRequest:
    fields = parse_query(request.scope.get("query_string", b""))
    payload = fields.get("p")
    if payload is None and request.method == "POST":
        body = await request.body()
        if body:
            payload = body
    return RelayRequest(
        player_id=_parse_int(fields.get("u")),
        session_id=_parse_int(fields.get("r")),
        payload=payload,
    )


def render_result(result: ProtocolResult, *, silent_rejections: bool) -> Response:
    """Every outcome is a 200; only registration rejections may carry text."""
    if result.rejection is None:
        return Response(content=result.body, media_type=OCTET_STREAM)
    if not silent_rejections and result.rejection.is_registration:
        return PlainTextResponse(result.rejection.message)
    return Response(status_code=200)


async def relay(request: Request) -> Response:
    protocol: SessionProtocol = request.app.state.protocol
    relay_request = await read_relay_request(request)
    result = await protocol.handle(relay_request)
    return render_result(result, silent_rejections=request.app.state.settings.silent_rejections)


def create_router(*paths: str) -> APIRouter:
    """Serve the relay on each of ``paths`` (GET and POST)."""
    router = APIRouter(tags=["relay"])
    for path in dict.fromkeys(paths):
        router.add_api_route(
            path,
            relay,
            methods=["GET", "POST"],
            response_class=Response,
            summary="Register, or publish state and pull every other player's state",
        )
        logger.info("[relay] Serving relay at %s", path)
    return router
