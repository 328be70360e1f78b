from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from game.logic.enums import ErrorCode
from game.messaging.encoder import DecodeError, WireFormat
from game.messaging.protocol import ConnectionProtocol
from game.messaging.router import error_message
from game.server.rate_limit import TokenBucket

logger = structlog.get_logger()

if TYPE_CHECKING:
    from game.messaging.router import MessageRouter

# Rate limit: 50 messages/sec sustained, burst of 80.
_RATE_LIMIT_RATE = 50.0
_RATE_LIMIT_BURST = 80

# Disconnect after this many consecutive decode errors
_MAX_DECODE_ERRORS = 5
_DECODE_ERRORS_CLOSE_CODE = 4004


class WebSocketConnection(ConnectionProtocol):
    def __init__(
        self,
        websocket: WebSocket,
        wire_format: WireFormat = WireFormat.JSON,
        connection_id: str | None = None,
    ) -> None:
        self._websocket = websocket
        self._wire_format = wire_format
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def wire_format(self) -> WireFormat:
        return self._wire_format

    async def send_text(self, data: str) -> None:
        try:
            await self._websocket.send_text(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_frame(self) -> str | bytes:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise ConnectionError("WebSocket disconnected")
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


def _requested_format(websocket: WebSocket) -> WireFormat | None:
    raw = websocket.query_params.get("format", WireFormat.JSON)
    try:
        return WireFormat(raw.lower())
    except ValueError:
        return None


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    wire_format = _requested_format(websocket)
    if wire_format is None:
        await websocket.close(code=4000, reason="invalid_format")
        return

    await websocket.accept()

    connection = WebSocketConnection(websocket, wire_format=wire_format)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected", wire_format=wire_format)
    await router.handle_connect(connection)

    bucket = TokenBucket(rate=_RATE_LIMIT_RATE, burst=_RATE_LIMIT_BURST)
    decode_errors = 0

    try:
        while True:
            # Always decode to maintain the malformed-message strike counter.
            try:
                data = await connection.receive_message()
            except DecodeError as e:
                decode_errors += 1
                logger.warning("decode error", error=str(e), strikes=decode_errors)
                await connection.send_message(error_message("Invalid message format.", ErrorCode.VALIDATION_ERROR))
                if decode_errors >= _MAX_DECODE_ERRORS:
                    logger.info("too many decode errors, disconnecting")
                    await connection.close(code=_DECODE_ERRORS_CLOSE_CODE, reason="too_many_decode_errors")
                    return
                continue

            decode_errors = 0

            if not bucket.consume():
                await connection.send_message(error_message("Too many messages.", ErrorCode.RATE_LIMITED))
                continue
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()
