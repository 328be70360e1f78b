"""Abstract connection protocol for the game channel."""

from abc import ABC, abstractmethod
from typing import Any

from game.messaging.encoder import WireFormat, decode_frame, encode_json, encode_msgpack


class ConnectionProtocol(ABC):
    """
    Abstract interface for a client connection.

    This abstraction allows message handling logic to be tested
    without real WebSocket connections. Outbound messages are encoded in the
    connection's wire format; inbound frames are decoded by their kind.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Opaque identifier for this connection, also used as the player id."""
        ...

    @property
    def wire_format(self) -> WireFormat:
        return WireFormat.JSON

    @abstractmethod
    async def send_text(self, data: str) -> None:
        """
        Send a text frame to the client.
        """
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None:
        """
        Send a binary frame to the client.
        """
        ...

    @abstractmethod
    async def receive_frame(self) -> str | bytes:
        """
        Receive the next text or binary frame from the client.
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection.
        """
        ...

    async def send_message(self, data: dict[str, Any]) -> None:
        """
        Send a message to the client in this connection's wire format.
        """
        if self.wire_format == WireFormat.MSGPACK:
            await self.send_bytes(encode_msgpack(data))
        else:
            await self.send_text(encode_json(data))

    async def receive_message(self) -> dict[str, Any]:
        """
        Receive and decode a message from the client.
        """
        return decode_frame(await self.receive_frame())
