"""Shared fan-out utility for sending messages to room connections."""

import contextlib
from collections.abc import Callable, Iterable
from typing import Any

from game.messaging.protocol import ConnectionProtocol


async def send_quietly(connection: ConnectionProtocol, message: dict[str, Any]) -> None:
    """Send one message, skipping a connection that is closed or not writable."""
    with contextlib.suppress(RuntimeError, OSError, ConnectionError):
        await connection.send_message(message)


async def broadcast_to_connections(
    connections: Iterable[ConnectionProtocol],
    message: dict[str, Any],
    exclude_connection_id: str | None = None,
) -> None:
    """Broadcast the same message to every connection, optionally skipping one.

    The iterable is snapshotted first so a concurrent disconnect cannot
    mutate it while we yield on send_message.
    """
    for connection in list(connections):
        if connection.connection_id != exclude_connection_id:
            await send_quietly(connection, message)


async def broadcast_per_recipient(
    connections: Iterable[ConnectionProtocol],
    build_message: Callable[[str], dict[str, Any]],
) -> None:
    """Send each connection its own message built from its connection id."""
    for connection in list(connections):
        await send_quietly(connection, build_message(connection.connection_id))
