from __future__ import annotations

from typing import TYPE_CHECKING

from game.tests.mocks import MockConnection

if TYPE_CHECKING:
    from game.logic.state import Room
    from game.session.manager import SessionManager


async def connect(manager: SessionManager) -> MockConnection:
    """Register a fresh connection and drop its assignPlayerId message."""
    conn = MockConnection()
    await manager.register_connection(conn)
    conn.clear()
    return conn


async def create_lobby(manager: SessionManager, *nicknames: str) -> tuple[Room, list[MockConnection]]:
    """Create a room through the session manager; the first nickname hosts."""
    connections = [await connect(manager) for _ in nicknames]
    room = await manager.create_game(connections[0], nicknames[0])
    for conn, nickname in zip(connections[1:], nicknames[1:], strict=True):
        await manager.join_game(conn, room.room_id, nickname)

    # clear message history for clean test assertions
    for conn in connections:
        conn.clear()
    return room, connections


async def start_game(manager: SessionManager, *nicknames: str) -> tuple[Room, list[MockConnection]]:
    room, connections = await create_lobby(manager, *nicknames)
    await manager.start_game(connections[0], room.room_id)
    for conn in connections:
        conn.clear()
    return room, connections


def game_state(message: dict) -> dict:
    return message["payload"]["gameState"]
