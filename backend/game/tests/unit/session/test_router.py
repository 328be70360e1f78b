from unittest.mock import AsyncMock, patch

from game.logic.enums import ErrorCode, Phase
from game.messaging.router import INTERNAL_ERROR_MESSAGE
from game.messaging.types import ServerMessageType
from game.tests.mocks import MockConnection


async def _connect(router) -> MockConnection:
    conn = MockConnection()
    await router.handle_connect(conn)
    conn.clear()
    return conn


async def _send(router, conn: MockConnection, message_type: str, **payload) -> None:
    await router.handle_message(conn, {"type": message_type, "payload": payload})


def _error(conn: MockConnection) -> dict:
    message = conn.last_message()
    assert message["type"] == ServerMessageType.ERROR
    return message["payload"]


class TestMessageRouter:
    async def test_connect_sends_player_id(self, message_router):
        conn = MockConnection()

        await message_router.handle_connect(conn)

        assert conn.last_message()["payload"] == {"playerId": conn.connection_id}

    async def test_full_round_through_router(self, message_router, session_manager):
        alice = await _connect(message_router)
        bob = await _connect(message_router)

        await _send(message_router, alice, "createGame", nickname="Alice")
        game_id = alice.last_message()["payload"]["gameId"]
        await _send(message_router, bob, "joinGame", nickname="Bob", gameId=int(game_id))
        await _send(message_router, alice, "startGame", gameId=game_id)
        await _send(message_router, bob, "submitClue", gameId=game_id, clue="trunk")
        await _send(message_router, alice, "submitGuess", gameId=game_id, guess="ELEPHANT")

        room = session_manager.registry.get(game_id)
        assert room.scores == {"Alice": 2, "Bob": 2}
        assert room.phase in (Phase.ROUND_OVER, Phase.CLUE_GIVING)
        assert alice.messages_of_type(ServerMessageType.ERROR) == []
        assert bob.messages_of_type(ServerMessageType.ERROR) == []
        await session_manager.shutdown()

    async def test_unknown_type(self, message_router):
        conn = await _connect(message_router)

        await _send(message_router, conn, "dance")

        assert _error(conn) == {"message": "Unknown message type: dance", "code": ErrorCode.VALIDATION_ERROR}

    async def test_missing_field(self, message_router):
        conn = await _connect(message_router)

        await _send(message_router, conn, "joinGame", nickname="Bob")

        error = _error(conn)
        assert error["code"] == ErrorCode.VALIDATION_ERROR
        assert "gameId" in error["message"]

    async def test_rule_errors_become_error_replies(self, message_router):
        conn = await _connect(message_router)

        await _send(message_router, conn, "joinGame", nickname="Bob", gameId="1")

        assert _error(conn) == {"message": "Game not found.", "code": ErrorCode.NOT_FOUND}

    async def test_errors_go_to_sender_only(self, message_router):
        alice = await _connect(message_router)
        bob = await _connect(message_router)
        await _send(message_router, alice, "createGame", nickname="Alice")
        game_id = alice.last_message()["payload"]["gameId"]
        await _send(message_router, bob, "joinGame", nickname="Bob", gameId=game_id)
        alice.clear()

        await _send(message_router, bob, "startGame", gameId=game_id)

        assert _error(bob) == {"message": "Only the host can start the game.", "code": ErrorCode.INVALID_STATE}
        assert alice.sent_messages == []

    async def test_capacity_error_code(self, message_router):
        conn = await _connect(message_router)
        await _send(message_router, conn, "createGame", nickname="Alice")
        game_id = conn.last_message()["payload"]["gameId"]

        await _send(message_router, conn, "startGame", gameId=game_id)

        assert _error(conn)["code"] == ErrorCode.CAPACITY_ERROR

    async def test_unexpected_error_is_contained(self, message_router, session_manager, caplog):
        conn = await _connect(message_router)

        with patch.object(session_manager, "create_game", AsyncMock(side_effect=KeyError("boom"))):
            await _send(message_router, conn, "createGame", nickname="Alice")

        assert _error(conn) == {"message": INTERNAL_ERROR_MESSAGE, "code": ErrorCode.INVALID_STATE}
        assert "unexpected error handling createGame" in caplog.text

    async def test_disconnect_runs_cleanup(self, message_router, session_manager):
        conn = await _connect(message_router)
        await _send(message_router, conn, "createGame", nickname="Alice")

        await message_router.handle_disconnect(conn)

        assert session_manager.room_count == 0
        assert session_manager.connection_count == 0
