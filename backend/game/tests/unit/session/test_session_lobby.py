import pytest

from game.logic.enums import Phase
from game.logic.exceptions import InputValidationError, InvalidStateError, NotFoundError
from game.messaging.types import ServerMessageType
from game.tests.mocks import MockConnection
from game.tests.unit.session.helpers import connect, create_lobby


class TestConnect:
    async def test_assigns_player_id(self, manager):
        conn = MockConnection()

        await manager.register_connection(conn)

        assert conn.sent_messages == [
            {"type": ServerMessageType.ASSIGN_PLAYER_ID, "payload": {"playerId": conn.connection_id}},
        ]
        assert manager.connection_count == 1

    async def test_unregister(self, manager):
        conn = await connect(manager)

        manager.unregister_connection(conn)

        assert manager.connection_count == 0


class TestCreateGame:
    async def test_creator_gets_game_created(self, manager):
        conn = await connect(manager)

        room = await manager.create_game(conn, "Alice")

        message = conn.last_message()
        assert message["type"] == ServerMessageType.GAME_CREATED
        assert message["payload"]["gameId"] == room.room_id
        assert message["payload"]["players"] == [
            {"id": conn.connection_id, "nickname": "Alice", "isHost": True, "hasSubmittedClue": False},
        ]
        binding = manager.get_binding(conn.connection_id)
        assert binding.room_id == room.room_id
        assert binding.player_id == conn.connection_id

    async def test_cannot_create_twice(self, manager):
        conn = await connect(manager)
        await manager.create_game(conn, "Alice")

        with pytest.raises(InvalidStateError):
            await manager.create_game(conn, "Alice")
        assert manager.room_count == 1

    async def test_invalid_nickname_leaves_connection_unbound(self, manager):
        conn = await connect(manager)

        with pytest.raises(InputValidationError):
            await manager.create_game(conn, "")
        assert manager.get_binding(conn.connection_id) is None
        assert manager.room_count == 0


class TestJoinGame:
    async def test_joiner_gets_full_list_others_get_update(self, manager):
        room, (alice,) = await create_lobby(manager, "Alice")
        bob = await connect(manager)

        await manager.join_game(bob, room.room_id, "Bob")

        joined = bob.last_message()
        assert joined["type"] == ServerMessageType.GAME_JOINED
        assert joined["payload"]["gameId"] == room.room_id
        assert joined["payload"]["isHost"] is False
        assert [p["nickname"] for p in joined["payload"]["players"]] == ["Alice", "Bob"]
        assert bob.messages_of_type(ServerMessageType.UPDATE_LOBBY) == []

        update = alice.last_message()
        assert update["type"] == ServerMessageType.UPDATE_LOBBY
        assert update["payload"]["message"] == "Bob joined the lobby."
        assert len(update["payload"]["players"]) == 2

    async def test_unknown_room(self, manager):
        conn = await connect(manager)

        with pytest.raises(NotFoundError, match="Game not found."):
            await manager.join_game(conn, "9999", "Bob")

    async def test_duplicate_nickname_rejected(self, manager):
        room, (alice,) = await create_lobby(manager, "Alice")
        other = await connect(manager)

        with pytest.raises(InputValidationError, match="Nickname already taken in this game."):
            await manager.join_game(other, room.room_id, "Alice")
        assert room.player_names == ["Alice"]
        assert manager.get_binding(other.connection_id) is None
        assert alice.sent_messages == []

    async def test_join_started_game_rejected(self, manager):
        room, (alice, _bob) = await create_lobby(manager, "Alice", "Bob")
        await manager.start_game(alice, room.room_id)
        late = await connect(manager)

        with pytest.raises(InvalidStateError, match="Game has already started."):
            await manager.join_game(late, room.room_id, "Carol")

    async def test_already_bound_connection_cannot_join(self, manager):
        room, (alice, _bob) = await create_lobby(manager, "Alice", "Bob")
        other_room, _ = await create_lobby(manager, "Carol")

        with pytest.raises(InvalidStateError):
            await manager.join_game(alice, other_room.room_id, "Alice")


class TestLeaveLobby:
    async def test_host_leaving_transfers_host(self, manager):
        room, (alice, bob, carol) = await create_lobby(manager, "Alice", "Bob", "Carol")

        await manager.leave_game(alice)

        assert room.host.nickname == "Bob"
        lobby_updates = carol.messages_of_type(ServerMessageType.UPDATE_LOBBY)
        assert [m["payload"]["message"] for m in lobby_updates] == ["Alice left the lobby."]
        assert [p["nickname"] for p in lobby_updates[0]["payload"]["players"]] == ["Bob", "Carol"]
        assert bob.last_message()["payload"]["message"] == "You are now the host."
        assert alice.sent_messages == []

    async def test_non_host_leaving(self, manager):
        room, (alice, bob) = await create_lobby(manager, "Alice", "Bob")

        await manager.leave_game(bob)

        assert room.player_names == ["Alice"]
        assert [m["payload"]["message"] for m in alice.sent_messages] == ["Bob left the lobby."]

    async def test_last_player_leaving_destroys_room(self, manager):
        room, (alice,) = await create_lobby(manager, "Alice")

        await manager.leave_game(alice)

        assert manager.registry.get(room.room_id) is None
        assert manager.room_count == 0
        with pytest.raises(NotFoundError):
            await manager.join_game(await connect(manager), room.room_id, "Bob")

    async def test_unbound_connection_leaving_is_noop(self, manager):
        conn = await connect(manager)

        await manager.leave_game(conn)

        assert conn.sent_messages == []

    async def test_closed_connection_is_skipped(self, manager):
        room, (alice, bob, carol) = await create_lobby(manager, "Alice", "Bob", "Carol")
        await bob.close()
        assert bob.is_closed

        await manager.leave_game(alice)

        assert carol.last_message()["payload"]["message"] == "Alice left the lobby."
        assert room.phase == Phase.LOBBY


class TestRoomsInfo:
    async def test_rooms_info(self, manager):
        room, _ = await create_lobby(manager, "Alice", "Bob")

        info = manager.get_rooms_info()

        assert len(info) == 1
        assert info[0].room_id == room.room_id
        assert info[0].phase == Phase.LOBBY
        assert info[0].player_count == 2
        assert info[0].players == ["Alice", "Bob"]
