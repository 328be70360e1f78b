from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from game.logic.enums import Phase
from game.logic.exceptions import InvalidStateError, NotFoundError
from game.logic.lobby import join_room, remove_player
from game.logic.round import (
    advance_round,
    handle_departure,
    start_round,
    submit_clue,
    submit_guess,
)
from game.logic.settings import GameSettings
from game.logic.views import game_state_for, player_list
from game.messaging.types import (
    AssignPlayerIdMessage,
    AssignPlayerIdPayload,
    GameCreatedMessage,
    GameCreatedPayload,
    GameJoinedMessage,
    GameJoinedPayload,
    GameStartedMessage,
    GameStatePayload,
    UpdateGameMessage,
    UpdateLobbyMessage,
    UpdateLobbyPayload,
)
from game.session.broadcast import broadcast_per_recipient, broadcast_to_connections, send_quietly
from game.session.registry import RoomRegistry
from game.session.timer_manager import RoundAdvanceScheduler
from game.session.types import RoomInfo

if TYPE_CHECKING:
    from game.logic.state import Room
    from game.logic.words import WordBank
    from game.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()

NEW_HOST_MESSAGE = "You are now the host."


@dataclass(frozen=True)
class SessionBinding:
    """Which room a connection plays in, and as which player."""

    room_id: str
    player_id: str


class SessionManager:
    """Map live connections to rooms and drive the game on their behalf.

    The player identifier of a connection is its ``connection_id``. Handlers
    raise ``GameRuleError`` subclasses for rejected requests; the caller turns
    them into error replies. Every mutation of a room, including the deferred
    round advance, runs under that room's lock.
    """

    def __init__(
        self,
        word_bank: WordBank,
        settings: GameSettings | None = None,
        registry: RoomRegistry | None = None,
    ) -> None:
        self._word_bank = word_bank
        self._settings = settings or GameSettings()
        self._registry = registry or RoomRegistry()
        self._connections: dict[str, ConnectionProtocol] = {}
        self._sessions: dict[str, SessionBinding] = {}  # connection_id -> binding
        self._room_locks: dict[str, asyncio.Lock] = {}  # room_id -> Lock
        self._scheduler = RoundAdvanceScheduler(on_fire=self._advance_round)

    @property
    def registry(self) -> RoomRegistry:
        return self._registry

    @property
    def scheduler(self) -> RoundAdvanceScheduler:
        return self._scheduler

    @property
    def settings(self) -> GameSettings:
        return self._settings

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def room_count(self) -> int:
        return self._registry.room_count

    def get_binding(self, connection_id: str) -> SessionBinding | None:
        return self._sessions.get(connection_id)

    def get_rooms_info(self) -> list[RoomInfo]:
        return [
            RoomInfo(
                room_id=room.room_id,
                phase=room.phase,
                round=room.round_number,
                player_count=room.player_count,
                players=room.player_names,
            )
            for room in self._registry.rooms()
        ]

    # --- Connection lifecycle ---

    async def register_connection(self, connection: ConnectionProtocol) -> None:
        """Track a new connection and tell it its player identifier."""
        self._connections[connection.connection_id] = connection
        message = AssignPlayerIdMessage(payload=AssignPlayerIdPayload(player_id=connection.connection_id))
        await send_quietly(connection, message.to_wire())

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)

    async def leave_game(self, connection: ConnectionProtocol) -> None:
        """Remove the connection's player from its room, if it is in one."""
        binding = self._sessions.pop(connection.connection_id, None)
        if binding is None:
            return
        lock = self._room_locks.get(binding.room_id)
        if lock is None:
            return

        async with lock:
            room = self._registry.get(binding.room_id)
            if room is None:
                return
            departure = remove_player(room, binding.player_id)
            if departure is None:
                return
            logger.info(
                "player left",
                room_id=room.room_id,
                player=departure.player.nickname,
                phase=departure.phase,
            )
            if room.is_empty:
                self._destroy_room(room.room_id)
                return

            handle_departure(room, departure, self._settings)
            if departure.new_host is not None:
                logger.info("host transferred", room_id=room.room_id, host=departure.new_host.nickname)

            if departure.phase == Phase.LOBBY:
                await self._broadcast_lobby(room)
            else:
                await self._broadcast_state(room, UpdateGameMessage)

            if departure.new_host is not None and room.phase == Phase.LOBBY:
                await self._send_to_player(
                    departure.new_host.player_id,
                    UpdateLobbyMessage(
                        payload=UpdateLobbyPayload(players=player_list(room), message=NEW_HOST_MESSAGE),
                    ).to_wire(),
                )

    async def shutdown(self) -> None:
        self._scheduler.cancel_all()

    # --- Lobby ---

    async def create_game(self, connection: ConnectionProtocol, nickname: str) -> Room:
        self._require_unbound(connection)
        room = self._registry.create_room(connection.connection_id, nickname)
        self._room_locks[room.room_id] = asyncio.Lock()
        self._bind(connection, room)

        message = GameCreatedMessage(payload=GameCreatedPayload(game_id=room.room_id, players=player_list(room)))
        await send_quietly(connection, message.to_wire())
        return room

    async def join_game(self, connection: ConnectionProtocol, game_id: str, nickname: str) -> Room:
        self._require_unbound(connection)
        async with self._lock_for(game_id):
            room = self._registry.require(game_id)
            player = join_room(room, connection.connection_id, nickname)
            self._bind(connection, room)
            logger.info("player joined", room_id=room.room_id, player=player.nickname, players=room.player_count)

            joined = GameJoinedMessage(
                payload=GameJoinedPayload(
                    game_id=room.room_id,
                    is_host=player.is_host,
                    players=player_list(room),
                ),
            )
            await send_quietly(connection, joined.to_wire())
            await self._broadcast_lobby(room, exclude_connection_id=connection.connection_id)
        return room

    async def start_game(self, connection: ConnectionProtocol, game_id: str) -> None:
        async with self._lock_for(game_id):
            room, player_id = self._require_member(connection, game_id)
            player = room.get_player(player_id)
            if player is None or not player.is_host:
                raise InvalidStateError("Only the host can start the game.")
            start_round(room, self._word_bank, self._settings)
            await self._broadcast_state(room, GameStartedMessage)

    # --- Round ---

    async def submit_clue(self, connection: ConnectionProtocol, game_id: str, clue: str) -> None:
        async with self._lock_for(game_id):
            room, player_id = self._require_member(connection, game_id)
            outcome = submit_clue(room, player_id, clue)
            if outcome.all_submitted:
                await self._broadcast_state(room, UpdateGameMessage)
            else:
                await send_quietly(connection, self._state_message(room, player_id, UpdateGameMessage))

    async def submit_guess(self, connection: ConnectionProtocol, game_id: str, guess: str) -> None:
        async with self._lock_for(game_id):
            room, player_id = self._require_member(connection, game_id)
            submit_guess(room, player_id, guess, self._settings)
            await self._broadcast_state(room, UpdateGameMessage)
            if room.phase == Phase.ROUND_OVER:
                self._scheduler.schedule(room.room_id, self._settings.round_advance_delay_seconds)

    async def _advance_round(self, room_id: str) -> None:
        lock = self._room_locks.get(room_id)
        if lock is None:
            logger.info("round advance ignored, room is gone", room_id=room_id)
            return
        async with lock:
            room = self._registry.get(room_id)
            if room is None or room.phase != Phase.ROUND_OVER:
                logger.info("round advance ignored", room_id=room_id, phase=room.phase if room else None)
                return
            if advance_round(room, self._word_bank, self._settings):
                await self._broadcast_state(room, GameStartedMessage)
            else:
                logger.warning("round advance fell back to lobby", room_id=room_id, reason=room.message)
                await self._broadcast_state(room, UpdateGameMessage)

    # --- Helpers ---

    def _lock_for(self, room_id: str) -> asyncio.Lock:
        lock = self._room_locks.get(room_id)
        if lock is None:
            raise NotFoundError("Game not found.")
        return lock

    def _require_unbound(self, connection: ConnectionProtocol) -> None:
        if connection.connection_id in self._sessions:
            raise InvalidStateError("You are already in a game.")

    def _require_member(self, connection: ConnectionProtocol, game_id: str) -> tuple[Room, str]:
        room = self._registry.require(game_id)
        binding = self._sessions.get(connection.connection_id)
        if binding is None or binding.room_id != room.room_id or room.get_player(binding.player_id) is None:
            raise NotFoundError("You are not in this game.")
        return room, binding.player_id

    def _bind(self, connection: ConnectionProtocol, room: Room) -> None:
        self._sessions[connection.connection_id] = SessionBinding(
            room_id=room.room_id,
            player_id=connection.connection_id,
        )

    def _destroy_room(self, room_id: str) -> None:
        self._scheduler.cancel(room_id)
        self._registry.delete(room_id)
        # The lock object stays alive for any waiter; they re-check the registry.
        self._room_locks.pop(room_id, None)

    def _room_connections(self, room: Room) -> list[ConnectionProtocol]:
        return [self._connections[p.player_id] for p in room.players if p.player_id in self._connections]

    async def _send_to_player(self, player_id: str, message: dict[str, Any]) -> None:
        connection = self._connections.get(player_id)
        if connection is not None:
            await send_quietly(connection, message)

    @staticmethod
    def _state_message(
        room: Room,
        viewer_id: str,
        message_cls: type[GameStartedMessage | UpdateGameMessage],
    ) -> dict[str, Any]:
        payload = GameStatePayload(game_state=game_state_for(room, viewer_id))
        return message_cls(payload=payload).to_wire()

    async def _broadcast_state(
        self,
        room: Room,
        message_cls: type[GameStartedMessage | UpdateGameMessage],
    ) -> None:
        await broadcast_per_recipient(
            self._room_connections(room),
            lambda viewer_id: self._state_message(room, viewer_id, message_cls),
        )

    async def _broadcast_lobby(self, room: Room, exclude_connection_id: str | None = None) -> None:
        message = UpdateLobbyMessage(payload=UpdateLobbyPayload(players=player_list(room), message=room.message))
        await broadcast_to_connections(
            self._room_connections(room),
            message.to_wire(),
            exclude_connection_id=exclude_connection_id,
        )
