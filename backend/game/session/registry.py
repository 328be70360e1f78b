"""Process-wide registry of live rooms keyed by short numeric identifiers."""

from __future__ import annotations

import random

import structlog

from game.logic.exceptions import CapacityError, NotFoundError
from game.logic.lobby import add_host
from game.logic.state import Room

logger = structlog.get_logger()

DEFAULT_ID_DIGITS = 4
DEFAULT_MAX_ROOMS = 100


class RoomRegistry:
    """Own all Room instances and generate unique room identifiers.

    Identifiers are ``id_digits``-digit numbers without a leading zero
    (1000-9999 by default), easy to read out loud and type on a phone.
    """

    def __init__(
        self,
        *,
        id_digits: int = DEFAULT_ID_DIGITS,
        max_rooms: int = DEFAULT_MAX_ROOMS,
        rng: random.Random | None = None,
    ) -> None:
        if id_digits < 1:
            raise ValueError(f"id_digits must be positive, got {id_digits}")
        self._low = 10 ** (id_digits - 1)
        self._high = 10**id_digits - 1
        id_space = self._high - self._low + 1
        if not 1 <= max_rooms <= id_space:
            raise ValueError(f"max_rooms must be 1-{id_space} for {id_digits}-digit ids, got {max_rooms}")
        self._max_rooms = max_rooms
        self._rng = rng or random.Random()  # noqa: S311
        self._rooms: dict[str, Room] = {}

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def max_rooms(self) -> int:
        return self._max_rooms

    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def get(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def require(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise NotFoundError("Game not found.")
        return room

    def create_room(self, host_id: str, nickname: str) -> Room:
        """Create a room with the creator seated as host (join order 0)."""
        if len(self._rooms) >= self._max_rooms:
            raise CapacityError("Server at capacity, try again later.")
        room = Room(room_id=self._generate_room_id())
        add_host(room, host_id, nickname)
        self._rooms[room.room_id] = room
        logger.info("room created", room_id=room.room_id, host=nickname)
        return room

    def delete(self, room_id: str) -> bool:
        room = self._rooms.pop(room_id, None)
        if room is None:
            return False
        logger.info("room destroyed", room_id=room_id)
        return True

    def _generate_room_id(self) -> str:
        while True:
            room_id = str(self._rng.randint(self._low, self._high))
            if room_id not in self._rooms:
                return room_id
