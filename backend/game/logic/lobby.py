"""Room membership: nickname validation, joining, departure and host transfer."""

from dataclasses import dataclass

from game.logic.enums import Phase
from game.logic.exceptions import InputValidationError, InvalidStateError
from game.logic.state import Player, Room

MAX_NICKNAME_LENGTH = 20

_SPACE_ORD = 0x20
_DEL_ORD = 0x7F
_FORBIDDEN_NICKNAME_CHARS = frozenset("<>")


@dataclass(frozen=True)
class Departure:
    """What changed when a player left a room."""

    player: Player
    phase: Phase
    new_host: Player | None = None


def normalize_nickname(raw: str) -> str:
    """Strip and validate a display name. Raises InputValidationError."""
    nickname = raw.strip()
    if not nickname:
        raise InputValidationError("Nickname cannot be empty.")
    if len(nickname) > MAX_NICKNAME_LENGTH:
        raise InputValidationError(f"Nickname must be at most {MAX_NICKNAME_LENGTH} characters.")
    if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD or c in _FORBIDDEN_NICKNAME_CHARS for c in nickname):
        raise InputValidationError("Nickname contains invalid characters.")
    return nickname


def add_host(room: Room, player_id: str, nickname: str) -> Player:
    """Seat the creator of an empty room as its host."""
    nickname = normalize_nickname(nickname)
    if not room.is_empty:
        raise InvalidStateError("Room already has players.")
    return _append_player(room, player_id, nickname, is_host=True)


def join_room(room: Room, player_id: str, nickname: str) -> Player:
    """Append a new player in lobby phase.

    Rejected when the game already started or the nickname (case-sensitive)
    is taken in this room.
    """
    nickname = normalize_nickname(nickname)
    if room.phase != Phase.LOBBY:
        raise InvalidStateError("Game has already started.")
    if room.get_player(player_id) is not None:
        raise InvalidStateError("You are already in this game.")
    if nickname in room.player_names:
        raise InputValidationError("Nickname already taken in this game.")
    player = _append_player(room, player_id, nickname, is_host=room.host is None)
    room.message = f"{nickname} joined the lobby."
    return player


def remove_player(room: Room, player_id: str) -> Departure | None:
    """Remove a player; transfer host to the lowest join order survivor."""
    player = room.get_player(player_id)
    if player is None:
        return None

    room.players.remove(player)
    new_host = None
    if player.is_host and room.players:
        new_host = ensure_host(room)
    return Departure(player=player, phase=room.phase, new_host=new_host)


def ensure_host(room: Room) -> Player | None:
    """Make sure exactly one player is host, picking the lowest join order."""
    if not room.players:
        return None
    hosts = [p for p in room.players if p.is_host]
    if len(hosts) == 1:
        return hosts[0]
    host = min(room.players, key=lambda p: p.join_order)
    for p in room.players:
        p.is_host = p is host
    return host


def _append_player(room: Room, player_id: str, nickname: str, *, is_host: bool) -> Player:
    player = Player(
        player_id=player_id,
        nickname=nickname,
        join_order=room.next_join_order,
        is_host=is_host,
    )
    room.next_join_order += 1
    room.players.append(player)
    room.scores[nickname] = 0
    return player
