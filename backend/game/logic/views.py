"""
Per-recipient views of a room.

A snapshot is computed for one viewer and never shared verbatim: it carries the
viewer's own role and clue, and the secret word only when that viewer may see it.
"""

from pydantic import BaseModel, ConfigDict, Field

from game.logic.enums import Phase, Role
from game.logic.state import Room

_WORD_REVEAL_PHASES = frozenset({Phase.ROUND_OVER, Phase.GAME_OVER})


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PlayerInfo(_WireModel):
    """Public player info. Never carries another player's clue or role."""

    id: str
    nickname: str
    is_host: bool = Field(serialization_alias="isHost")
    has_submitted_clue: bool = Field(default=False, serialization_alias="hasSubmittedClue")


class GameStateView(_WireModel):
    game_id: str = Field(serialization_alias="gameId")
    players: list[PlayerInfo]
    scores: dict[str, int]
    phase: Phase
    round: int
    category: str
    current_turn_player_id: str | None = Field(serialization_alias="currentTurnPlayerId")
    current_turn_player_nickname: str | None = Field(serialization_alias="currentTurnPlayerNickname")
    message: str
    current_clue: str | None = Field(default=None, serialization_alias="currentClue")
    current_clue_giver_nickname: str | None = Field(default=None, serialization_alias="currentClueGiverNickname")
    # Viewer-specific
    player_id: str | None = Field(default=None, serialization_alias="playerId")
    role: Role | None = None
    word: str | None = None
    clue: str | None = None


def player_list(room: Room) -> list[PlayerInfo]:
    return [
        PlayerInfo(
            id=p.player_id,
            nickname=p.nickname,
            is_host=p.is_host,
            has_submitted_clue=p.has_submitted_clue,
        )
        for p in room.players
    ]


def game_state_for(room: Room, viewer_id: str | None = None) -> GameStateView:
    """Build the game-state snapshot as seen by ``viewer_id``."""
    turn_player = room.get_player(room.current_turn_player_id) if room.current_turn_player_id else None
    view = GameStateView(
        game_id=room.room_id,
        players=player_list(room),
        scores=dict(room.scores),
        phase=room.phase,
        round=room.round_number,
        category=room.category,
        current_turn_player_id=room.current_turn_player_id,
        current_turn_player_nickname=turn_player.nickname if turn_player else None,
        message=room.message,
    )

    if room.phase == Phase.GUESSING:
        clue = room.current_clue
        if clue is not None:
            view.current_clue = clue.clue
            view.current_clue_giver_nickname = clue.nickname

    viewer = room.get_player(viewer_id) if viewer_id else None
    if viewer is None:
        return view

    view.player_id = viewer.player_id
    view.role = viewer.role
    if room.phase in _WORD_REVEAL_PHASES or (room.phase == Phase.CLUE_GIVING and viewer.role == Role.CLUE_GIVER):
        view.word = room.word
    if viewer.clue:
        view.clue = viewer.clue
    return view
