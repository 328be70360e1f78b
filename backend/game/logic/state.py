"""Room aggregate: players, phase, round data and scores for one game."""

from dataclasses import dataclass, field

from game.logic.enums import Phase, Role

NO_CLUE_REVEALED = -1


@dataclass
class Player:
    """A connected player inside a room.

    ``player_id`` is the opaque per-connection identifier. The role and the
    clue fields are round-scoped and cleared at every round start.
    """

    player_id: str
    nickname: str
    join_order: int
    is_host: bool = False
    role: Role = Role.NONE
    clue: str = ""
    clue_length: int = -1
    has_submitted_clue: bool = False

    def reset_round(self) -> None:
        self.role = Role.NONE
        self.clue = ""
        self.clue_length = -1
        self.has_submitted_clue = False


@dataclass(frozen=True)
class ClueEntry:
    player_id: str
    nickname: str
    clue: str
    length: int
    join_order: int


@dataclass
class Room:
    room_id: str
    players: list[Player] = field(default_factory=list)  # join order
    phase: Phase = Phase.LOBBY
    round_number: int = 0
    category: str = ""
    word: str = ""
    current_turn_player_id: str | None = None
    ordered_clues: list[ClueEntry] = field(default_factory=list)
    current_clue_index: int = NO_CLUE_REVEALED
    scores: dict[str, int] = field(default_factory=dict)  # nickname -> score
    message: str = ""
    next_join_order: int = 0

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def player_names(self) -> list[str]:
        return [p.nickname for p in self.players]

    @property
    def host(self) -> Player | None:
        return next((p for p in self.players if p.is_host), None)

    @property
    def guesser(self) -> Player | None:
        return next((p for p in self.players if p.role == Role.GUESSER), None)

    @property
    def clue_givers(self) -> list[Player]:
        return [p for p in self.players if p.role == Role.CLUE_GIVER]

    @property
    def current_clue(self) -> ClueEntry | None:
        """The clue revealed to the guesser, or None when none is showing."""
        if 0 <= self.current_clue_index < len(self.ordered_clues):
            return self.ordered_clues[self.current_clue_index]
        return None

    def get_player(self, player_id: str) -> Player | None:
        return next((p for p in self.players if p.player_id == player_id), None)

    def get_player_by_name(self, nickname: str) -> Player | None:
        return next((p for p in self.players if p.nickname == nickname), None)

    def add_score(self, nickname: str, points: int) -> None:
        self.scores[nickname] = self.scores.get(nickname, 0) + points
