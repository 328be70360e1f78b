"""Builders for rooms in a known state, used by logic and session tests."""

from game.logic.lobby import add_host, join_room
from game.logic.round import start_round, submit_clue
from game.logic.settings import GameSettings
from game.logic.state import Room
from game.logic.words import WordBank

SECRET_CATEGORY = "Animals"
SECRET_WORD = "Elephant"

# A single category with a single word keeps every round's secret predictable.
WORDS = {SECRET_CATEGORY: [SECRET_WORD]}


def make_room(*nicknames: str, room_id: str = "1234") -> Room:
    """Build a lobby room; the first nickname is the host. Player ids are ``p-<nickname>``."""
    room = Room(room_id=room_id)
    first, *rest = nicknames
    add_host(room, player_id(first), first)
    for nickname in rest:
        join_room(room, player_id(nickname), nickname)
    return room


def player_id(nickname: str) -> str:
    return f"p-{nickname}"


def make_word_bank() -> WordBank:
    return WordBank(WORDS)


def start_test_round(*nicknames: str, settings: GameSettings | None = None) -> Room:
    """A room in clueGiving for round 1; the first nickname is the guesser."""
    room = make_room(*nicknames)
    start_round(room, make_word_bank(), settings or GameSettings())
    return room


def submit_clues(room: Room, clues: dict[str, str]) -> None:
    """Submit clues keyed by nickname."""
    for nickname, clue in clues.items():
        submit_clue(room, player_id(nickname), clue)
