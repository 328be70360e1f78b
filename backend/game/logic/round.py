"""
Round engine: role assignment, clue collection and ordering, guess evaluation,
scoring and phase transitions.

Every function operates on a Room in place and performs no I/O. Guards run
before any mutation, so a function that raises leaves the room untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from game.logic.enums import ACTIVE_ROUND_PHASES, GuessResult, Phase, Role
from game.logic.exceptions import (
    CapacityError,
    EmptyBankError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
)
from game.logic.lobby import ensure_host
from game.logic.state import NO_CLUE_REVEALED, ClueEntry, Player, Room

if TYPE_CHECKING:
    from game.logic.lobby import Departure
    from game.logic.settings import GameSettings
    from game.logic.words import WordBank

logger = structlog.get_logger()

MAX_CLUE_LENGTH = 100
MAX_GUESS_LENGTH = 100

# ASCII letters, spaces and the German letters.
_CLUE_PATTERN = re.compile(r"[A-Za-z äöüÄÖÜß]+")
_LETTER_PATTERN = re.compile(r"[A-Za-zäöüÄÖÜß]")


@dataclass(frozen=True)
class ClueOutcome:
    all_submitted: bool


@dataclass(frozen=True)
class GuessOutcome:
    result: GuessResult
    points: int = 0
    awarded: tuple[str, ...] = ()

    @property
    def round_ended(self) -> bool:
        return self.result != GuessResult.INCORRECT


def count_letters(text: str) -> int:
    """Count alphabetic characters; spaces are excluded."""
    return len(_LETTER_PATTERN.findall(text))


def validate_clue(text: str) -> str:
    """Return the trimmed clue or raise InputValidationError."""
    clue = text.strip()
    if not clue:
        raise InputValidationError("Clue cannot be empty.")
    if len(clue) > MAX_CLUE_LENGTH:
        raise InputValidationError(f"Clue must be at most {MAX_CLUE_LENGTH} characters.")
    if not _CLUE_PATTERN.fullmatch(clue):
        raise InputValidationError("Invalid clue. Only letters, German characters (äöüß), and spaces allowed.")
    return clue


def guess_matches(guess: str, word: str) -> bool:
    return guess.strip().lower() == word.strip().lower()


def guesser_index(round_number: int, player_count: int) -> int:
    """Rotate the guesser through the join-ordered player list."""
    return (round_number - 1) % player_count


def order_clues(room: Room) -> list[ClueEntry]:
    """Stable sort of submitted clues by (letter count, join order)."""
    entries = [
        ClueEntry(
            player_id=p.player_id,
            nickname=p.nickname,
            clue=p.clue,
            length=p.clue_length,
            join_order=p.join_order,
        )
        for p in room.clue_givers
    ]
    return sorted(entries, key=lambda e: (e.length, e.join_order))


def start_round(room: Room, word_bank: WordBank, settings: GameSettings) -> None:
    """Handle a host start request from lobby (or a finished game)."""
    if room.phase not in (Phase.LOBBY, Phase.GAME_OVER):
        raise InvalidStateError("The game is already running.")
    category, word = _prepare_round(room, word_bank, settings)

    if room.phase == Phase.GAME_OVER:
        room.round_number = 0
        room.scores = {p.nickname: 0 for p in room.players}
    _begin_round(room, category, word)


def advance_round(room: Room, word_bank: WordBank, settings: GameSettings) -> bool:
    """Deferred roundOver -> clueGiving transition.

    Returns True if a new round started. When it cannot start (too few players
    or an empty word bank) the room falls back to lobby and False is returned.
    """
    if room.phase != Phase.ROUND_OVER:
        raise InvalidStateError("No finished round to advance from.")
    try:
        category, word = _prepare_round(room, word_bank, settings)
    except CapacityError as e:
        return_to_lobby(room, f"{e.message} Back to the lobby.")
        return False
    except EmptyBankError:
        return_to_lobby(room, "Error: No word categories loaded!")
        return False
    _begin_round(room, category, word)
    return True


def submit_clue(room: Room, player_id: str, text: str) -> ClueOutcome:
    player = _require_player(room, player_id)
    if room.phase != Phase.CLUE_GIVING or player.role != Role.CLUE_GIVER:
        raise InvalidStateError("Cannot submit clue now.")
    if player.has_submitted_clue:
        raise InvalidStateError("You have already submitted a clue.")
    clue = validate_clue(text)

    player.clue = clue
    player.clue_length = count_letters(clue)
    player.has_submitted_clue = True
    logger.info("clue submitted", room_id=room.room_id, player=player.nickname, length=player.clue_length)
    return ClueOutcome(all_submitted=reveal_clues_if_complete(room))


def reveal_clues_if_complete(room: Room) -> bool:
    """Move clueGiving -> guessing once every clue giver has submitted."""
    if room.phase != Phase.CLUE_GIVING:
        return False
    givers = room.clue_givers
    guesser = room.guesser
    if not givers or guesser is None or not all(p.has_submitted_clue for p in givers):
        return False

    room.ordered_clues = order_clues(room)
    room.current_clue_index = 0
    room.phase = Phase.GUESSING
    room.current_turn_player_id = guesser.player_id
    room.message = f"All clues are in! Time to guess. {guesser.nickname}, your turn to guess!"
    logger.info("all clues submitted", room_id=room.room_id, clues=len(room.ordered_clues))
    return True


def submit_guess(room: Room, player_id: str, text: str, settings: GameSettings) -> GuessOutcome:
    player = _require_player(room, player_id)
    if room.phase != Phase.GUESSING or player.role != Role.GUESSER:
        raise InvalidStateError("Cannot submit guess now.")
    guess = text.strip()
    if not guess:
        raise InputValidationError("Guess cannot be empty.")
    if len(guess) > MAX_GUESS_LENGTH:
        raise InputValidationError(f"Guess must be at most {MAX_GUESS_LENGTH} characters.")
    clue = room.current_clue
    if clue is None:
        raise InvalidStateError("No clue is currently revealed.")

    if guess_matches(guess, room.word):
        outcome = _award_correct_guess(room, player, clue)
    else:
        room.current_clue_index += 1
        next_clue = room.current_clue
        if next_clue is not None:
            room.message = f"Incorrect guess. Next clue from {next_clue.nickname}."
            outcome = GuessOutcome(result=GuessResult.INCORRECT)
        else:
            outcome = _award_exhausted_round(room, player)

    logger.info("guess evaluated", room_id=room.room_id, result=outcome.result, clue_index=room.current_clue_index)
    if outcome.round_ended and is_game_over(room, settings):
        _finish_game(room)
    return outcome


def is_game_over(room: Room, settings: GameSettings) -> bool:
    """Check the configured end condition (round cap or score cap)."""
    if settings.max_rounds is not None and room.round_number >= settings.max_rounds:
        return True
    if settings.target_score is not None:
        return any(room.scores.get(p.nickname, 0) >= settings.target_score for p in room.players)
    return False


def handle_departure(room: Room, departure: Departure, settings: GameSettings) -> None:
    """Apply the mid-round disconnect policy after a player was removed."""
    nickname = departure.player.nickname
    if departure.phase == Phase.LOBBY:
        room.message = f"{nickname} left the lobby."
        return
    if departure.phase not in ACTIVE_ROUND_PHASES or not settings.abort_round_on_departure:
        room.message = f"{nickname} disconnected."
        return

    if departure.player.role == Role.GUESSER or room.player_count < settings.min_players:
        logger.info("round aborted after departure", room_id=room.room_id, player=nickname)
        return_to_lobby(room, f"{nickname} left. Round aborted.")
        return

    room.message = f"{nickname} disconnected."
    if departure.phase == Phase.CLUE_GIVING:
        reveal_clues_if_complete(room)


def return_to_lobby(room: Room, message: str) -> None:
    """Clear all round-scoped state and go back to the lobby."""
    room.phase = Phase.LOBBY
    room.category = ""
    room.word = ""
    room.current_turn_player_id = None
    room.ordered_clues = []
    room.current_clue_index = NO_CLUE_REVEALED
    for p in room.players:
        p.reset_round()
    ensure_host(room)
    room.message = message


def _prepare_round(room: Room, word_bank: WordBank, settings: GameSettings) -> tuple[str, str]:
    if room.player_count < settings.min_players:
        raise CapacityError(f"Need at least {settings.min_players} players to start.")
    category = word_bank.random_category()
    return category, word_bank.random_word(category)


def _begin_round(room: Room, category: str, word: str) -> None:
    room.round_number += 1
    for p in room.players:
        p.reset_round()

    guesser = room.players[guesser_index(room.round_number, room.player_count)]
    for p in room.players:
        p.role = Role.GUESSER if p is guesser else Role.CLUE_GIVER

    room.category = category
    room.word = word
    room.ordered_clues = []
    room.current_clue_index = NO_CLUE_REVEALED
    room.current_turn_player_id = guesser.player_id
    room.phase = Phase.CLUE_GIVING
    room.message = f"Round {room.round_number} starting!"
    logger.info(
        "round started",
        room_id=room.room_id,
        round=room.round_number,
        category=category,
        guesser=guesser.nickname,
    )
    logger.debug("secret word chosen", room_id=room.room_id, word=word)


def _award_correct_guess(room: Room, guesser: Player, clue: ClueEntry) -> GuessOutcome:
    points = room.player_count
    room.add_score(guesser.nickname, points)
    room.add_score(clue.nickname, points)
    room.phase = Phase.ROUND_OVER
    room.message = (
        f'{guesser.nickname} guessed correctly! The word was "{room.word}". '
        f"{guesser.nickname} and {clue.nickname} get {points} points."
    )
    return GuessOutcome(result=GuessResult.CORRECT, points=points, awarded=(guesser.nickname, clue.nickname))


def _award_exhausted_round(room: Room, guesser: Player) -> GuessOutcome:
    givers = room.clue_givers
    for p in givers:
        room.add_score(p.nickname, 1)
    room.phase = Phase.ROUND_OVER
    room.message = f'{guesser.nickname} couldn\'t guess the word "{room.word}".' + "".join(
        f" {p.nickname} gets 1 point." for p in givers
    )
    return GuessOutcome(result=GuessResult.EXHAUSTED, points=1, awarded=tuple(p.nickname for p in givers))


def _finish_game(room: Room) -> None:
    room.phase = Phase.GAME_OVER
    best = max((room.scores.get(p.nickname, 0) for p in room.players), default=0)
    winners = [p.nickname for p in room.players if room.scores.get(p.nickname, 0) == best]
    room.message += f" Game over! Winner: {', '.join(winners)}."
    logger.info("game over", room_id=room.room_id, winners=winners)


def _require_player(room: Room, player_id: str) -> Player:
    player = room.get_player(player_id)
    if player is None:
        raise NotFoundError("You are not in this game.")
    return player
