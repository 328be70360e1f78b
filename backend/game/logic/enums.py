from enum import StrEnum


class Phase(StrEnum):
    """Room phase state machine."""

    LOBBY = "lobby"
    CLUE_GIVING = "clueGiving"
    GUESSING = "guessing"
    ROUND_OVER = "roundOver"
    GAME_OVER = "gameOver"


class Role(StrEnum):
    NONE = "none"
    CLUE_GIVER = "clueGiver"
    GUESSER = "guesser"


class GuessResult(StrEnum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    EXHAUSTED = "exhausted"


class ErrorCode(StrEnum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    VALIDATION_ERROR = "validation_error"
    CAPACITY_ERROR = "capacity_error"
    EMPTY_BANK = "empty_bank"
    RATE_LIMITED = "rate_limited"


ACTIVE_ROUND_PHASES = frozenset({Phase.CLUE_GIVING, Phase.GUESSING})
