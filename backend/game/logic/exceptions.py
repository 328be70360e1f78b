"""Typed domain exceptions for rejected room and round operations.

Every rejection raised by the logic layer is a GameRuleError subclass carrying
an ErrorCode. Operations raise before mutating any state, so the handler
boundary (MessageRouter) can convert the exception into an error reply for the
requesting connection without any rollback.
"""

from game.logic.enums import ErrorCode


class GameRuleError(Exception):
    """Base exception for rejected operations."""

    code: ErrorCode = ErrorCode.INVALID_STATE

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(GameRuleError):
    """Room or player does not exist."""

    code = ErrorCode.NOT_FOUND


class InvalidStateError(GameRuleError):
    """Operation attempted in the wrong phase or by the wrong role."""

    code = ErrorCode.INVALID_STATE


class InputValidationError(GameRuleError):
    """Malformed clue, guess or nickname, duplicate nickname, or malformed message."""

    code = ErrorCode.VALIDATION_ERROR


class CapacityError(GameRuleError):
    """Not enough players to start, or no room capacity left."""

    code = ErrorCode.CAPACITY_ERROR


class EmptyBankError(GameRuleError):
    """No word categories available when a round must start."""

    code = ErrorCode.EMPTY_BANK
