from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from game.logic.enums import ErrorCode
from game.logic.exceptions import GameRuleError
from game.messaging.types import (
    CreateGameMessage,
    ErrorMessage,
    ErrorPayload,
    JoinGameMessage,
    StartGameMessage,
    SubmitClueMessage,
    SubmitGuessMessage,
    describe_validation_error,
    parse_client_message,
)
from game.session.broadcast import send_quietly

if TYPE_CHECKING:
    from game.messaging.protocol import ConnectionProtocol
    from game.session.manager import SessionManager

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Something went wrong on the server."


def error_message(message: str, code: ErrorCode) -> dict[str, Any]:
    return ErrorMessage(payload=ErrorPayload(message=message, code=code)).to_wire()


class MessageRouter:
    """
    Routes incoming messages to appropriate handlers.

    This is the handler boundary: every rejected request becomes an error
    reply to the sender only, and nothing raised by a handler escapes to the
    transport. This class can be tested without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except ValidationError as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await self.send_error(connection, describe_validation_error(e), ErrorCode.VALIDATION_ERROR)
            return
        except GameRuleError as e:
            logger.warning("rejected message from %s: %s", connection.connection_id, e.message)
            await self.send_error(connection, e.message, e.code)
            return

        try:
            await self._dispatch(connection, message)
        except GameRuleError as e:
            logger.info("%s rejected for %s: %s", message.type, connection.connection_id, e.message)
            await self.send_error(connection, e.message, e.code)
        except Exception:
            logger.exception("unexpected error handling %s for %s", message.type, connection.connection_id)
            await self.send_error(connection, INTERNAL_ERROR_MESSAGE, ErrorCode.INVALID_STATE)

    async def _dispatch(self, connection: ConnectionProtocol, message: Any) -> None:
        manager = self._session_manager
        if isinstance(message, CreateGameMessage):
            await manager.create_game(connection, message.payload.nickname)
        elif isinstance(message, JoinGameMessage):
            await manager.join_game(connection, message.payload.game_id, message.payload.nickname)
        elif isinstance(message, StartGameMessage):
            await manager.start_game(connection, message.payload.game_id)
        elif isinstance(message, SubmitClueMessage):
            await manager.submit_clue(connection, message.payload.game_id, message.payload.clue)
        elif isinstance(message, SubmitGuessMessage):
            await manager.submit_guess(connection, message.payload.game_id, message.payload.guess)

    async def send_error(self, connection: ConnectionProtocol, message: str, code: ErrorCode) -> None:
        await send_quietly(connection, error_message(message, code))

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        try:
            await self._session_manager.leave_game(connection)
        finally:
            self._session_manager.unregister_connection(connection)
