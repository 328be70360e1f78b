from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

from game.logic.enums import ErrorCode
from game.logic.exceptions import InputValidationError
from game.logic.views import GameStateView, PlayerInfo

_MAX_GAME_ID_LENGTH = 20
_MAX_RAW_NICKNAME_LENGTH = 100
_MAX_RAW_TEXT_LENGTH = 500


class ClientMessageType(StrEnum):
    CREATE_GAME = "createGame"
    JOIN_GAME = "joinGame"
    START_GAME = "startGame"
    SUBMIT_CLUE = "submitClue"
    SUBMIT_GUESS = "submitGuess"


class ServerMessageType(StrEnum):
    ASSIGN_PLAYER_ID = "assignPlayerId"
    GAME_CREATED = "gameCreated"
    GAME_JOINED = "gameJoined"
    UPDATE_LOBBY = "updateLobby"
    GAME_STARTED = "gameStarted"
    UPDATE_GAME = "updateGame"
    ERROR = "error"


def _coerce_game_id(value: object) -> object:
    # Browser clients may send the numeric room id as a number.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


GameId = Annotated[
    str,
    BeforeValidator(_coerce_game_id),
    Field(min_length=1, max_length=_MAX_GAME_ID_LENGTH),
]


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateGamePayload(_Payload):
    nickname: str = Field(max_length=_MAX_RAW_NICKNAME_LENGTH)


class JoinGamePayload(_Payload):
    nickname: str = Field(max_length=_MAX_RAW_NICKNAME_LENGTH)
    game_id: GameId = Field(alias="gameId")


class StartGamePayload(_Payload):
    game_id: GameId = Field(alias="gameId")


class SubmitCluePayload(_Payload):
    game_id: GameId = Field(alias="gameId")
    clue: str = Field(max_length=_MAX_RAW_TEXT_LENGTH)


class SubmitGuessPayload(_Payload):
    game_id: GameId = Field(alias="gameId")
    guess: str = Field(max_length=_MAX_RAW_TEXT_LENGTH)


class CreateGameMessage(BaseModel):
    type: Literal[ClientMessageType.CREATE_GAME] = ClientMessageType.CREATE_GAME
    payload: CreateGamePayload


class JoinGameMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_GAME] = ClientMessageType.JOIN_GAME
    payload: JoinGamePayload


class StartGameMessage(BaseModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME
    payload: StartGamePayload


class SubmitClueMessage(BaseModel):
    type: Literal[ClientMessageType.SUBMIT_CLUE] = ClientMessageType.SUBMIT_CLUE
    payload: SubmitCluePayload


class SubmitGuessMessage(BaseModel):
    type: Literal[ClientMessageType.SUBMIT_GUESS] = ClientMessageType.SUBMIT_GUESS
    payload: SubmitGuessPayload


ClientMessage = Annotated[
    CreateGameMessage | JoinGameMessage | StartGameMessage | SubmitClueMessage | SubmitGuessMessage,
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)
_CLIENT_MESSAGE_TYPES = frozenset(ClientMessageType)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Validate a raw inbound record into a typed ClientMessage.

    Unknown message types are rejected with InputValidationError; schema
    violations surface as pydantic ValidationError.
    """
    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in _CLIENT_MESSAGE_TYPES:
        raise InputValidationError(f"Unknown message type: {message_type}")
    return _client_message_adapter.validate_python(data)


def describe_validation_error(error: ValidationError) -> str:
    """Render a pydantic ValidationError as one plain-text line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"] if loc not in _CLIENT_MESSAGE_TYPES)
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "Invalid message. " + "; ".join(parts)


# ---------------------------------------------------------------------------
# Server -> client messages
# ---------------------------------------------------------------------------


class ServerMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)


class AssignPlayerIdPayload(_Payload):
    player_id: str = Field(serialization_alias="playerId")


class AssignPlayerIdMessage(ServerMessage):
    type: Literal[ServerMessageType.ASSIGN_PLAYER_ID] = ServerMessageType.ASSIGN_PLAYER_ID
    payload: AssignPlayerIdPayload


class GameCreatedPayload(_Payload):
    game_id: str = Field(serialization_alias="gameId")
    players: list[PlayerInfo]


class GameCreatedMessage(ServerMessage):
    type: Literal[ServerMessageType.GAME_CREATED] = ServerMessageType.GAME_CREATED
    payload: GameCreatedPayload


class GameJoinedPayload(_Payload):
    game_id: str = Field(serialization_alias="gameId")
    is_host: bool = Field(serialization_alias="isHost")
    players: list[PlayerInfo]


class GameJoinedMessage(ServerMessage):
    type: Literal[ServerMessageType.GAME_JOINED] = ServerMessageType.GAME_JOINED
    payload: GameJoinedPayload


class UpdateLobbyPayload(_Payload):
    players: list[PlayerInfo]
    message: str


class UpdateLobbyMessage(ServerMessage):
    type: Literal[ServerMessageType.UPDATE_LOBBY] = ServerMessageType.UPDATE_LOBBY
    payload: UpdateLobbyPayload


class GameStatePayload(_Payload):
    game_state: GameStateView = Field(serialization_alias="gameState")


class GameStartedMessage(ServerMessage):
    type: Literal[ServerMessageType.GAME_STARTED] = ServerMessageType.GAME_STARTED
    payload: GameStatePayload


class UpdateGameMessage(ServerMessage):
    type: Literal[ServerMessageType.UPDATE_GAME] = ServerMessageType.UPDATE_GAME
    payload: GameStatePayload


class ErrorPayload(_Payload):
    message: str
    code: ErrorCode


class ErrorMessage(ServerMessage):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    payload: ErrorPayload
