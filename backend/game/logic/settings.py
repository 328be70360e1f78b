"""Game rule configuration passed into the pure logic layer."""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MIN_PLAYERS = 2
DEFAULT_ROUND_ADVANCE_DELAY_SECONDS = 5.0


class GameSettings(BaseModel):
    """Rules for a room.

    ``max_rounds`` and ``target_score`` are the explicit end conditions. Both
    default to None: rounds keep advancing and ``gameOver`` is never reached.
    """

    model_config = ConfigDict(frozen=True)

    min_players: int = Field(default=DEFAULT_MIN_PLAYERS, ge=2)
    round_advance_delay_seconds: float = Field(default=DEFAULT_ROUND_ADVANCE_DELAY_SECONDS, ge=0, le=3600)
    max_rounds: int | None = Field(default=None, ge=1)
    target_score: int | None = Field(default=None, ge=1)
    abort_round_on_departure: bool = True
