"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel

from game.logic.enums import Phase


class RoomInfo(BaseModel):
    """Room information for the status endpoint."""

    room_id: str
    phase: Phase
    round: int
    player_count: int
    players: list[str]
