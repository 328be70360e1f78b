"""Game server configuration via environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from game.logic.settings import GameSettings
from shared.validators import StringListEnvSettingsSource, empty_to_none, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource

DEFAULT_WORDS_FILE = Path(__file__).resolve().parent.parent / "data" / "words.csv"


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "GAME_"}

    max_capacity: int = Field(default=100, ge=1)
    cors_origins: list[str] = ["http://localhost:3000"]
    words_file: str = Field(default=str(DEFAULT_WORDS_FILE), min_length=1)
    log_dir: str | None = None
    static_dir: str | None = None
    room_id_digits: int = Field(default=4, ge=2, le=9)

    min_players: int = Field(default=2, ge=2)
    round_advance_delay_seconds: float = Field(default=5.0, ge=0, le=3600)
    max_rounds: int | None = Field(default=None, ge=1)
    target_score: int | None = Field(default=None, ge=1)
    abort_round_on_departure: bool = True

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    @field_validator("log_dir", "static_dir", "max_rounds", "target_score", mode="before")
    @classmethod
    def validate_optional(cls, v: object) -> object:
        return empty_to_none(v)

    @model_validator(mode="after")
    def _check_capacity_fits_room_ids(self) -> Self:
        id_space = 9 * 10 ** (self.room_id_digits - 1)
        if self.max_capacity > id_space:
            msg = (
                f"max_capacity {self.max_capacity} exceeds the {id_space} "
                f"available {self.room_id_digits}-digit room ids"
            )
            raise ValueError(msg)
        return self

    def to_game_settings(self) -> GameSettings:
        return GameSettings(
            min_players=self.min_players,
            round_advance_delay_seconds=self.round_advance_delay_seconds,
            max_rounds=self.max_rounds,
            target_score=self.target_score,
            abort_round_on_departure=self.abort_round_on_departure,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
