"""Lobby server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class LobbyServerSettings(BaseSettings):
    model_config = {"env_prefix": "LOBBY_"}

    log_dir: str = "backend/logs/lobby"
    cors_origins: list[str] = []
    database_path: str = "backend/storage/vocab_duel.db"
    # YAML vocabulary file imported on startup when the content table is empty
    vocab_file: str | None = "backend/config/vocab.yaml"

    lobby_ttl_seconds: int = Field(default=300, ge=10)
    inactive_threshold_hours: float = Field(default=12, gt=0)
    sweep_interval_seconds: float = Field(default=30, gt=0)

    maintenance_key: str | None = None
    maintenance_allow_local: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
