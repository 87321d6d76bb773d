"""Inventory server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource

_STRING_LIST_FIELDS = {"cors_origins"}


class InventoryServerSettings(BaseSettings):
    model_config = {"env_prefix": "INVENTORY_"}

    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(default=5000, ge=1, le=65535)
    log_dir: str | None = "backend/logs"
    upload_dir: str = "uploads"
    cors_origins: list[str] = ["*"]
    ws_allowed_origin: str | None = None  # e.g. "http://localhost:3000"; unset disables the check

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
        return (
            init_settings,
            StringListEnvSettingsSource(settings_cls, _STRING_LIST_FIELDS),
            dotenv_settings,
            file_secret_settings,
        )
