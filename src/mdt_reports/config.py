"""Application configuration."""

from functools import lru_cache
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    discord_token: str | None = None
    # GUILD_IDS=123,456 or a JSON array
    guild_ids: Annotated[list[int], NoDecode] = []

    spreadsheet_id: str = ""
    google_credentials_json: str | None = None
    google_credentials_file: str | None = None

    arrest_tab: str = "Arrest Log"
    incident_tab: str = "Incident Report"
    arrest_sheet_gid: int = 0
    incident_sheet_gid: int = 0
    penalty_tab: str = "Penal Code"
    penalty_range: str = "A2:E"
    lists_tab: str = "Lists"
    locations_range: str = "A2:A"
    event_types_range: str = "B2:B"
    lookup_cache_seconds: int = 300

    draft_ttl_minutes: int = 15
    timezone: str = "UTC"
    audit_channel_id: int | None = None
    open_discussion_threads: bool = False

    port: int = 3000

    @field_validator("guild_ids", mode="before")
    @classmethod
    def split_guild_ids(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                text = text.strip("[]")
            return [part.strip() for part in text.split(",") if part.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
