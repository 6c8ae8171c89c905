"""
Settings for the todo client.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TODO_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_url: str = Field(default="http://localhost:3000")
    geocoding_url: str = Field(
        default="https://nominatim.openstreetmap.org/search"
    )
    # Nominatim's usage policy requires an identifying User-Agent.
    geocoding_user_agent: str = Field(default="todo-client/0.1")
    request_timeout: float = Field(default=30.0)


@lru_cache(maxsize=1)
def get_client_settings() -> ClientSettings:
    return ClientSettings()
