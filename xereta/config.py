"""
Runtime configuration.

Uses ``pydantic_settings.BaseSettings`` so every field can be set from
an ``XERETA_``-prefixed environment variable (or a ``.env`` file loaded
by the app entry point).
"""

from __future__ import annotations

import functools
from typing import Literal

import pydantic
import pydantic_settings

DEFAULT_BLOCKLIST_URL = "https://big.oisd.nl/"
DEFAULT_COOKIE_DATABASE_URL = "https://cdn.jsdelivr.net/gh/jkwakman/Open-Cookie-Database/open-cookie-database.csv"


class Settings(pydantic_settings.BaseSettings):
    """Analyzer settings.

    Attributes:
        blocklist_url: ABP-format domain blocklist.
        cookie_database_url: Open Cookie Database CSV.
        self_origin: Host of the analyzer itself; requests to it are
            never counted as third-party.  Empty disables the check.
        navigation_timeout_ms: Page navigation timeout.
        settle_ms: Extra wait after load so late trackers fire.
        download_timeout_s: Per-dataset download timeout.
        headless: Run the browser headless.
        host: API bind address.
        port: API port.
        environment: ``development`` enables auto-reload.
    """

    model_config = pydantic_settings.SettingsConfigDict(env_prefix="XERETA_", extra="ignore")

    blocklist_url: str = DEFAULT_BLOCKLIST_URL
    cookie_database_url: str = DEFAULT_COOKIE_DATABASE_URL
    self_origin: str = ""
    navigation_timeout_ms: int = pydantic.Field(default=60000, gt=0)
    settle_ms: int = pydantic.Field(default=3000, ge=0)
    download_timeout_s: float = pydantic.Field(default=30.0, gt=0)
    headless: bool = True
    host: str = "0.0.0.0"
    port: int = 3001
    environment: Literal["development", "production"] = "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings built once from the environment."""
    return Settings()
