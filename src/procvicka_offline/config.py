"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (PROCVICKA__GENERATION__VERSION=v4)
  3. procvicka.yaml         (searched in cwd, then the platform config dir)
  4. Hardcoded defaults

The config file is optional. Every worker receives its own ``Settings``
instance, so two cache generations can live side by side in one process.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal
from urllib.parse import urljoin

import platformdirs
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_APP_DIR_NAME = "procvicka"
_DEFAULT_DATA_DIR = platformdirs.user_data_dir(_APP_DIR_NAME)
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "offline-cache.db")


def _find_config_file() -> str | None:
    """Return the path of the first procvicka.yaml found, or None."""
    candidates = [
        Path("procvicka.yaml"),
        Path(platformdirs.user_config_dir(_APP_DIR_NAME)) / "procvicka.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class OriginSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Precache paths and the fallback root document resolve against this URL.
    base_url: str = "http://localhost:8080"

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must use http or https scheme")
        return v.rstrip("/") + "/"


class GenerationSettings(BaseModel):
    """Cache generation: the version tag shared by the three store names."""

    model_config = ConfigDict(extra="forbid")

    app_name: str = "procvicka"
    version: str = "v3"

    @field_validator("app_name", "version")
    @classmethod
    def validate_name_part(cls, v: str) -> str:
        if not re.match(r"^[a-z0-9][a-z0-9_.]*$", v):
            raise ValueError(f"Invalid cache name component: {v!r}")
        return v

    @property
    def static_store(self) -> str:
        return f"{self.app_name}-static-{self.version}"

    @property
    def dynamic_store(self) -> str:
        return f"{self.app_name}-dynamic-{self.version}"

    @property
    def image_store(self) -> str:
        return f"{self.app_name}-images-{self.version}"

    @property
    def store_names(self) -> frozenset[str]:
        """Allow-list of store names kept on activation."""
        return frozenset({self.static_store, self.dynamic_store, self.image_store})


class PrecacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    static: list[str] = ["/", "/manifest.json", "/favicon.ico"]
    images: list[str] = [
        "/public/images/happy-kid.png",
        "/public/images/stars.png",
        "/public/images/try-again.png",
    ]
    # Listed for completeness; fonts are cached lazily through the dynamic store.
    font_origins: list[str] = [
        "https://fonts.googleapis.com",
        "https://fonts.gstatic.com",
    ]


class FetcherSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timeout_seconds: float = 30.0
    user_agent: str = "procvicka-offline/0.3"

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v


class StorageSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: str = _DEFAULT_DB_PATH


class NotificationSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = "Procvička"
    default_body: str = "Nová zpráva z Procvičky!"
    icon: str = "/favicon.ico"
    badge: str = "/favicon.ico"
    tag: str = "procvicka-notification"
    open_title: str = "Otevřít aplikaci"
    close_title: str = "Zavřít"
    start_url: str = "/"


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PROCVICKA__STORAGE__BACKEND=memory
        env_prefix="PROCVICKA__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    origin: OriginSettings = OriginSettings()
    generation: GenerationSettings = GenerationSettings()
    precache: PrecacheSettings = PrecacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    storage: StorageSettings = StorageSettings()
    notifications: NotificationSettings = NotificationSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )

    def resolve(self, path: str) -> str:
        """Resolve a site-relative path against the configured origin."""
        return urljoin(self.origin.base_url, path)
