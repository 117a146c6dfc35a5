"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (COURSECONTEXT__SERVER__PORT=3000)
  2. coursecontext.yaml     (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Only ``syllabi.index_url`` and ``llm.api_key``
have no usable default; without an index URL the assistant runs without
syllabus grounding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal
from urllib.parse import urlparse

import platformdirs
from pydantic import BaseModel, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CORS_ORIGINS = [
    "https://backend.univie.ac.at",
    "https://tim.univie.ac.at",
]


def _find_config_file() -> str | None:
    """Return the path of the first coursecontext.yaml found, or None."""
    candidates = [
        Path("coursecontext.yaml"),
        Path(platformdirs.user_config_dir("coursecontext")) / "coursecontext.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = DEFAULT_CORS_ORIGINS

    @field_validator("cors_origins")
    @classmethod
    def validate_origins(cls, v: list[str]) -> list[str]:
        # Browsers send Origin as scheme://host[:port]; anything longer never matches.
        for origin in v:
            parsed = urlparse(origin)
            if (
                parsed.scheme not in ("http", "https")
                or not parsed.netloc
                or parsed.path not in ("", "/")
                or parsed.query
                or parsed.fragment
            ):
                raise ValueError(f"CORS origin must be scheme+host only: {origin!r}")
        return [origin.rstrip("/") for origin in v]


class LLMSettings(BaseModel):
    provider: str = "openai"
    api_key: SecretStr | None = None
    model: str = "gpt-4.1-mini"
    temperature: float = 0.2
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: float = 60.0


class SyllabiSettings(BaseModel):
    index_url: str | None = None


class CacheSettings(BaseModel):
    ttl_ms: int = 900_000
    single_flight: bool = True

    @property
    def ttl_seconds(self) -> float:
        return self.ttl_ms / 1000


class FetcherSettings(BaseModel):
    timeout_seconds: float = 30.0
    user_agent: str = "coursecontext/1.0"


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: COURSECONTEXT__SERVER__PORT=9090
        env_prefix="COURSECONTEXT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    timezone: str = "Europe/Vienna"
    server: ServerSettings = ServerSettings()
    llm: LLMSettings = LLMSettings()
    syllabi: SyllabiSettings = SyllabiSettings()
    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
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
