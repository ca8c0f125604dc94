import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemora.domain.constants import REVIEW_HISTORY_LIMIT


def _config_files() -> list[Path]:
    return [
        Path.home() / ".config/mnemora/config.toml",
        Path.home() / ".mnemora.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for mnemora.
    Supports loading from:
    1. Environment variables (MNEMORA_*)
    2. Config file (~/.config/mnemora/config.toml)
    3. Manual overrides (CLI / HTTP request)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMORA_",
        extra="ignore",
    )

    # Paths
    data_file: Path = Field(default_factory=lambda: Path.home() / ".config/mnemora/progress.json")
    catalog_file: Path | None = None

    # Storage
    backend: Literal["auto", "json", "memory"] = "auto"
    history_limit: int = Field(default=REVIEW_HISTORY_LIMIT, ge=0)

    # Server
    host: str = "127.0.0.1"
    port: int = 8787

    # Logging: 0 warnings, 1 info, 2+ debug
    verbose: int = Field(default=0, ge=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing config file wins
        toml_file = next((f for f in _config_files() if f.exists()), None)

        # Later sources have lower priority: overrides > env > file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("catalog_file", mode="before")
    @classmethod
    def resolve_catalog(cls, v: Any) -> Path | None:
        if not v:
            return None
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mnemora/config.toml (if exists)
    3. Environment variables (MNEMORA_*)
    4. cli_overrides (passed from Typer or the HTTP layer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)


def log_level(verbose: int) -> int:
    """Map a verbosity count to a logging level."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING
