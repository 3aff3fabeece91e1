from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from hashcards.consts import DEFAULT_DB_NAME


def config_file_path() -> Path:
    return Path.home() / ".config/hashcards/config.toml"


class AppConfig(BaseSettings):
    """
    Configuration model for hashcards.
    Supports loading from:
    1. Config file (~/.config/hashcards/config.toml)
    2. Environment variables (HASHCARDS_*)
    3. Manual overrides (CLI)
    Later sources win.
    """

    model_config = SettingsConfigDict(
        env_prefix="HASHCARDS_",
        extra="ignore",
    )

    # Paths
    collection_dir: Path | None = None
    db_path: Path | None = None

    # Drill server
    host: str = "127.0.0.1"
    port: int = 8000

    # Session policy
    card_limit: int | None = Field(default=None, ge=0)
    new_card_limit: int | None = Field(default=None, ge=0)
    deck_filter: str | None = None
    shuffle: bool = True
    bury_siblings: bool = True
    answer_controls: Literal["full", "binary"] = "full"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # First source has the highest priority.
        toml_file = config_file_path()
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("collection_dir", "db_path", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/hashcards/config.toml (if exists)
    3. Environment variables (HASHCARDS_*)
    4. cli_overrides (passed from Typer, None values dropped)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.collection_dir is None:
        config.collection_dir = Path.cwd()

    if config.db_path is None:
        config.db_path = config.collection_dir / DEFAULT_DB_NAME

    return config
