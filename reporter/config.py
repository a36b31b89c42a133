"""Application configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

DEFAULT_WEBHOOK_USERNAME = "WNPRedux Reporter"


class ConfigurationMissing(RuntimeError):
    """Raised when required startup configuration is absent."""


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables and config.toml."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        toml_file="config.toml",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "wnp-reporter"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int | None = None
    webhook_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("webhook_url", "webhook-url"),
    )
    webhook_avatar_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("webhook_avatar_url", "webhook-avatar-url"),
    )
    webhook_username: str = Field(
        default=DEFAULT_WEBHOOK_USERNAME,
        validation_alias=AliasChoices("webhook_username", "webhook-username"),
    )
    webhook_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("webhook_timeout_seconds", "webhook-timeout-seconds"),
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment wins over config.toml so deployments can override the file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def missing_required(self) -> list[str]:
        """Names of required settings that are not set."""
        missing = []
        if self.port is None:
            missing.append("port")
        if not self.webhook_url:
            missing.append("webhook-url")
        if not self.webhook_avatar_url:
            missing.append("webhook-avatar-url")
        return missing


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    settings = Settings()
    missing = settings.missing_required()
    if missing:
        raise ConfigurationMissing(f"missing required configuration: {', '.join(missing)}")
    return settings
