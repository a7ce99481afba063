from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class ConfigurationError(RuntimeError):
    """Raised when the server cannot start with the current configuration."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="IMAGEN_MCP__",
        extra="ignore",
        populate_by_name=True,
    )

    gemini_api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("IMAGEN_MCP__GEMINI_API_KEY", "GEMINI_API_KEY"),
        description="API key forwarded to the Gemini image generation service.",
    )
    model: str = Field(
        "imagen-4.0-generate-001", description="Upstream image generation model."
    )
    base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Gemini API.",
    )
    output_dir: str = Field(
        "/tmp", description="Directory where generated images are written."
    )
    log_level: str = Field("INFO", description="Diagnostic log level.")


settings = Settings()


def resolve_api_key(explicit: Optional[str] = None, config: Optional[Settings] = None) -> str:
    """Return the credential to use, preferring an in-process value over the environment."""
    if explicit:
        return explicit
    config = config or settings
    if config.gemini_api_key:
        return config.gemini_api_key
    raise ConfigurationError("GEMINI_API_KEY environment variable is required")
