"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BotSettings(BaseSettings):
    """Discord bot configuration."""

    name: str = Field(default="TarkovGuide", description="Bot display name")
    command_prefix: str = Field(default="!", description="Command prefix for bot commands")
    token: str = Field(default="", description="Discord bot token")
    allowed_channel_ids: list[int] = Field(
        default_factory=list,
        description="If non-empty, bot only responds in these channel IDs. "
                    "Set via BOT__ALLOWED_CHANNEL_IDS='[123456,789012]'",
    )
    dev_guild_id: int | None = Field(
        default=None,
        description="If set, syncs slash commands to this guild instantly (dev mode). "
                    "If None, syncs globally (up to 1 hour propagation).",
    )
    max_objective_embeds: int = Field(
        default=6,
        description="Objective embeds per guide reply. Discord allows 10 embeds per "
                    "message and the overview, guide and rewards embeds take three.",
    )


class LLMSettings(BaseSettings):
    """LLM API configuration."""

    model: str = Field(
        default="gemini/gemini-2.5-flash",
        description="LiteLLM model string, e.g. 'gemini/gemini-2.5-flash', "
                    "'anthropic/claude-3-5-sonnet-20241022', 'ollama/llama3'. The provider "
                    "prefix tells LiteLLM which API to route the request to.",
    )
    max_tokens: int = Field(default=4096, description="Maximum tokens in response")
    temperature: float = Field(default=0.4, description="Sampling temperature")
    api_key: str = Field(default="", description="API key for the model's provider")

    model_config = SettingsConfigDict(env_prefix="LLM_")


class TarkovAPISettings(BaseSettings):
    """tarkov.dev GraphQL API configuration."""

    url: str = Field(
        default="https://api.tarkov.dev/graphql", description="GraphQL endpoint"
    )
    timeout: float = Field(default=15.0, description="Request timeout in seconds")
    search_limit: int = Field(
        default=5, description="Maximum number of items returned by a name search"
    )

    model_config = SettingsConfigDict(env_prefix="TARKOV_API_")


class EnrichmentSettings(BaseSettings):
    """Quest guide enrichment (cache, generation retry, wiki scraping) configuration."""

    # Quest text rarely changes and generation is the expensive step,
    # so cached guides live for a week.
    cache_ttl_seconds: int = Field(default=604800, description="Default cache entry TTL")
    cache_max_entries: int = Field(default=500, description="Maximum cached quests")
    cache_check_period_seconds: float = Field(
        default=3600.0, description="Interval between expired-entry sweeps"
    )

    max_attempts: int = Field(default=2, ge=1, description="Model call attempts per guide")
    retry_delay_seconds: float = Field(
        default=1.0, ge=0.0, description="Delay between model call attempts"
    )

    scrape_timeout_seconds: float = Field(
        default=5.0, gt=0.0, description="Hard timeout for fetching a quest's wiki page"
    )
    min_image_size: int = Field(
        default=50, description="Images declaring a smaller width or height are skipped"
    )
    relevance_threshold: float = Field(
        default=0.1, description="Wiki images scoring above this are always kept"
    )
    max_wiki_images: int = Field(default=10, description="Wiki images kept per quest")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; TarkovGuide/0.1)",
        description="User-Agent header sent when scraping wiki pages",
    )

    model_config = SettingsConfigDict(env_prefix="ENRICHMENT_")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    bot: BotSettings = Field(default_factory=BotSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    tarkov_api: TarkovAPISettings = Field(default_factory=TarkovAPISettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
