"""
Centralized Configuration Management using Pydantic Settings.

Secrets and environment-specific values come from the process
environment or a local .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase project settings used to verify caller tokens."""

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = ""
    jwt_secret: str = ""
    jwt_audience: str = "authenticated"


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = "localhost"
    port: int = 5432
    database: str = Field(alias="POSTGRES_DB", default="postgres")
    user: str = "postgres"
    password: str = ""
    min_pool_size: int = Field(default=1, ge=1, le=20)
    max_pool_size: int = Field(default=10, ge=1, le=100)

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


class MetabaseSettings(BaseSettings):
    """Metabase embedding and API settings."""

    model_config = SettingsConfigDict(env_prefix="METABASE_", populate_by_name=True)

    site_url: str = "https://graficos.proesc.com"
    embed_secret: str = Field(
        default="",
        validation_alias=AliasChoices("METABASE_EMBED_SECRET", "METABASE_TOKEN"),
    )
    embed_expiry_seconds: int = Field(default=600, ge=60, le=86400)
    api_key: str = ""
    session: str = ""
    timeout_seconds: float = 30.0


class ZendeskSettings(BaseSettings):
    """Zendesk REST API settings."""

    model_config = SettingsConfigDict(env_prefix="ZENDESK_")

    subdomain: str = "proesc"
    email: str = ""
    api_token: str = ""
    oauth_token: str = ""
    timeout_seconds: float = 30.0
    retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_wait_seconds: float = Field(default=1.0, ge=0.0, le=60.0)

    @property
    def base_url(self) -> str:
        return f"https://{self.subdomain}.zendesk.com/api/v2"

    @property
    def has_credentials(self) -> bool:
        return bool(self.subdomain) and bool(
            self.oauth_token or (self.api_token and self.email)
        )

    def ticket_url(self, ticket_id) -> str:
        return f"https://{self.subdomain}.zendesk.com/agent/tickets/{ticket_id}"


class InsightsSettings(BaseSettings):
    """Chat model used to explain dashboard data."""

    model_config = SettingsConfigDict(env_prefix="INSIGHTS_")

    provider: str = "openai"  # openai, gemini, fake
    model_name: str = ""  # Optional, provider defaults used if empty
    api_key: str = ""
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1024, ge=64, le=8192)


class CORSSettings(BaseSettings):
    """CORS configuration."""

    allow_origins: list[str] = ["*"]
    allow_credentials: bool = False
    allow_methods: list[str] = ["GET", "POST", "OPTIONS"]
    allow_headers: list[str] = [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
    ]


class AppSettings(BaseSettings):
    """
    Main application settings aggregating all configuration.

    Usage:
        settings = get_settings()
        print(settings.zendesk.base_url)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Application metadata
    app_name: str = "Prime Hub Gateway"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", alias="APP_ENV")
    log_level: Optional[str] = Field(default=None, alias="LOG_LEVEL")

    # Nested settings
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    metabase: MetabaseSettings = Field(default_factory=MetabaseSettings)
    zendesk: ZendeskSettings = Field(default_factory=ZendeskSettings)
    insights: InsightsSettings = Field(default_factory=InsightsSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> AppSettings:
    """
    Cached settings factory.

    The @lru_cache ensures settings are loaded only once.
    For testing, use dependency injection override.
    """
    return AppSettings()
