"""
Configuration Management for LedgerDash

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here, so every external dependency
(the database, the selection file) is visible in one place and is
validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational data store configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="LEDGERDASH_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    url: str = Field(
        default="sqlite:///ledgerdash.db",
        description="SQLAlchemy database URL"
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )
    
    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Reject obviously broken URLs before SQLAlchemy does."""
        if "://" not in v:
            raise ValueError(f"Not a database URL: {v}")
        return v
    
    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")
    
    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and (self.url in ("sqlite://", "sqlite:///") or ":memory:" in self.url)
    
    @property
    def safe_url(self) -> str:
        """URL with any password masked, for logs."""
        scheme, sep, rest = self.url.partition("://")
        if "@" not in rest:
            return self.url
        credentials, _, host = rest.rpartition("@")
        user = credentials.split(":", 1)[0]
        return f"{scheme}{sep}{user}:***@{host}"


class AppSettings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from environment variables and .env file.
    """
    
    model_config = SettingsConfigDict(
        env_prefix="LEDGERDASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )
    
    # API server
    api_host: str = Field(
        default="127.0.0.1",
        description="Interface the API server binds to"
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port the API server listens on"
    )
    
    # Current-account selection persistence
    selection_file: str = Field(
        default=".ledgerdash/selection.json",
        description="Where the dashboard remembers the selected account"
    )
    
    # Dashboard
    top_categories_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many categories the dashboard ranks"
    )
    recent_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many transactions the dashboard lists"
    )
    currency_symbol: str = Field(
        default="R$",
        description="Symbol used when formatting amounts for display"
    )
    
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
    
    @property
    def selection_path(self) -> Path:
        return Path(self.selection_file).expanduser()


class Settings(BaseSettings):
    """
    Root settings container.
    
    Aggregates all sub-settings for easy access.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}, plus an
    "<name>_error" entry for every section that failed.
    """
    results = {}
    
    settings = get_settings()
    
    for name in ("database", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
