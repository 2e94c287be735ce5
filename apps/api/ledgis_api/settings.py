"""Application settings and configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./ledgis.db"
    sql_echo: bool = False
    auto_create_schema: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "development"

    # Ledger
    default_node_id: str = "node-local"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json, text

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"

    def validate_production_settings(self):
        """Validate settings for production environment."""
        env = self.environment.lower()
        if env not in ("development", "test", "dev"):
            if self.is_sqlite:
                raise ValueError(
                    "DATABASE_URL must point at a server database outside development. "
                    "SQLite cannot serialize block appends across processes."
                )
            if self.log_format not in ("json", "text"):
                raise ValueError(f"LOG_FORMAT must be 'json' or 'text', got '{self.log_format}'")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
