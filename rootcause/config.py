"""Configuration loading for the rootcause incident pipeline.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Report every missing credential at once before a run starts
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rootcause.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Analytics store (ClickHouse HTTP interface)
    clickhouse_host: str = Field(
        default="",
        description="ClickHouse host name",
    )
    clickhouse_port: int = Field(
        default=8443,
        description="ClickHouse HTTP(S) port",
    )
    clickhouse_username: str = Field(
        default="",
        description="ClickHouse user",
    )
    clickhouse_password: str = Field(
        default="",
        description="ClickHouse password",
    )
    clickhouse_database: str = Field(
        default="hud",
        description="ClickHouse database holding investigations",
    )
    clickhouse_secure: bool = Field(
        default=True,
        description="Use HTTPS for ClickHouse",
    )
    investigation_limit: int = Field(
        default=500,
        description="Maximum number of investigations fetched per run",
    )

    # Payload object store
    aws_region: str = Field(
        default="eu-central-1",
        description="Region tried first when fetching error payloads",
    )
    payload_fallback_regions: list[str] = Field(
        default_factory=lambda: ["eu-central-1", "us-east-1", "us-west-2"],
        description="Regions probed, in order, after the default region",
    )

    # Issue tracker
    github_token: str = Field(
        default="",
        description="GitHub personal access token for issue creation",
    )
    github_repo_owner: str = Field(
        default="code-hud",
        description="GitHub repository owner for issue creation",
    )
    github_repo_name: str = Field(
        default="hud",
        description="GitHub repository name for issue creation",
    )
    github_labels: list[str] = Field(
        default_factory=lambda: ["bug", "production", "auto-created"],
        description="Labels applied to created issues",
    )
    issue_creation_delay_seconds: float = Field(
        default=1.0,
        description="Pause between consecutive issue creations",
    )

    # Solved-issue ledger
    ledger_sqlite_path: str = Field(
        default="./solved_issues.db",
        description="SQLite file recording fingerprints that already have issues",
    )

    # Pipeline
    days_back: int = Field(
        default=3,
        description="Lookback window in days",
    )
    fetch_concurrency: int = Field(
        default=1,
        description="Investigations processed at once",
    )
    enrichment_concurrency: int = Field(
        default=1,
        description="Endpoint lookup groups processed at once",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("days_back", "investigation_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Ensure window and limit are positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("fetch_concurrency", "enrichment_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Ensure at least one worker."""
        if v < 1:
            raise ValueError("concurrency must be at least 1")
        return v

    @field_validator("clickhouse_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Ensure port is in valid range."""
        if v <= 0 or v > 65535:
            raise ValueError("clickhouse_port must be between 1 and 65535")
        return v

    @field_validator("issue_creation_delay_seconds")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        """Ensure delay is non-negative."""
        if v < 0:
            raise ValueError("issue_creation_delay_seconds must be non-negative")
        return v

    def validate_required(self) -> None:
        """Check that every credential a run needs is present.

        Raises:
            ConfigurationError: Naming all missing environment variables.
        """
        required = {
            "GITHUB_TOKEN": self.github_token,
            "CLICKHOUSE_HOST": self.clickhouse_host,
            "CLICKHOUSE_USERNAME": self.clickhouse_username,
            "CLICKHOUSE_PASSWORD": self.clickhouse_password,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
