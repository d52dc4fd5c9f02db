from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Application
    app_name: str = "Short Link Engine"
    app_version: str = "1.0.0"
    base_url: str = "http://127.0.0.1:8000"

    # Database (source of truth for links and click events)
    database_url: str = "sqlite:///./shortlinks.db"

    # Short code generation
    short_code_strategy: str = "random"  # Options: "random", "base62"
    short_code_length: int = 8
    min_requested_code_length: int = 3
    max_requested_code_length: int = 32  # Width of the short_code column
    max_retries: int = 5  # Attempts for generated codes before giving up
    max_ttl_days: int = 36500  # Longest allowed link lifetime (100 years)

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600  # link:{code} entries (1 hour)
    click_counter_ttl: int = 86400  # clicks:{link_id} counters (1 day)

    # Analytics
    analytics_max_days: int = 30
    recent_clicks_limit: int = 10

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
