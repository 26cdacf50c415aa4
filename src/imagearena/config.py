"""
Configuration management for imagearena
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Image-generation endpoint
    endpoint_url: str = "http://localhost:3000/api/image-ai"
    endpoint_timeout: float | None = None  # seconds; None waits indefinitely
    endpoint_api_key: str | None = None

    # Provider registry overlay (YAML)
    providers_config_path: str | None = None

    # Round behavior
    record_failure_timing: bool = False

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    api_reload: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    # Environment
    debug: bool = True
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "IMAGEARENA_"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()


def endpoint_headers(config: Settings | None = None) -> dict[str, str]:
    """Auth headers to send with every endpoint request."""
    config = config or settings
    headers: dict[str, str] = {}
    if config.endpoint_api_key:
        headers["Authorization"] = f"Bearer {config.endpoint_api_key}"
    return headers
