# httpweave/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HttpWeaveSettings(BaseSettings):
    """
    Manages user-configurable settings for an httpweave client, loaded from
    environment variables (prefixed with ``HTTPWEAVE_``) or a .env file.

    Settings provide the client-wide defaults; every individual request can
    still override its own timeout and redirect behaviour fluently.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),
        env_file_encoding="utf-8",
        env_prefix="HTTPWEAVE_",
        extra="ignore",
        case_sensitive=False,
    )

    user_agent: str = Field(
        default="httpweave/0.1.0",
        description="User-Agent header sent when a request does not set one",
    )
    default_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Timeout in seconds applied to requests that do not set one; None disables it",
    )
    follow_redirects: bool = Field(
        default=False, description="Follow redirects unless a request says otherwise"
    )
    max_redirects: int = Field(
        default=20,
        ge=0,
        description="Maximum number of redirect hops followed for a single call chain",
    )
    verify_ssl: bool = Field(
        default=True, description="Verify TLS certificates with the certifi bundle"
    )
    log_level: str = Field(
        default="INFO",
        description="Level used by configure_logging when none is passed",
    )


@lru_cache
def get_settings() -> HttpWeaveSettings:
    """
    Provides access to the httpweave settings.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached for performance.

    Returns:
        HttpWeaveSettings: The settings instance.
    """
    return HttpWeaveSettings()
