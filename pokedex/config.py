"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Upstream URLs come from environment variables (never hardcoded); missing
      or empty URLs fail validation at startup
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every non-URL setting: only the two upstreams are required
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Listener
    host: str = "0.0.0.0"  # nosec B104
    port: int = Field(8080, ge=0, le=65535)
    shutdown_timeout_seconds: float = Field(5.0, gt=0)

    # Upstreams
    pokemon_api_url: str
    translation_api_url: str

    @field_validator("pokemon_api_url", "translation_api_url")
    @classmethod
    def require_base_url(cls, v: str) -> str:
        """Reject blanks; strip the trailing slash so paths join cleanly."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v.rstrip("/")

    yoda_translation_slug: str = "yodish"
    shakespeare_translation_slug: str = "shakespeare-english"

    # Outbound HTTP
    http_connect_timeout_seconds: float = 5.0
    http_read_timeout_seconds: float = 10.0
    http_total_timeout_seconds: float = 30.0
    http_max_connections: int = 100
    http_keepalive_expiry_seconds: float = 90.0

    # Per-request deadline for the species pipelines; None = unbounded
    request_timeout_seconds: float | None = Field(None, gt=0)

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
