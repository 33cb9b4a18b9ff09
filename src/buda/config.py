"""Client configuration using pydantic-settings with environment variable loading.

Settings objects are frozen: build one at startup and pass it to each client.
Nothing in the SDK reads or mutates a process-wide default.
"""

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://www.buda.com/api/v2/"


class Credentials(BaseSettings):
    """API key pair for the authenticated endpoint group."""

    model_config = SettingsConfigDict(env_prefix="BUDA_", frozen=True, extra="ignore")

    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")


class ClientSettings(BaseSettings):
    """HTTP client settings shared by public and authenticated clients."""

    model_config = SettingsConfigDict(
        env_prefix="BUDA_",
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
        extra="ignore",
    )

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0  # seconds, applied to every request
    max_retries: int = 3
    retry_backoff: float = 0.5  # seconds before the first retry
    retry_backoff_factor: float = 2.0
    pool_size: int = 10
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("base_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else value + "/"

    @field_validator("timeout", "retry_backoff")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("max_retries")
    @classmethod
    def _non_negative_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_retries must be >= 0")
        return value
