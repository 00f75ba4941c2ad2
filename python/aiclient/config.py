"""Client configuration and environment settings.

Environment Configuration:
    AI_PROVIDER / PROVIDER: "openai" | "gemini" (auto-detected from keys if unset)
    OPENAI_API_KEY: OpenAI (or OpenAI-compatible) API key
    GEMINI_API_KEY / GOOGLE_AI_API_KEY: Gemini API key
    AI_MODEL / MODEL: Model override (provider default otherwise)
    AI_TEMPERATURE: Default sampling temperature
    AI_MAX_TOKENS: Default max output tokens
    AI_TIMEOUT: Per-attempt timeout in milliseconds
    AI_MAX_RETRIES: Retry count after the initial attempt
    AI_RETRY_DELAY: Base backoff delay in milliseconds
    AI_BASE_URL: Base URL override for OpenAI-compatible or proxied endpoints

Note: Settings never fails for missing provider or key. AIClient.from_env()
reports that as a ConfigurationError so every construction failure has one
source.
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_S = 1.0
DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True)
class ClientConfig:
    """Explicit client configuration.

    Durations are in seconds. The client fills in ``model`` from the
    provider default when it is not given; nothing else changes after
    construction.
    """

    provider: str
    api_key: str
    model: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = None
    base_url: str | None = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_s: float = DEFAULT_RETRY_DELAY_S

    def __repr__(self) -> str:
        return (
            f"ClientConfig(provider={self.provider!r}, api_key='***', "
            f"model={self.model!r}, temperature={self.temperature!r}, max_tokens={self.max_tokens!r}, "
            f"base_url={self.base_url!r}, timeout_s={self.timeout_s!r}, "
            f"max_retries={self.max_retries!r}, retry_delay_s={self.retry_delay_s!r})"
        )


class Settings(BaseSettings):
    """Client settings loaded from environment variables (and ``.env``)."""

    ai_provider: str | None = Field(
        default=None, validation_alias=AliasChoices("AI_PROVIDER", "PROVIDER")
    )
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    gemini_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_AI_API_KEY")
    )
    ai_model: str | None = Field(default=None, validation_alias=AliasChoices("AI_MODEL", "MODEL"))
    ai_temperature: float | None = Field(default=None, validation_alias="AI_TEMPERATURE")
    ai_max_tokens: int | None = Field(default=None, validation_alias="AI_MAX_TOKENS")
    ai_timeout_ms: int | None = Field(default=None, validation_alias="AI_TIMEOUT")
    ai_max_retries: int | None = Field(default=None, validation_alias="AI_MAX_RETRIES")
    ai_retry_delay_ms: int | None = Field(default=None, validation_alias="AI_RETRY_DELAY")
    ai_base_url: str | None = Field(default=None, validation_alias="AI_BASE_URL")

    # Logging
    log_json: bool = Field(default=True, validation_alias="AICLIENT_LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def resolved_provider(self) -> str | None:
        """Provider name, auto-detected from available keys when not named."""
        if self.ai_provider:
            return self.ai_provider.strip().lower()
        if self.openai_api_key:
            return "openai"
        if self.gemini_api_key:
            return "gemini"
        return None

    @property
    def resolved_api_key(self) -> str | None:
        """API key matching the resolved provider."""
        provider = self.resolved_provider
        if provider == "openai":
            return self.openai_api_key or None
        if provider == "gemini":
            return self.gemini_api_key or None
        return None

    def to_client_config(self) -> ClientConfig:
        """Build a ClientConfig, leaving validation to the client.

        Missing provider or key become empty strings so that AIClient
        raises its own ConfigurationError.
        """
        return ClientConfig(
            provider=self.resolved_provider or "",
            api_key=self.resolved_api_key or "",
            model=self.ai_model or None,
            temperature=(
                self.ai_temperature if self.ai_temperature is not None else DEFAULT_TEMPERATURE
            ),
            max_tokens=self.ai_max_tokens,
            base_url=self.ai_base_url or None,
            timeout_s=(
                self.ai_timeout_ms / 1000 if self.ai_timeout_ms is not None else DEFAULT_TIMEOUT_S
            ),
            max_retries=(
                self.ai_max_retries if self.ai_max_retries is not None else DEFAULT_MAX_RETRIES
            ),
            retry_delay_s=(
                self.ai_retry_delay_ms / 1000
                if self.ai_retry_delay_ms is not None
                else DEFAULT_RETRY_DELAY_S
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If a numeric setting cannot be parsed.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
