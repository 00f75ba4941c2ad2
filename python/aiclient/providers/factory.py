"""Provider factory. Maps a provider name to a concrete provider."""

import httpx

from aiclient.errors import ConfigurationError
from aiclient.providers.base import HTTPProvider
from aiclient.providers.gemini import GeminiProvider
from aiclient.providers.openai import OpenAIProvider

PROVIDER_CLASSES: dict[str, type[HTTPProvider]] = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
}

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-pro",
}

SUPPORTED_PROVIDERS = frozenset(PROVIDER_CLASSES)


def is_supported_provider(name: str) -> bool:
    return name in SUPPORTED_PROVIDERS


def _require_supported(name: str) -> None:
    if not is_supported_provider(name):
        raise ConfigurationError(
            f"Unsupported provider: {name}. Supported: {', '.join(sorted(SUPPORTED_PROVIDERS))}",
            provider=name or None,
        )


def default_model_for(name: str) -> str:
    """Default model for a known provider.

    Raises:
        ConfigurationError: If the provider is unknown.
    """
    _require_supported(name)
    return DEFAULT_MODELS[name]


def create_provider(
    name: str,
    api_key: str,
    model: str,
    base_url: str | None = None,
    *,
    http_client: httpx.AsyncClient,
    timeout_s: float = 60.0,
) -> HTTPProvider:
    """Create the provider registered under ``name``.

    Args:
        name: Provider identifier ("openai" or "gemini").
        api_key: Provider API key.
        model: Model identifier.
        base_url: Optional API root override.
        http_client: Shared async HTTP client.
        timeout_s: Transport read timeout.

    Raises:
        ConfigurationError: If the provider is unknown.
    """
    _require_supported(name)

    return PROVIDER_CLASSES[name](
        http_client,
        api_key=api_key,
        model=model,
        base_url=base_url,
        timeout_s=timeout_s,
    )
