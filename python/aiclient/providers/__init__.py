"""Provider adapters and the capability interfaces the client depends on."""

from aiclient.providers.base import (
    HTTPProvider,
    LLMProvider,
    StreamingLLMProvider,
    supports_streaming,
)
from aiclient.providers.factory import (
    DEFAULT_MODELS,
    SUPPORTED_PROVIDERS,
    create_provider,
    default_model_for,
    is_supported_provider,
)
from aiclient.providers.gemini import GeminiProvider
from aiclient.providers.openai import OpenAIProvider

__all__ = [
    "LLMProvider",
    "StreamingLLMProvider",
    "HTTPProvider",
    "supports_streaming",
    "OpenAIProvider",
    "GeminiProvider",
    "create_provider",
    "default_model_for",
    "is_supported_provider",
    "DEFAULT_MODELS",
    "SUPPORTED_PROVIDERS",
]
