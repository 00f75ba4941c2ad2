"""Unified async client for hosted LLM APIs.

This package puts one facade in front of OpenAI-compatible and Gemini
chat APIs. It includes:

- Task methods (summarize, translate, fix grammar, keywords, sentiment, ...)
- Per-attempt timeouts and retry with exponential backoff
- Request / response / error hooks for observability
- Streaming chat

Usage:
    from aiclient import AIClient, ClientConfig, Message

    async with AIClient(ClientConfig(provider="openai", api_key="sk-...")) as client:
        result = await client.summarize("Long text...")
        reply = await client.chat([Message(role="user", content="Hello!")])

Rules:
- Providers make one network attempt per call; retries live in the client
- Only the client attaches provider/model identity to results
- No logging of prompts, responses or keys
"""

from aiclient.client import AIClient
from aiclient.config import ClientConfig, Settings, clear_settings_cache, get_settings
from aiclient.errors import (
    AIClientError,
    ConfigurationError,
    ProviderResponseError,
    RequestTimeoutError,
    RetryError,
    StreamingError,
    StreamingNotSupportedError,
    is_retryable_error,
)
from aiclient.providers import (
    GeminiProvider,
    LLMProvider,
    OpenAIProvider,
    StreamingLLMProvider,
    create_provider,
)
from aiclient.types import (
    AnswerQuestionOptions,
    AnswerQuestionResult,
    BulletSummaryOptions,
    BulletSummaryResult,
    ChatInput,
    ChatOptions,
    ChatResult,
    CustomPromptOptions,
    CustomPromptResult,
    DetectLanguageResult,
    ExtractKeywordsOptions,
    ExtractKeywordsResult,
    FixGrammarOptions,
    FixGrammarResult,
    Message,
    RewriteOptions,
    RewriteResult,
    SentimentResult,
    StreamChunk,
    SummarizeOptions,
    SummarizeResult,
    TranslateOptions,
    TranslateResult,
)

__all__ = [
    # Client
    "AIClient",
    "ClientConfig",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Providers
    "LLMProvider",
    "StreamingLLMProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "create_provider",
    # Core types
    "Message",
    "ChatInput",
    "ChatResult",
    "StreamChunk",
    "ChatOptions",
    # Task options / results
    "SummarizeOptions",
    "SummarizeResult",
    "FixGrammarOptions",
    "FixGrammarResult",
    "TranslateOptions",
    "TranslateResult",
    "AnswerQuestionOptions",
    "AnswerQuestionResult",
    "RewriteOptions",
    "RewriteResult",
    "BulletSummaryOptions",
    "BulletSummaryResult",
    "ExtractKeywordsOptions",
    "ExtractKeywordsResult",
    "DetectLanguageResult",
    "SentimentResult",
    "CustomPromptOptions",
    "CustomPromptResult",
    # Errors
    "AIClientError",
    "ConfigurationError",
    "RequestTimeoutError",
    "RetryError",
    "StreamingNotSupportedError",
    "StreamingError",
    "ProviderResponseError",
    "is_retryable_error",
]
