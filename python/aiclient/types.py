"""Shared type definitions for the client facade.

- Message: Provider-agnostic conversation message
- ChatInput: Request handed to a provider
- ChatResult: Complete response from a non-streaming call
- StreamChunk: Single chunk from a streaming response
- *Options / *Result: Per-task option bags and structured results

Providers return ChatResult without ``provider`` set. Only the client
attaches identity metadata after the call returns.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from aiclient.config import ClientConfig

MessageRole = Literal["user", "assistant", "system"]
Sentiment = Literal["positive", "neutral", "negative"]
RewriteStyle = Literal["formal", "casual", "short", "detailed"]


@dataclass(frozen=True)
class Message:
    """Provider-agnostic conversation message.

    Attributes:
        role: One of "system", "user", or "assistant"
        content: The text content of the message
    """

    role: MessageRole
    content: str


@dataclass(frozen=True)
class ChatInput:
    """Request to a provider.

    Attributes:
        messages: Ordered messages (system messages may appear anywhere)
        temperature: Sampling temperature, None uses provider default
        max_tokens: Maximum output tokens, None uses provider default
        stream: Whether the caller asked for a streamed response
    """

    messages: tuple[Message, ...]
    temperature: float | None = None
    max_tokens: int | None = None
    stream: bool = False


@dataclass(frozen=True)
class ChatResult:
    """Complete response from a non-streaming call.

    Attributes:
        content: The generated text
        tokens_used: Total tokens reported by the provider (may be None)
        model: Model that actually served the request (may be None)
        finish_reason: Provider finish reason tag (may be None)
        provider: Registered provider name, set by the client
    """

    content: str
    tokens_used: int | None = None
    model: str | None = None
    finish_reason: str | None = None
    provider: str | None = None


@dataclass(frozen=True)
class StreamChunk:
    """Single chunk from a streaming response.

    Attributes:
        content: New text in this chunk (may be empty)
        done: Whether this is the final chunk
    """

    content: str
    done: bool


RequestHook = Callable[["ClientConfig", ChatInput], None]
ResponseHook = Callable[[ChatResult], None]
ErrorHook = Callable[[BaseException], None]


# ─── Task options ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SummarizeOptions:
    length: Literal["short", "medium", "long"] | None = None
    language: str | None = None
    tone: Literal["neutral", "formal", "casual"] | None = None


@dataclass(frozen=True)
class FixGrammarOptions:
    keep_tone: bool = True
    language: str | None = None


@dataclass(frozen=True)
class TranslateOptions:
    source_language: str | None = None
    preserve_formatting: bool = False


@dataclass(frozen=True)
class AnswerQuestionOptions:
    max_length: int | None = None
    temperature: float | None = None


@dataclass(frozen=True)
class RewriteOptions:
    tone: Literal["formal", "casual", "professional", "friendly"] | None = None
    preserve_length: bool = False


@dataclass(frozen=True)
class BulletSummaryOptions:
    max_bullets: int | None = None
    language: str | None = None


@dataclass(frozen=True)
class ExtractKeywordsOptions:
    max_keywords: int | None = None
    min_length: int | None = None


@dataclass(frozen=True)
class CustomPromptOptions:
    temperature: float | None = None
    max_tokens: int | None = None
    variables: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ChatOptions:
    temperature: float | None = None
    max_tokens: int | None = None
    stream: bool = False


# ─── Task results ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SummarizeResult:
    summary: str
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class FixGrammarResult:
    corrected: str
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class TranslateResult:
    translated: str
    detected_source_language: str | None = None
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class AnswerQuestionResult:
    answer: str
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class RewriteResult:
    rewritten: str
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class BulletSummaryResult:
    bullets: list[str]
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class ExtractKeywordsResult:
    keywords: list[str]
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class DetectLanguageResult:
    language: str
    confidence: float
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class SentimentResult:
    sentiment: Sentiment
    score: float
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class CustomPromptResult:
    result: str
    tokens_used: int | None = None
    provider: str | None = None
    model: str | None = None
