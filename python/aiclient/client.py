"""AIClient: one facade over every supported LLM provider.

Per call:
    BUILD INPUT → REQUEST HOOKS → RETRY LOOP (TIMEOUT-GUARDED PROVIDER CALL)
    → success: DECORATE RESULT → RESPONSE HOOKS → return
    → failure: raise typed error

Task methods (summarize, translate, ...) are thin: render a prompt, send it
as a single user message through ``_call_provider``, parse the text.

Streaming skips retry and timeout (a half-consumed stream cannot be
replayed). Request hooks fire once when iteration starts, chunks are
forwarded as-is, and any failure is reported to error hooks and re-raised
as StreamingError.

Observability:
- Emits llm.request.started / llm.request.finished / llm.request.failed
- Emits llm.stream.started / llm.stream.finished / llm.stream.failed
- All events use safe_kv() so prompts and keys never reach the logs
"""

import dataclasses
import time
import uuid
from collections.abc import AsyncIterator, Sequence

import httpx

from aiclient import parsing, prompts
from aiclient.config import ClientConfig, get_settings
from aiclient.errors import (
    AIClientError,
    ConfigurationError,
    RetryError,
    StreamingError,
    StreamingNotSupportedError,
    extract_status_code,
)
from aiclient.hooks import HookRegistry
from aiclient.logging import call_context, get_logger
from aiclient.providers.base import LLMProvider, supports_streaming
from aiclient.providers.factory import create_provider, default_model_for
from aiclient.redact import hash_text, safe_kv
from aiclient.retry import RetryPolicy, execute_with_retry
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
    ErrorHook,
    ExtractKeywordsOptions,
    ExtractKeywordsResult,
    FixGrammarOptions,
    FixGrammarResult,
    Message,
    RequestHook,
    ResponseHook,
    RewriteOptions,
    RewriteResult,
    RewriteStyle,
    SentimentResult,
    StreamChunk,
    SummarizeOptions,
    SummarizeResult,
    TranslateOptions,
    TranslateResult,
)

logger = get_logger(__name__)

# Fixed sampling overrides for extraction-style tasks
GRAMMAR_TEMPERATURE = 0.3
KEYWORDS_TEMPERATURE = 0.3
LANGUAGE_TEMPERATURE = 0.1
LANGUAGE_MAX_TOKENS = 10
SENTIMENT_TEMPERATURE = 0.3
SENTIMENT_MAX_TOKENS = 20

# Transport timeout margin so the per-attempt guard always fires first
TRANSPORT_TIMEOUT_MARGIN_S = 5.0


def _validate_config(config: ClientConfig) -> ClientConfig:
    """Reject unusable configuration and fill in the provider default model."""
    if not config.api_key:
        raise ConfigurationError("API key is required", provider=config.provider or None)
    if not config.provider:
        raise ConfigurationError("Provider is required")

    default_model = default_model_for(config.provider)

    if config.max_retries < 0:
        raise ConfigurationError(
            f"max_retries must be >= 0, got {config.max_retries}", provider=config.provider
        )
    if config.timeout_s <= 0:
        raise ConfigurationError(
            f"timeout_s must be > 0, got {config.timeout_s}", provider=config.provider
        )

    if not config.model:
        config = dataclasses.replace(config, model=default_model)
    return config


class AIClient:
    """Provider-agnostic LLM client with retries, timeouts and hooks.

    Usage:
        async with AIClient(ClientConfig(provider="openai", api_key="sk-...")) as client:
            result = await client.summarize("Long text...")
            print(result.summary)
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        provider: LLMProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Validate configuration and build the provider.

        Args:
            config: Explicit configuration.
            provider: Pre-built provider (custom backends, tests). The
                provider name in ``config`` is still validated.
            http_client: Shared httpx.AsyncClient. When omitted and no
                provider is given, the client owns one and closes it in
                ``aclose()``.

        Raises:
            ConfigurationError: Missing key, unknown provider, or invalid limits.
        """
        self._config = _validate_config(config)
        self._hooks = HookRegistry()
        self._owns_http_client = False

        if provider is None:
            if http_client is None:
                http_client = httpx.AsyncClient()
                self._owns_http_client = True
            provider = create_provider(
                self._config.provider,
                self._config.api_key,
                self._config.model,
                self._config.base_url,
                http_client=http_client,
                timeout_s=self._config.timeout_s + TRANSPORT_TIMEOUT_MARGIN_S,
            )

        self._provider = provider
        self._http_client = http_client
        self._retry_policy = RetryPolicy(
            max_retries=self._config.max_retries,
            base_delay_s=self._config.retry_delay_s,
            timeout_s=self._config.timeout_s,
        )

    @classmethod
    def from_env(cls, *, http_client: httpx.AsyncClient | None = None) -> "AIClient":
        """Build a client from environment variables (see aiclient.config).

        Raises:
            ConfigurationError: If no provider or matching API key is configured.
        """
        settings = get_settings()
        if not settings.resolved_provider or not settings.resolved_api_key:
            raise ConfigurationError(
                "Missing required environment variables. Set AI_PROVIDER (or PROVIDER) "
                "and corresponding API key (OPENAI_API_KEY or GEMINI_API_KEY)"
            )
        return cls(settings.to_client_config(), http_client=http_client)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    # ─── Lifecycle ──────────────────────────────────────────────────

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()

    async def __aenter__(self) -> "AIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ─── Hooks ──────────────────────────────────────────────────────

    def on_request(self, hook: RequestHook) -> None:
        """Register an observer called before each provider dispatch."""
        self._hooks.add_request_hook(hook)

    def on_response(self, hook: ResponseHook) -> None:
        """Register an observer called with each decorated successful result."""
        self._hooks.add_response_hook(hook)

    def on_error(self, hook: ErrorHook) -> None:
        """Register an observer called once per failed attempt."""
        self._hooks.add_error_hook(hook)

    # ─── Core call path ─────────────────────────────────────────────

    def _build_input(
        self,
        messages: Sequence[Message],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stream: bool = False,
    ) -> ChatInput:
        return ChatInput(
            messages=tuple(messages),
            temperature=temperature if temperature is not None else self._config.temperature,
            max_tokens=max_tokens if max_tokens is not None else self._config.max_tokens,
            stream=stream,
        )

    def _prompt_input(
        self,
        prompt: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatInput:
        return self._build_input(
            [Message(role="user", content=prompt)],
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def _base_log_fields(self, chat_input: ChatInput, *, streaming: bool) -> dict:
        return {
            "provider": self._config.provider,
            "model": self._config.model,
            "streaming": streaming,
            "message_count": len(chat_input.messages),
            "message_chars": sum(len(m.content) for m in chat_input.messages),
            "prompt_sha256": hash_text("\n".join(m.content for m in chat_input.messages)),
        }

    async def _call_provider(self, chat_input: ChatInput, operation: str) -> ChatResult:
        with call_context(uuid.uuid4().hex, operation):
            return await self._execute(chat_input)

    async def _execute(self, chat_input: ChatInput) -> ChatResult:
        base = self._base_log_fields(chat_input, streaming=False)
        logger.info("llm.request.started", **safe_kv(**base))

        self._hooks.dispatch_request(self._config, chat_input)

        start = time.monotonic()
        try:
            raw = await execute_with_retry(
                lambda: self._provider.chat(chat_input),
                self._retry_policy,
                provider=self._config.provider,
                on_error=self._hooks.dispatch_error,
            )
        except Exception as e:
            last = e.cause if isinstance(e, RetryError) and e.cause is not None else e
            logger.error(
                "llm.request.failed",
                **safe_kv(
                    **base,
                    outcome="error",
                    error_type=type(e).__name__,
                    status_code=extract_status_code(last),
                    latency_ms=int((time.monotonic() - start) * 1000),
                ),
            )
            raise

        result = dataclasses.replace(
            raw,
            provider=self._config.provider,
            model=raw.model or self._config.model,
        )
        logger.info(
            "llm.request.finished",
            **safe_kv(
                **base,
                outcome="success",
                tokens_used=result.tokens_used,
                finish_reason=result.finish_reason,
                latency_ms=int((time.monotonic() - start) * 1000),
            ),
        )

        self._hooks.dispatch_response(result)
        return result

    # ─── Task methods ───────────────────────────────────────────────

    async def summarize(
        self, text: str, options: SummarizeOptions | None = None
    ) -> SummarizeResult:
        """Summarize ``text``."""
        result = await self._call_provider(
            self._prompt_input(prompts.render_summarize(text, options)), "summarize"
        )
        return SummarizeResult(
            summary=result.content,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def fix_grammar(
        self, text: str, options: FixGrammarOptions | None = None
    ) -> FixGrammarResult:
        """Correct grammar, spelling and punctuation (low temperature)."""
        result = await self._call_provider(
            self._prompt_input(
                prompts.render_fix_grammar(text, options), temperature=GRAMMAR_TEMPERATURE
            ),
            "fix_grammar",
        )
        return FixGrammarResult(
            corrected=result.content,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def translate(
        self, text: str, target_language: str, options: TranslateOptions | None = None
    ) -> TranslateResult:
        """Translate ``text`` into ``target_language``."""
        result = await self._call_provider(
            self._prompt_input(prompts.render_translate(text, target_language, options)),
            "translate",
        )
        return TranslateResult(
            translated=result.content,
            detected_source_language=options.source_language if options else None,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def answer_question(
        self, context: str, question: str, options: AnswerQuestionOptions | None = None
    ) -> AnswerQuestionResult:
        """Answer ``question`` using only ``context``."""
        temperature = options.temperature if options else None
        result = await self._call_provider(
            self._prompt_input(
                prompts.render_answer_question(context, question, options),
                temperature=temperature,
            ),
            "answer_question",
        )
        return AnswerQuestionResult(
            answer=result.content,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def rewrite(
        self, text: str, style: RewriteStyle, options: RewriteOptions | None = None
    ) -> RewriteResult:
        """Rewrite ``text`` in a given style."""
        result = await self._call_provider(
            self._prompt_input(prompts.render_rewrite(text, style, options)), "rewrite"
        )
        return RewriteResult(
            rewritten=result.content,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def summarize_to_bullets(
        self, text: str, options: BulletSummaryOptions | None = None
    ) -> BulletSummaryResult:
        """Summarize ``text`` as a list of bullet points."""
        result = await self._call_provider(
            self._prompt_input(prompts.render_bullet_summary(text, options)),
            "summarize_to_bullets",
        )
        return BulletSummaryResult(
            bullets=parsing.parse_bullets(result.content),
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def extract_keywords(
        self, text: str, options: ExtractKeywordsOptions | None = None
    ) -> ExtractKeywordsResult:
        """Extract keywords (low temperature, comma-separated response)."""
        result = await self._call_provider(
            self._prompt_input(
                prompts.render_extract_keywords(text, options), temperature=KEYWORDS_TEMPERATURE
            ),
            "extract_keywords",
        )
        return ExtractKeywordsResult(
            keywords=parsing.parse_keywords(result.content),
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def detect_language(self, text: str) -> DetectLanguageResult:
        """Detect the ISO 639-1 language code of ``text``."""
        result = await self._call_provider(
            self._prompt_input(
                prompts.render_detect_language(text),
                temperature=LANGUAGE_TEMPERATURE,
                max_tokens=LANGUAGE_MAX_TOKENS,
            ),
            "detect_language",
        )
        language, confidence = parsing.parse_language(result.content)
        return DetectLanguageResult(
            language=language,
            confidence=confidence,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def classify_sentiment(self, text: str) -> SentimentResult:
        """Classify ``text`` as positive, neutral or negative with a score."""
        result = await self._call_provider(
            self._prompt_input(
                prompts.render_classify_sentiment(text),
                temperature=SENTIMENT_TEMPERATURE,
                max_tokens=SENTIMENT_MAX_TOKENS,
            ),
            "classify_sentiment",
        )
        sentiment, score = parsing.parse_sentiment(result.content)
        return SentimentResult(
            sentiment=sentiment,
            score=score,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def custom_prompt(
        self,
        prompt: str,
        variables: dict[str, str] | None = None,
        options: CustomPromptOptions | None = None,
    ) -> CustomPromptResult:
        """Send a free-form prompt after ``{{name}}`` substitution."""
        options = options or CustomPromptOptions()
        merged = {**options.variables, **(variables or {})}
        result = await self._call_provider(
            self._prompt_input(
                prompts.render_custom_prompt(prompt, merged),
                temperature=options.temperature,
                max_tokens=options.max_tokens,
            ),
            "custom_prompt",
        )
        return CustomPromptResult(
            result=result.content,
            tokens_used=result.tokens_used,
            provider=result.provider,
            model=result.model,
        )

    async def chat(
        self, messages: Sequence[Message], options: ChatOptions | None = None
    ) -> ChatResult:
        """Raw chat call through the full retry/timeout/hook pipeline."""
        options = options or ChatOptions()
        chat_input = self._build_input(
            messages,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            stream=options.stream,
        )
        return await self._call_provider(chat_input, "chat")

    # ─── Streaming ──────────────────────────────────────────────────

    def chat_stream(
        self, messages: Sequence[Message], options: ChatOptions | None = None
    ) -> AsyncIterator[StreamChunk]:
        """Stream a chat response chunk by chunk.

        Returns:
            A single-consumer async iterator. It stops after the first chunk
            with ``done=True`` or when the provider's stream ends.

        Raises:
            StreamingNotSupportedError: Immediately, if the provider cannot stream.
        """
        if not supports_streaming(self._provider):
            raise StreamingNotSupportedError(
                "Streaming not supported by this provider", provider=self._config.provider
            )

        options = options or ChatOptions()
        chat_input = self._build_input(
            messages,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            stream=True,
        )
        return self._stream(chat_input)

    async def _stream(self, chat_input: ChatInput) -> AsyncIterator[StreamChunk]:
        # Bound logger rather than context vars: a generator may be finalized
        # from a different task than the one iterating it.
        log = logger.bind(call_id=uuid.uuid4().hex, operation="chat_stream")
        base = self._base_log_fields(chat_input, streaming=True)
        log.info("llm.stream.started", **safe_kv(**base))

        self._hooks.dispatch_request(self._config, chat_input)

        start = time.monotonic()
        chunk_count = 0
        stream = None
        try:
            stream = self._provider.chat_stream(chat_input)
            async for chunk in stream:
                chunk_count += 1
                yield chunk
                if chunk.done:
                    break
        except Exception as e:
            log.error(
                "llm.stream.failed",
                **safe_kv(
                    **base,
                    outcome="error",
                    error_type=type(e).__name__,
                    status_code=extract_status_code(e),
                    chunk_count=chunk_count,
                    latency_ms=int((time.monotonic() - start) * 1000),
                ),
            )
            self._hooks.dispatch_error(e)
            message = e.message if isinstance(e, AIClientError) else str(e)
            raise StreamingError(
                f"Streaming error: {message}",
                provider=self._config.provider,
                status_code=extract_status_code(e),
                cause=e,
            ) from e
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        log.info(
            "llm.stream.finished",
            **safe_kv(
                **base,
                outcome="success",
                chunk_count=chunk_count,
                latency_ms=int((time.monotonic() - start) * 1000),
            ),
        )
