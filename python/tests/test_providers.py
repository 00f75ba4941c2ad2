"""Tests for the provider adapters and factory.

Covers, per provider:
- Non-streaming success: content, tokens, model, finish reason
- Streaming success: chunk sequence and done flag
- Wire format: URL, auth header, body mapping
- Backend errors surface as httpx.HTTPStatusError (status kept for retry)
- Success status with an unusable body → ProviderResponseError

Explicitly Forbidden:
- Live provider calls
- Real API keys anywhere in test code

They use respx to mock HTTP requests and test the adapters in isolation.
"""

import json

import httpx
import pytest
import pytest_asyncio
import respx

from aiclient.errors import ConfigurationError, ProviderResponseError, is_retryable_error
from aiclient.providers import (
    DEFAULT_MODELS,
    GeminiProvider,
    LLMProvider,
    OpenAIProvider,
    StreamingLLMProvider,
    create_provider,
    default_model_for,
    is_supported_provider,
    supports_streaming,
)
from aiclient.types import ChatInput, Message
from tests.helpers import ScriptedProvider

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_GENERATE_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"
)
GEMINI_STREAM_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:streamGenerateContent"
)

OPENAI_SUCCESS = {
    "id": "chatcmpl-test",
    "object": "chat.completion",
    "model": "gpt-4o-mini-2024-07-18",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Hello! How can I help you today?"},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 10, "completion_tokens": 8, "total_tokens": 18},
}

OPENAI_STREAM = "\n".join(
    [
        'data: {"choices":[{"index":0,"delta":{"role":"assistant","content":""},'
        '"finish_reason":null}]}',
        "",
        'data: {"choices":[{"index":0,"delta":{"content":"Hello"},"finish_reason":null}]}',
        "",
        ": keep-alive",
        "",
        'data: {"choices":[{"index":0,"delta":{"content":" world"},"finish_reason":null}]}',
        "",
        'data: {"choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}',
        "",
        "data: [DONE]",
        "",
    ]
)

GEMINI_SUCCESS = {
    "candidates": [
        {
            "content": {
                "role": "model",
                "parts": [{"text": "Hello! "}, {"text": "How can I help?"}],
            },
            "finishReason": "STOP",
        }
    ],
    "usageMetadata": {"promptTokenCount": 5, "candidatesTokenCount": 7, "totalTokenCount": 12},
}

GEMINI_STREAM = "\n".join(
    [
        'data: {"candidates":[{"content":{"role":"model","parts":[{"text":"Bonjour"}]}}]}',
        "",
        'data: {"candidates":[{"content":{"role":"model","parts":[{"text":" le monde"}]},'
        '"finishReason":"STOP"}]}',
        "",
    ]
)


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def httpx_client():
    """Create an httpx AsyncClient for testing."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def chat_input():
    """Create a basic chat request for testing."""
    return ChatInput(
        messages=(
            Message(role="system", content="You are helpful."),
            Message(role="user", content="Hello!"),
        ),
        temperature=0.7,
        max_tokens=100,
    )


def _sent_body(route: respx.Route) -> dict:
    return json.loads(route.calls.last.request.content)


# =============================================================================
# OpenAI Provider Tests
# =============================================================================


class TestOpenAIProvider:
    """Tests for the OpenAI-compatible provider."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_nonstream_success(self, httpx_client, chat_input):
        """Happy path non-streaming completion."""
        route = respx.post(OPENAI_URL).respond(200, json=OPENAI_SUCCESS)

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        result = await provider.chat(chat_input)

        assert result.content == "Hello! How can I help you today?"
        assert result.tokens_used == 18
        assert result.model == "gpt-4o-mini-2024-07-18"
        assert result.finish_reason == "stop"
        assert result.provider is None
        assert route.calls.last.request.headers["Authorization"] == "Bearer sk-test"

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_request_body(self, httpx_client, chat_input):
        """Messages keep their roles; sampling params are forwarded."""
        route = respx.post(OPENAI_URL).respond(200, json=OPENAI_SUCCESS)

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        await provider.chat(chat_input)

        body = _sent_body(route)
        assert body["model"] == "gpt-4o-mini"
        assert body["stream"] is False
        assert body["temperature"] == 0.7
        assert body["max_tokens"] == 100
        assert body["messages"] == [
            {"role": "system", "content": "You are helpful."},
            {"role": "user", "content": "Hello!"},
        ]

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_omits_unset_sampling_params(self, httpx_client):
        route = respx.post(OPENAI_URL).respond(200, json=OPENAI_SUCCESS)

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        await provider.chat(ChatInput(messages=(Message(role="user", content="Hi"),)))

        body = _sent_body(route)
        assert "temperature" not in body
        assert "max_tokens" not in body

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_base_url_override(self, httpx_client, chat_input):
        """Compatible endpoints are reached through base_url."""
        route = respx.post("https://llm.internal.test/v1/chat/completions").respond(
            200, json=OPENAI_SUCCESS
        )

        provider = OpenAIProvider(
            httpx_client,
            api_key="sk-test",
            model="local-model",
            base_url="https://llm.internal.test/v1/",
        )
        await provider.chat(chat_input)

        assert route.called
        assert provider.base_url == "https://llm.internal.test/v1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_stream_success(self, httpx_client, chat_input):
        """Happy path streaming; comments and [DONE] are skipped."""
        route = respx.post(OPENAI_URL).respond(
            200, content=OPENAI_STREAM, headers={"content-type": "text/event-stream"}
        )

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        chunks = [chunk async for chunk in provider.chat_stream(chat_input)]

        assert [c.content for c in chunks] == ["", "Hello", " world", ""]
        assert [c.done for c in chunks] == [False, False, False, True]
        assert _sent_body(route)["stream"] is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_missing_choices(self, httpx_client, chat_input):
        """A 2xx without choices is a malformed response."""
        respx.post(OPENAI_URL).respond(200, json={"choices": []})

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        with pytest.raises(ProviderResponseError) as exc_info:
            await provider.chat(chat_input)

        assert exc_info.value.message == "No response from OpenAI"
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_null_content(self, httpx_client, chat_input):
        body = {
            "model": "gpt-4o-mini",
            "choices": [
                {"message": {"role": "assistant", "content": None}, "finish_reason": "stop"}
            ],
        }
        respx.post(OPENAI_URL).respond(200, json=body)

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        result = await provider.chat(chat_input)

        assert result.content == ""
        assert result.tokens_used is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_rate_limit_429(self, httpx_client, chat_input):
        """429 surfaces with its status so the client can retry it."""
        respx.post(OPENAI_URL).respond(429, json={"error": {"message": "Rate limit"}})

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await provider.chat(chat_input)

        assert exc_info.value.response.status_code == 429
        assert is_retryable_error(exc_info.value)

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_invalid_key_401(self, httpx_client, chat_input):
        respx.post(OPENAI_URL).respond(401, json={"error": {"message": "Invalid key"}})

        provider = OpenAIProvider(httpx_client, api_key="sk-bad", model="gpt-4o-mini")
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await provider.chat(chat_input)

        assert not is_retryable_error(exc_info.value)

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_stream_provider_down_500(self, httpx_client, chat_input):
        respx.post(OPENAI_URL).respond(500, json={"error": {"message": "Server error"}})

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            async for _ in provider.chat_stream(chat_input):
                pass

        assert exc_info.value.response.status_code == 500

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_transport_timeout(self, httpx_client, chat_input):
        respx.post(OPENAI_URL).mock(side_effect=httpx.ReadTimeout("Read timed out"))

        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")
        with pytest.raises(httpx.ReadTimeout) as exc_info:
            await provider.chat(chat_input)

        assert is_retryable_error(exc_info.value)


# =============================================================================
# Gemini Provider Tests
# =============================================================================


class TestGeminiProvider:
    """Tests for the Gemini provider."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_nonstream_success(self, httpx_client, chat_input):
        """Happy path; parts are concatenated and the configured model is reported."""
        route = respx.post(GEMINI_GENERATE_URL).respond(200, json=GEMINI_SUCCESS)

        provider = GeminiProvider(httpx_client, api_key="gm-test", model="gemini-pro")
        result = await provider.chat(chat_input)

        assert result.content == "Hello! How can I help?"
        assert result.tokens_used == 12
        assert result.model == "gemini-pro"
        assert result.finish_reason == "STOP"
        assert result.provider is None

        request = route.calls.last.request
        assert request.headers["x-goog-api-key"] == "gm-test"
        assert "key" not in request.url.params

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_message_conversion(self, httpx_client):
        """System messages are merged into systemInstruction; assistant → model."""
        route = respx.post(GEMINI_GENERATE_URL).respond(200, json=GEMINI_SUCCESS)

        provider = GeminiProvider(httpx_client, api_key="gm-test", model="gemini-pro")
        await provider.chat(
            ChatInput(
                messages=(
                    Message(role="system", content="Be brief."),
                    Message(role="user", content="Hi"),
                    Message(role="assistant", content="Hello"),
                    Message(role="system", content="Answer in French."),
                    Message(role="user", content="How are you?"),
                ),
                temperature=0.2,
                max_tokens=50,
            )
        )

        body = _sent_body(route)
        assert body["systemInstruction"] == {
            "parts": [{"text": "Be brief.\nAnswer in French."}]
        }
        assert body["contents"] == [
            {"role": "user", "parts": [{"text": "Hi"}]},
            {"role": "model", "parts": [{"text": "Hello"}]},
            {"role": "user", "parts": [{"text": "How are you?"}]},
        ]
        assert body["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 50}

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_without_system_messages(self, httpx_client):
        route = respx.post(GEMINI_GENERATE_URL).respond(200, json=GEMINI_SUCCESS)

        provider = GeminiProvider(httpx_client, api_key="gm-test", model="gemini-pro")
        await provider.chat(ChatInput(messages=(Message(role="user", content="Hi"),)))

        body = _sent_body(route)
        assert "systemInstruction" not in body
        assert body["generationConfig"] == {}

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_stream_success(self, httpx_client, chat_input):
        route = respx.post(GEMINI_STREAM_URL).respond(
            200, content=GEMINI_STREAM, headers={"content-type": "text/event-stream"}
        )

        provider = GeminiProvider(httpx_client, api_key="gm-test", model="gemini-pro")
        chunks = [chunk async for chunk in provider.chat_stream(chat_input)]

        assert [c.content for c in chunks] == ["Bonjour", " le monde"]
        assert [c.done for c in chunks] == [False, True]
        assert route.calls.last.request.url.params["alt"] == "sse"

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_missing_candidates(self, httpx_client, chat_input):
        respx.post(GEMINI_GENERATE_URL).respond(200, json={"promptFeedback": {}})

        provider = GeminiProvider(httpx_client, api_key="gm-test", model="gemini-pro")
        with pytest.raises(ProviderResponseError) as exc_info:
            await provider.chat(chat_input)

        assert exc_info.value.provider == "gemini"

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_provider_down_503(self, httpx_client, chat_input):
        respx.post(GEMINI_GENERATE_URL).respond(503, json={"error": {"code": 503}})

        provider = GeminiProvider(httpx_client, api_key="gm-test", model="gemini-pro")
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await provider.chat(chat_input)

        assert is_retryable_error(exc_info.value)


# =============================================================================
# Factory and Capability Tests
# =============================================================================


class TestProviderFactory:
    @pytest.mark.asyncio
    async def test_create_known_providers(self, httpx_client):
        openai = create_provider("openai", "sk-test", "gpt-4o", http_client=httpx_client)
        gemini = create_provider("gemini", "gm-test", "gemini-pro", http_client=httpx_client)

        assert isinstance(openai, OpenAIProvider)
        assert isinstance(gemini, GeminiProvider)
        assert openai.model == "gpt-4o"

    @pytest.mark.asyncio
    async def test_create_unknown_provider(self, httpx_client):
        with pytest.raises(ConfigurationError, match="Unsupported provider: mistral"):
            create_provider("mistral", "key", "model", http_client=httpx_client)

    def test_default_models(self):
        assert default_model_for("openai") == "gpt-4o-mini"
        assert default_model_for("gemini") == "gemini-pro"
        assert set(DEFAULT_MODELS) == {"openai", "gemini"}

    def test_default_model_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unsupported provider: claude"):
            default_model_for("claude")

    def test_is_supported_provider(self):
        assert is_supported_provider("openai")
        assert is_supported_provider("gemini")
        assert not is_supported_provider("OpenAI")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["OpenAI", "", "mistral"])
    async def test_factory_rejects_what_is_unsupported(self, httpx_client, name):
        """Both factory entry points agree with is_supported_provider."""
        assert not is_supported_provider(name)

        with pytest.raises(ConfigurationError, match="Supported: gemini, openai"):
            default_model_for(name)
        with pytest.raises(ConfigurationError, match="Supported: gemini, openai") as exc_info:
            create_provider(name, "key", "model", http_client=httpx_client)

        assert exc_info.value.provider == (name or None)


class TestCapabilities:
    @pytest.mark.asyncio
    async def test_http_providers_stream(self, httpx_client):
        provider = OpenAIProvider(httpx_client, api_key="sk-test", model="gpt-4o-mini")

        assert isinstance(provider, LLMProvider)
        assert isinstance(provider, StreamingLLMProvider)
        assert supports_streaming(provider)

    def test_chat_only_provider(self):
        """Any object with chat() is a provider; without chat_stream it cannot stream."""
        provider = ScriptedProvider()

        assert isinstance(provider, LLMProvider)
        assert not isinstance(provider, StreamingLLMProvider)
        assert not supports_streaming(provider)
