"""Provider capability interfaces and shared HTTP plumbing.

Capabilities:
- LLMProvider: one async ``chat`` call (required)
- StreamingLLMProvider: adds ``chat_stream`` (optional)

The client checks capabilities by interface satisfaction, so any object
with a matching ``chat`` / ``chat_stream`` works, not only HTTPProvider
subclasses.

Rules for providers:
- Exactly one network attempt per invocation, no retries
- Raise on backend error (httpx.HTTPStatusError keeps the status code)
- No logging of request/response bodies
- Never set ChatResult.provider; the client attaches identity
"""

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

import httpx

from aiclient.types import ChatInput, ChatResult, StreamChunk

CONNECT_TIMEOUT_S = 10.0


@runtime_checkable
class LLMProvider(Protocol):
    """Anything that can answer a chat request."""

    async def chat(self, chat_input: ChatInput) -> ChatResult: ...


@runtime_checkable
class StreamingLLMProvider(LLMProvider, Protocol):
    """A provider that can also stream its answer."""

    def chat_stream(self, chat_input: ChatInput) -> AsyncIterator[StreamChunk]: ...


def supports_streaming(provider: object) -> bool:
    """Whether ``provider`` exposes a callable ``chat_stream``."""
    return callable(getattr(provider, "chat_stream", None))


class HTTPProvider:
    """Base for providers that talk JSON over a shared httpx.AsyncClient.

    Subclasses implement ``chat`` and may implement ``chat_stream``.
    """

    default_base_url: str = ""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_s: float = 60.0,
    ):
        """Initialize provider with shared HTTP client.

        Args:
            client: Shared httpx.AsyncClient for connection pooling.
            api_key: Provider API key.
            model: Model identifier sent to the provider.
            base_url: Override for the provider's API root.
            timeout_s: Transport-level read timeout. The client's own
                per-attempt deadline is enforced separately.
        """
        self._client = client
        self._api_key = api_key
        self._model = model
        self._base_url = (base_url or self.default_base_url).rstrip("/")
        self._timeout = httpx.Timeout(timeout_s, connect=CONNECT_TIMEOUT_S)

    @property
    def model(self) -> str:
        return self._model

    @property
    def base_url(self) -> str:
        return self._base_url
