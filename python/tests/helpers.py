"""Test helpers: provider doubles and config builders.

Provides:
- ScriptedProvider / StreamingScriptedProvider: in-memory provider doubles
- http_status_error: the exception httpx raises for non-2xx responses
- make_config: ClientConfig with fast test defaults
"""

import asyncio
from collections.abc import AsyncIterator

import httpx

from aiclient.config import ClientConfig
from aiclient.types import ChatInput, ChatResult, StreamChunk


def http_status_error(status_code: int, url: str = "https://api.test/v1") -> httpx.HTTPStatusError:
    """Build the exception httpx raises from raise_for_status()."""
    request = httpx.Request("POST", url)
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class ScriptedProvider:
    """Provider double that replays a script of results and exceptions.

    Each chat() call consumes the next outcome; the last outcome repeats
    once the script runs out. No chat_stream, so it cannot stream.
    """

    def __init__(
        self,
        outcomes: list[ChatResult | BaseException] | None = None,
        delay_s: float = 0.0,
    ):
        self.outcomes = outcomes or [
            ChatResult(content="Mocked response", tokens_used=100, model="gpt-4o-mini")
        ]
        self.delay_s = delay_s
        self.calls: list[ChatInput] = []

    async def chat(self, chat_input: ChatInput) -> ChatResult:
        self.calls.append(chat_input)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class StreamingScriptedProvider(ScriptedProvider):
    """Scripted provider that can also stream a fixed chunk sequence."""

    def __init__(
        self,
        chunks: list[StreamChunk] | None = None,
        fail_after: int | None = None,
        error: BaseException | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.chunks = chunks or [
            StreamChunk(content="Mocked ", done=False),
            StreamChunk(content="stream", done=False),
            StreamChunk(content=" response", done=True),
        ]
        self.fail_after = fail_after
        self.error = error or RuntimeError("connection dropped")
        self.stream_calls: list[ChatInput] = []
        self.closed = False

    async def chat_stream(self, chat_input: ChatInput) -> AsyncIterator[StreamChunk]:
        self.stream_calls.append(chat_input)
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_after is not None and index == self.fail_after:
                    raise self.error
                yield chunk
        finally:
            self.closed = True


def make_config(**overrides) -> ClientConfig:
    """Build a ClientConfig with fast test defaults + overrides."""
    defaults = {
        "provider": "openai",
        "api_key": "test-key",
        "timeout_s": 5.0,
        "retry_delay_s": 0.0,
    }
    defaults.update(overrides)
    return ClientConfig(**defaults)
