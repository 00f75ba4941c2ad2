"""OpenAI-compatible chat completions provider.

- Endpoint: POST {base_url}/chat/completions (default https://api.openai.com/v1)
- Headers: Authorization: Bearer <key>, Content-Type: application/json
- Streaming: Server-Sent Events with data: {...} format
- Terminal event: data: [DONE]

Request body:
{
  "model": "<model>",
  "messages": [{"role": "user", "content": "..."}],
  "max_tokens": 1024,        (only when set)
  "temperature": 0.7,        (only when set)
  "stream": false
}

Response (non-stream) - extract:
- content = choices[0].message.content (null → "")
- tokens_used = usage.total_tokens
- model = body model
- finish_reason = choices[0].finish_reason

Stream: every event with a delta yields a chunk; done = finish_reason is set.
"""

import json
from collections.abc import AsyncIterator

from aiclient.errors import ProviderResponseError
from aiclient.providers.base import HTTPProvider
from aiclient.types import ChatInput, ChatResult, Message, StreamChunk

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIProvider(HTTPProvider):
    """OpenAI (or OpenAI-compatible) chat completions."""

    default_base_url = OPENAI_BASE_URL

    @property
    def chat_url(self) -> str:
        return f"{self._base_url}/chat/completions"

    async def chat(self, chat_input: ChatInput) -> ChatResult:
        """Non-streaming chat completion."""
        response = await self._client.post(
            self.chat_url,
            headers=self._build_headers(),
            json=self._build_request_body(chat_input, stream=False),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return self._parse_response(response.json())

    async def chat_stream(self, chat_input: ChatInput) -> AsyncIterator[StreamChunk]:
        """Streaming chat completion using Server-Sent Events."""
        async with self._client.stream(
            "POST",
            self.chat_url,
            headers=self._build_headers(),
            json=self._build_request_body(chat_input, stream=True),
            timeout=self._timeout,
        ) as response:
            response.raise_for_status()

            async for line in response.aiter_lines():
                if not line or not line.startswith("data: "):
                    continue

                data_str = line[6:]
                if data_str == "[DONE]":
                    break

                try:
                    data = json.loads(data_str)
                except json.JSONDecodeError:
                    continue

                choices = data.get("choices") or []
                if not choices:
                    continue

                delta = choices[0].get("delta") or {}
                finish_reason = choices[0].get("finish_reason")
                yield StreamChunk(
                    content=delta.get("content") or "",
                    done=finish_reason is not None,
                )

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _build_request_body(self, chat_input: ChatInput, stream: bool) -> dict:
        body: dict = {
            "model": self._model,
            "messages": [self._message_to_wire(m) for m in chat_input.messages],
            "stream": stream,
        }
        if chat_input.temperature is not None:
            body["temperature"] = chat_input.temperature
        if chat_input.max_tokens is not None:
            body["max_tokens"] = chat_input.max_tokens
        return body

    def _message_to_wire(self, message: Message) -> dict[str, str]:
        # OpenAI uses the same role names as Message.
        return {"role": message.role, "content": message.content}

    def _parse_response(self, data: dict) -> ChatResult:
        choices = data.get("choices") or []
        if not choices or "message" not in choices[0]:
            raise ProviderResponseError("No response from OpenAI", provider="openai")

        choice = choices[0]
        usage = data.get("usage") or {}
        return ChatResult(
            content=choice["message"].get("content") or "",
            tokens_used=usage.get("total_tokens"),
            model=data.get("model"),
            finish_reason=choice.get("finish_reason"),
        )
