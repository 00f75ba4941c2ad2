"""Gemini provider.

- Non-streaming: POST {base_url}/models/{model}:generateContent
- Streaming: POST {base_url}/models/{model}:streamGenerateContent?alt=sse
  (default base_url https://generativelanguage.googleapis.com/v1beta)

Auth:
- Header: x-goog-api-key: <key>
- NEVER put key in query param

Message conversion:
- System messages → concatenated into systemInstruction.parts[0].text
- "assistant" role → "model" role
- Each message's content → parts: [{"text": "..."}]

Response (non-stream):
- content = concatenate candidates[0].content.parts[].text
- tokens_used = usageMetadata.totalTokenCount
- model = configured model (Gemini does not echo it reliably)
- finish_reason = candidates[0].finishReason
"""

import json
from collections.abc import AsyncIterator

from aiclient.errors import ProviderResponseError
from aiclient.providers.base import HTTPProvider
from aiclient.types import ChatInput, ChatResult, Message, StreamChunk

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiProvider(HTTPProvider):
    """Google Gemini generateContent API."""

    default_base_url = GEMINI_BASE_URL

    @property
    def generate_url(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    @property
    def stream_url(self) -> str:
        return f"{self._base_url}/models/{self._model}:streamGenerateContent?alt=sse"

    async def chat(self, chat_input: ChatInput) -> ChatResult:
        """Non-streaming content generation."""
        response = await self._client.post(
            self.generate_url,
            headers=self._build_headers(),
            json=self._build_request_body(chat_input),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return self._parse_response(response.json())

    async def chat_stream(self, chat_input: ChatInput) -> AsyncIterator[StreamChunk]:
        """Streaming content generation using Server-Sent Events."""
        async with self._client.stream(
            "POST",
            self.stream_url,
            headers=self._build_headers(),
            json=self._build_request_body(chat_input),
            timeout=self._timeout,
        ) as response:
            response.raise_for_status()

            async for line in response.aiter_lines():
                if not line or not line.startswith("data: "):
                    continue

                try:
                    data = json.loads(line[6:])
                except json.JSONDecodeError:
                    continue

                candidates = data.get("candidates") or []
                if not candidates:
                    continue

                candidate = candidates[0]
                yield StreamChunk(
                    content=self._candidate_text(candidate),
                    done=candidate.get("finishReason") is not None,
                )

    def _build_headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    def _build_request_body(self, chat_input: ChatInput) -> dict:
        system_parts: list[str] = []
        contents = []

        for message in chat_input.messages:
            if message.role == "system":
                system_parts.append(message.content)
            else:
                contents.append(self._message_to_content(message))

        generation_config: dict = {}
        if chat_input.temperature is not None:
            generation_config["temperature"] = chat_input.temperature
        if chat_input.max_tokens is not None:
            generation_config["maxOutputTokens"] = chat_input.max_tokens

        body: dict = {
            "contents": contents,
            "generationConfig": generation_config,
        }

        system_instruction = "\n".join(system_parts).strip()
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        return body

    def _message_to_content(self, message: Message) -> dict:
        role = "model" if message.role == "assistant" else "user"
        return {
            "role": role,
            "parts": [{"text": message.content}],
        }

    def _candidate_text(self, candidate: dict) -> str:
        parts = (candidate.get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    def _parse_response(self, data: dict) -> ChatResult:
        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderResponseError("Gemini response missing candidates", provider="gemini")

        candidate = candidates[0]
        usage_metadata = data.get("usageMetadata") or {}
        return ChatResult(
            content=self._candidate_text(candidate),
            tokens_used=usage_metadata.get("totalTokenCount"),
            model=self._model,
            finish_reason=candidate.get("finishReason"),
        )
