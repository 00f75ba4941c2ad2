"""Pytest configuration and fixtures for aiclient tests.

Test isolation strategy:
- No network: providers are replaced by scripted doubles or respx mocks
- Settings cache is cleared around every test that reads the environment
- structlog output is captured with the log_sink fixture when asserted on
"""

from collections.abc import Generator

import pytest
import structlog

from aiclient.config import clear_settings_cache
from aiclient.logging import add_call_context
from tests.helpers import ScriptedProvider, StreamingScriptedProvider

AI_ENV_VARS = (
    "AI_PROVIDER",
    "PROVIDER",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_AI_API_KEY",
    "AI_MODEL",
    "MODEL",
    "AI_TEMPERATURE",
    "AI_MAX_TOKENS",
    "AI_TIMEOUT",
    "AI_MAX_RETRIES",
    "AI_RETRY_DELAY",
    "AI_BASE_URL",
    "AICLIENT_LOG_JSON",
)


@pytest.fixture
def scripted_provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def streaming_provider() -> StreamingScriptedProvider:
    return StreamingScriptedProvider()


@pytest.fixture
def clean_env(monkeypatch) -> Generator[pytest.MonkeyPatch, None, None]:
    """Remove every AI_* variable and reset the settings cache."""
    for name in AI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir("/")  # keep a developer's .env out of the test
    clear_settings_cache()
    yield monkeypatch
    clear_settings_cache()


@pytest.fixture
def log_sink():
    """Configure structlog to capture events into a list.

    Returns a list that will contain all emitted log event dicts.
    After the test, structlog is reset to its previous configuration.
    """
    events: list[dict] = []
    original_config = structlog.get_config()

    def capture_processor(logger, method_name, event_dict):
        event_dict["level"] = method_name
        events.append(event_dict.copy())
        raise structlog.DropEvent

    structlog.configure(
        processors=[add_call_context, capture_processor],
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    yield events

    structlog.configure(**original_config)
