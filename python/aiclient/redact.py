"""Log guard for llm.* events.

Events may carry sizes, hashes, token counts, latency and status codes.
They never carry keys, prompts, message content or model output; a field
naming one of those is only allowed with a ``_sha256``/``_hash`` or
``_chars``/``_length`` suffix.
"""

import hashlib
import os

import structlog

FORBIDDEN_KEYS = frozenset(
    {
        "prompt",
        "content",
        "api_key",
        "bearer",
        "token",
        "secret",
        "messages",
        "text",
        "output_text",
        "raw_body",
    }
)

REDACTED_SUFFIXES = ("_sha256", "_hash", "_length", "_chars")

# Environments where a forbidden field is a bug worth failing loudly on
STRICT_ENVS = ("local", "test")


def hash_text(value: str) -> str:
    """SHA-256 hex digest, for correlating prompts across events."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def safe_kv(*, _env: str | None = None, **fields) -> dict:
    """Return ``fields`` unchanged after checking them against FORBIDDEN_KEYS.

    ``_env`` overrides AICLIENT_ENV. In local/test a violation raises
    ValueError; elsewhere it is logged as ``safe_kv_violation`` (key names
    only) and the fields pass through.
    """
    violations = [
        key for key in fields if key in FORBIDDEN_KEYS and not key.endswith(REDACTED_SUFFIXES)
    ]
    if not violations:
        return fields

    env = _env or os.environ.get("AICLIENT_ENV", "prod")
    if env in STRICT_ENVS:
        raise ValueError(f"Forbidden log keys without redacted suffix: {violations}")

    structlog.get_logger(__name__).warning("safe_kv_violation", forbidden_keys=violations)
    return fields
