"""Request / response / error observer registries.

Observers are plain callables, kept in registration order and never
removed. Dispatch is synchronous on the caller's event loop. A failing
observer is logged and skipped; it never interrupts the remaining
observers or the call that triggered it.
"""

from aiclient.config import ClientConfig
from aiclient.logging import get_logger
from aiclient.types import ChatInput, ChatResult, ErrorHook, RequestHook, ResponseHook

logger = get_logger(__name__)


class HookRegistry:
    """Append-only registries for the three hook kinds."""

    def __init__(self) -> None:
        self._request_hooks: list[RequestHook] = []
        self._response_hooks: list[ResponseHook] = []
        self._error_hooks: list[ErrorHook] = []

    def add_request_hook(self, hook: RequestHook) -> None:
        self._request_hooks.append(hook)

    def add_response_hook(self, hook: ResponseHook) -> None:
        self._response_hooks.append(hook)

    def add_error_hook(self, hook: ErrorHook) -> None:
        self._error_hooks.append(hook)

    def dispatch_request(self, config: ClientConfig, chat_input: ChatInput) -> None:
        for hook in self._request_hooks:
            try:
                hook(config, chat_input)
            except Exception as e:
                _log_hook_failure("request", hook, e)

    def dispatch_response(self, result: ChatResult) -> None:
        for hook in self._response_hooks:
            try:
                hook(result)
            except Exception as e:
                _log_hook_failure("response", hook, e)

    def dispatch_error(self, error: BaseException) -> None:
        for hook in self._error_hooks:
            try:
                hook(error)
            except Exception as e:
                _log_hook_failure("error", hook, e)


def _log_hook_failure(kind: str, hook: object, error: Exception) -> None:
    logger.warning(
        "hook.failed",
        hook_kind=kind,
        hook_name=getattr(hook, "__qualname__", type(hook).__name__),
        error_type=type(error).__name__,
    )
