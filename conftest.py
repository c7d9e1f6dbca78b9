import pytest

from dimensional_chat.context import ContextStore
from dimensional_chat.llm import CompletionResult, ServiceError


class StubCompletion:
    """Deterministic completion stand-in for tests.

    Queue replies (str) or errors (ServiceError) in call order. Raises if
    called more times than responses were provided. Every call is recorded
    as (system_prompt, messages, max_tokens).
    """

    def __init__(self, responses: list[str | ServiceError]) -> None:
        self._queue = list(responses)
        self.calls: list[tuple[str, list[dict[str, str]], int]] = []

    async def __call__(
        self, system_prompt: str, messages: list[dict[str, str]], max_tokens: int
    ) -> CompletionResult:
        self.calls.append((system_prompt, messages, max_tokens))
        if not self._queue:
            raise AssertionError(
                f"StubCompletion: unexpected call (no responses queued). calls so far: {len(self.calls)}"
            )
        item = self._queue.pop(0)
        if isinstance(item, ServiceError):
            raise item
        return CompletionResult(text=item, usage={"total_tokens": len(item)})


@pytest.fixture
def contexts() -> ContextStore:
    return ContextStore()


@pytest.fixture
def stub_completion():
    """Factory fixture: stub_completion(["reply", ServiceError(...), ...])."""
    return StubCompletion
