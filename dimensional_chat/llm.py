"""Chat-completion client: HTTP connection to a DeepSeek / OpenAI-style backend.

The pipeline injects a completion callable matching the protocol:

    async def __call__(self, system_prompt: str, messages: list[dict], max_tokens: int) -> CompletionResult: ...

`messages` is the ordered conversation after the system prompt, each item
{"role": "user"|"assistant", "content": "..."}.

Two implementations are provided:

    HttpCompletion   real HTTP client for POST /v1/chat/completions.
    EchoCompletion   returns the last user message. Useful for running the
                     server without an API key.

Tests use StubCompletion (defined in the test helpers) instead.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CompletionResult(BaseModel):
    text: str
    usage: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Protocol: every completion implementation must match this signature
# ---------------------------------------------------------------------------

class Completion(Protocol):
    async def __call__(
        self, system_prompt: str, messages: list[dict[str, str]], max_tokens: int
    ) -> CompletionResult: ...


# ---------------------------------------------------------------------------
# ServiceError: raised for all connection and protocol failures
# ---------------------------------------------------------------------------

ServiceErrorKind = Literal["auth", "rate_limited", "server_error", "network", "timeout"]

_USER_MESSAGES: dict[str, str] = {
    "auth": "API密钥错误，请检查配置",
    "rate_limited": "请求过于频繁，请稍后再试",
    "server_error": "DeepSeek服务暂时繁忙，请稍后再试",
    "network": "无法连接到AI服务，请检查网络连接",
    "timeout": "AI服务响应超时，请稍后再试",
}


class ServiceError(RuntimeError):
    """Raised when the completion backend cannot be reached or returns an error."""

    def __init__(self, kind: ServiceErrorKind, detail: str) -> None:
        super().__init__(detail)
        self.kind = kind

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.kind]


def _kind_for_status(status: int) -> ServiceErrorKind:
    if status in (401, 403):
        return "auth"
    if status == 429:
        return "rate_limited"
    return "server_error"


# ---------------------------------------------------------------------------
# HttpCompletion: connects to a real backend
# ---------------------------------------------------------------------------

class HttpCompletion:
    """Async HTTP client for OpenAI-compatible chat completions.

    Request:  POST {api_url}  {"model", "messages", "temperature", "max_tokens", "stream": false}
    Response: {"choices": [{"message": {"content": "..."}}], "usage": {...}}

    Args:
        api_url:     Full endpoint URL, e.g. "https://api.deepseek.com/v1/chat/completions".
        api_key:     Bearer token, or empty string if not required.
        model:       Model identifier. Defaults to "deepseek-chat".
        temperature: Sampling temperature. Defaults to 0.7.
        timeout:     HTTP timeout in seconds. Defaults to 30.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        model: str = "deepseek-chat",
        temperature: float = 0.7,
        timeout: float = 30.0,
    ) -> None:
        self._url = api_url
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_body(
        self, system_prompt: str, messages: list[dict[str, str]], max_tokens: int
    ) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": self._temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }

    def _parse_response(self, data: Any) -> CompletionResult:
        """Extract the reply text and usage from the response body."""
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ServiceError(
                "server_error", "Unexpected response format from completion backend"
            ) from e
        if not isinstance(content, str):
            raise ServiceError("server_error", "Unexpected response format from completion backend")
        return CompletionResult(text=content.strip(), usage=data.get("usage"))

    async def __call__(
        self, system_prompt: str, messages: list[dict[str, str]], max_tokens: int
    ) -> CompletionResult:
        body = self._build_body(system_prompt, messages, max_tokens)
        logger.debug(
            "completion call url=%s messages=%d prompt_len=%d max_tokens=%d",
            self._url, len(body["messages"]), len(system_prompt), max_tokens,
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise ServiceError("timeout", f"Completion backend timed out after {self._timeout}s") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ServiceError(_kind_for_status(status), f"Completion backend returned HTTP {status}") from e
        except httpx.RequestError as e:
            raise ServiceError("network", f"Cannot connect to completion backend at {self._url}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError("server_error", "Completion backend returned invalid JSON") from e

        result = self._parse_response(data)
        logger.debug("completion response len=%d usage=%s", len(result.text), result.usage)
        return result


# ---------------------------------------------------------------------------
# EchoCompletion: no network; echoes the user's last message
# ---------------------------------------------------------------------------

class EchoCompletion:
    """Returns the latest user message as the reply. No network calls.

    Lets you exercise selection, continuity, and normalisation end-to-end
    without an API key.
    """

    async def __call__(
        self, system_prompt: str, messages: list[dict[str, str]], max_tokens: int
    ) -> CompletionResult:
        logger.debug("EchoCompletion prompt_len=%d max_tokens=%d", len(system_prompt), max_tokens)
        for msg in reversed(messages):
            if msg["role"] == "user":
                return CompletionResult(text=msg["content"])
        return CompletionResult(text="")
