"""Async client for an OpenAI-compatible chat-completion server (LM Studio by default)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from applypilot.exceptions import LLMResponseError, LLMTransportError, ModelNotConfiguredError
from applypilot.settings import AppSettings

logger = logging.getLogger(__name__)

Message = dict[str, str]


class LLMClient:
    """Stateless request/response wrapper around ``/v1/chat/completions``."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:1234",
        model: str = "",
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "LLMClient":
        return cls(
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout_s=settings.llm_timeout_s,
        )

    @property
    def model(self) -> str:
        return self._model

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.request(method, path, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            raise LLMTransportError(
                f"{method} {path} failed with {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise LLMTransportError(f"{method} {path} failed: {exc}") from exc

    async def list_models(self) -> list[str]:
        payload = await self._request("GET", "/v1/models")
        return [m.get("id", "") for m in payload.get("data", []) if m.get("id")]

    async def test_connection(self) -> bool:
        try:
            await self.list_models()
        except LLMTransportError as exc:
            logger.warning("LLM server at %s unreachable: %s", self._base_url, exc)
            return False
        return True

    async def chat_completion(
        self,
        messages: list[Message],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        model: str | None = None,
    ) -> dict[str, Any]:
        """POST *messages* and return the raw completion payload.

        Raises :class:`ModelNotConfiguredError` before any network call when
        neither *model* nor the client default names a model.
        """
        model = model or self._model
        if not model:
            raise ModelNotConfiguredError("No model specified. Please select a model in settings.")

        body = {
            "model": model,
            "messages": messages,
            "temperature": self._temperature if temperature is None else temperature,
            "max_tokens": self._max_tokens if max_tokens is None else max_tokens,
            "stream": False,
        }
        logger.debug("Chat completion: model=%s, %d message(s).", model, len(messages))
        return await self._request("POST", "/v1/chat/completions", json=body)

    async def generate_with_system_prompt(
        self, system_prompt: str, user_message: str, **options: Any
    ) -> str:
        response = await self.chat_completion(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            **options,
        )
        return first_choice_content(response)


def first_choice_content(response: dict[str, Any]) -> str:
    """Return ``choices[0].message.content`` or raise :class:`LLMResponseError`."""
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMResponseError(f"Completion response has no message content: {response!r}") from exc
    return content or ""
