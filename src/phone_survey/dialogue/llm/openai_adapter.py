"""
OpenAI chat completions adapter over httpx.
"""

import time

import httpx

from phone_survey.dialogue.llm.gateway import BaseLLMAdapter
from phone_survey.dialogue.llm.models import (
    ChatRequest,
    ChatResponse,
    LLMAuthenticationError,
    LLMProvider,
    LLMProviderError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIAdapter(BaseLLMAdapter):
    """OpenAI HTTP adapter (chat / text only)."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "gpt-3.5-turbo",
        timeout_seconds: float = 30.0,
        base_url: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(api_key, default_model, timeout_seconds)
        self._base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self._chat_endpoint = f"{self._base_url}/chat/completions"
        self._http_client = http_client

    @property
    def provider(self) -> LLMProvider:
        return LLMProvider.OPENAI

    def _post(self, payload: dict, headers: dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.post(self._chat_endpoint, json=payload, headers=headers)
        with httpx.Client(timeout=self._timeout_seconds) as client:
            return client.post(self._chat_endpoint, json=payload, headers=headers)

    def chat_completion_sync(self, request: ChatRequest) -> ChatResponse:
        payload = {
            "model": request.model or self._default_model,
            "messages": [
                {"role": m.role.value, "content": m.content}
                for m in request.messages
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        started = time.perf_counter()
        try:
            r = self._post(payload, headers)
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                "OpenAI request timed out",
                correlation_id=request.correlation_id,
                provider=self.provider,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise LLMProviderError(
                f"OpenAI transport error: {e!s}",
                correlation_id=request.correlation_id,
                provider=self.provider,
                original_error=e,
            ) from e
        latency_ms = (time.perf_counter() - started) * 1000

        if r.status_code == 401:
            raise LLMAuthenticationError(
                "OpenAI rejected the API key",
                correlation_id=request.correlation_id,
                provider=self.provider,
            )
        if r.status_code == 429:
            retry_after = r.headers.get("retry-after")
            raise LLMRateLimitError(
                "OpenAI rate limit exceeded",
                retry_after=float(retry_after) if retry_after else None,
                correlation_id=request.correlation_id,
                provider=self.provider,
            )
        if r.status_code != 200:
            logger.error(
                "OpenAI chat completion failed",
                extra={
                    "status_code": r.status_code,
                    "task": request.task.value if request.task else None,
                    "llm_correlation_id": request.correlation_id,
                },
            )
            raise LLMProviderError(
                f"OpenAI error {r.status_code}",
                provider=self.provider,
                correlation_id=request.correlation_id,
            )

        data = r.json()
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise LLMProviderError(
                "Malformed OpenAI response",
                correlation_id=request.correlation_id,
                provider=self.provider,
                original_error=e,
            ) from e

        return ChatResponse(
            content=content.strip(),
            model=data.get("model", payload["model"]),
            provider=self.provider,
            task=request.task,
            usage={k: v for k, v in (data.get("usage") or {}).items() if isinstance(v, int)},
            correlation_id=request.correlation_id,
            latency_ms=latency_ms,
        )
