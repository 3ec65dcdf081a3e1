"""
LLM gateway interface definition.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from phone_survey.dialogue.llm.models import ChatRequest, ChatResponse, LLMProvider


@runtime_checkable
class LLMGateway(Protocol):
    """Protocol for LLM gateway implementations."""

    @property
    def provider(self) -> LLMProvider:
        """Get the LLM provider type."""
        ...

    @property
    def default_model(self) -> str:
        """Get the default model for this provider."""
        ...

    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        """Execute a chat completion request.

        Args:
            request: The chat request containing messages and parameters.

        Returns:
            ChatResponse with the completion result.

        Raises:
            LLMTimeoutError: If the request times out.
            LLMRateLimitError: If rate limited by the provider.
            LLMAuthenticationError: If authentication fails.
            LLMProviderError: For other provider errors.
        """
        ...

    def chat_completion_sync(self, request: ChatRequest) -> ChatResponse:
        """Synchronous version of chat completion."""
        ...


class BaseLLMAdapter(ABC):
    """Base class for LLM adapter implementations."""

    def __init__(
        self,
        api_key: str,
        default_model: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: API key for the provider.
            default_model: Default model to use.
            timeout_seconds: Request timeout in seconds.
        """
        self._api_key = api_key
        self._default_model = default_model
        self._timeout_seconds = timeout_seconds

    @property
    @abstractmethod
    def provider(self) -> LLMProvider:
        """Get the LLM provider type."""
        raise NotImplementedError

    @property
    def default_model(self) -> str:
        return self._default_model

    async def chat_completion(self, request: ChatRequest) -> ChatResponse:
        """Run the blocking implementation in a worker thread."""
        return await asyncio.to_thread(self.chat_completion_sync, request)

    @abstractmethod
    def chat_completion_sync(self, request: ChatRequest) -> ChatResponse:
        """Execute a chat completion request synchronously."""
        raise NotImplementedError
