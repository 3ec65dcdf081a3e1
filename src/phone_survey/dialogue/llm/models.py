"""
Chat completion types used by answer analysis.

Each survey answer is analysed through a handful of short completions
(``AnalysisTask``); the task decides sampling temperature and reply length.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class LLMProvider(str, Enum):
    OPENAI = "openai"


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class AnalysisTask(str, Enum):
    """What a completion derives from a survey answer."""

    NUMERIC_VALUE = "numeric_value"
    KEY_INSIGHTS = "key_insights"
    FOLLOW_UP = "follow_up"


# (temperature, max_tokens) per task
TASK_SAMPLING: dict[AnalysisTask, tuple[float, int]] = {
    AnalysisTask.NUMERIC_VALUE: (0.0, 10),
    AnalysisTask.KEY_INSIGHTS: (0.3, 100),
    AnalysisTask.FOLLOW_UP: (0.7, 150),
}


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str


class ChatRequest(BaseModel):
    """One completion call; ``correlation_id`` ties provider logs to the call."""

    messages: list[ChatMessage]
    model: str | None = None
    temperature: float = 0.7
    max_tokens: int = 500
    task: AnalysisTask | None = None
    correlation_id: str = Field(default_factory=lambda: str(uuid4()))

    @classmethod
    def for_task(cls, task: AnalysisTask, messages: list[ChatMessage]) -> "ChatRequest":
        temperature, max_tokens = TASK_SAMPLING[task]
        return cls(messages=messages, temperature=temperature, max_tokens=max_tokens, task=task)


class ChatResponse(BaseModel):
    content: str
    model: str
    provider: LLMProvider
    task: AnalysisTask | None = None
    usage: dict[str, int] = Field(default_factory=dict)
    correlation_id: str
    latency_ms: float
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LLMError(Exception):
    """A completion could not be obtained.

    Callers in the call flow catch this base class and fall back to
    heuristics; subclasses exist for logging and tests.
    """

    def __init__(
        self,
        message: str,
        correlation_id: str | None = None,
        provider: LLMProvider | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.correlation_id = correlation_id
        self.provider = provider
        self.original_error = original_error


class LLMTimeoutError(LLMError):
    pass


class LLMRateLimitError(LLMError):
    def __init__(self, message: str, retry_after: float | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class LLMAuthenticationError(LLMError):
    pass


class LLMProviderError(LLMError):
    """Transport failures, non-200 replies and malformed bodies."""
