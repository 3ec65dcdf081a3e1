"""
Unit tests for LLM gateway models.
"""

import pytest
from pydantic import ValidationError

from phone_survey.dialogue.llm.models import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    AnalysisTask,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    LLMTimeoutError,
    MessageRole,
)


class TestMessageRole:
    def test_message_roles_exist(self) -> None:
        assert MessageRole.SYSTEM.value == "system"
        assert MessageRole.USER.value == "user"
        assert MessageRole.ASSISTANT.value == "assistant"


class TestChatMessage:
    def test_is_frozen(self) -> None:
        message = ChatMessage(role=MessageRole.USER, content="Hello")
        with pytest.raises(ValidationError):
            message.content = "changed"


class TestChatRequest:
    def test_defaults(self) -> None:
        request = ChatRequest(messages=[ChatMessage(role=MessageRole.USER, content="Hi")])
        assert request.model is None
        assert request.temperature == 0.7
        assert request.max_tokens == 500
        assert request.correlation_id

    def test_correlation_ids_are_unique(self) -> None:
        first = ChatRequest(messages=[])
        second = ChatRequest(messages=[])
        assert first.correlation_id != second.correlation_id

    @pytest.mark.parametrize(
        ("task", "temperature", "max_tokens"),
        [
            (AnalysisTask.NUMERIC_VALUE, 0.0, 10),
            (AnalysisTask.KEY_INSIGHTS, 0.3, 100),
            (AnalysisTask.FOLLOW_UP, 0.7, 150),
        ],
    )
    def test_for_task_sampling(
        self, task: AnalysisTask, temperature: float, max_tokens: int
    ) -> None:
        request = ChatRequest.for_task(task, [ChatMessage(role=MessageRole.USER, content="4")])
        assert request.task is task
        assert request.temperature == temperature
        assert request.max_tokens == max_tokens


class TestChatResponse:
    def test_created_at_is_set(self) -> None:
        response = ChatResponse(
            content="4",
            model="gpt-3.5-turbo",
            provider=LLMProvider.OPENAI,
            correlation_id="abc",
            latency_ms=12.5,
        )
        assert response.created_at.tzinfo is not None
        assert response.usage == {}


class TestErrors:
    def test_error_carries_context(self) -> None:
        cause = RuntimeError("socket closed")
        error = LLMTimeoutError(
            "timed out", correlation_id="abc", provider=LLMProvider.OPENAI, original_error=cause
        )
        assert isinstance(error, LLMError)
        assert error.correlation_id == "abc"
        assert error.original_error is cause

    def test_rate_limit_retry_after(self) -> None:
        error = LLMRateLimitError("slow down", retry_after=2.0, correlation_id="x")
        assert error.retry_after == 2.0
        assert error.correlation_id == "x"
