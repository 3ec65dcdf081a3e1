"""
LLM gateway module for chat completion integration.
"""

from phone_survey.dialogue.llm.factory import create_llm_gateway, get_optional_llm_gateway
from phone_survey.dialogue.llm.gateway import BaseLLMAdapter, LLMGateway
from phone_survey.dialogue.llm.models import (
    AnalysisTask,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    LLMError,
    LLMProvider,
    MessageRole,
)
from phone_survey.dialogue.llm.openai_adapter import OpenAIAdapter

__all__ = [
    "AnalysisTask",
    "BaseLLMAdapter",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "LLMError",
    "LLMGateway",
    "LLMProvider",
    "MessageRole",
    "OpenAIAdapter",
    "create_llm_gateway",
    "get_optional_llm_gateway",
]
