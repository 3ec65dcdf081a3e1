"""
Light analysis of survey answers.

The language model derives a numeric value, a key insight and a follow-up
question from each answer. Every method degrades to a deterministic result
when no gateway is configured or the provider call fails, so callers in the
live call flow never see an LLM exception.
"""

import re
from dataclasses import dataclass

from phone_survey.dialogue.llm.gateway import LLMGateway
from phone_survey.dialogue.llm.models import AnalysisTask, ChatMessage, ChatRequest, LLMError
from phone_survey.dialogue.llm.prompts import (
    build_follow_up_messages,
    build_insights_messages,
    build_numeric_messages,
)
from phone_survey.dialogue.llm.response_parser import parse_numeric_reply, parse_text_reply
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FOLLOW_UP = "Could you tell me more about that?"

_DIGIT_RE = re.compile(r"\b([0-9]|10)\b")
_NUMBER_WORDS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}
_YES_RE = re.compile(r"\b(yes|yeah|yep)\b", re.IGNORECASE)
_NO_RE = re.compile(r"\b(no|nope)\b", re.IGNORECASE)


def heuristic_numeric_value(answer: str) -> float | None:
    """Digits 0-10, then number words, then yes/no."""
    text = (answer or "").lower()
    match = _DIGIT_RE.search(text)
    if match:
        return float(match.group(1))
    for word, value in _NUMBER_WORDS.items():
        if re.search(rf"\b{word}\b", text):
            return float(value)
    if _YES_RE.search(text):
        return 1.0
    if _NO_RE.search(text):
        return 0.0
    return None


@dataclass(frozen=True)
class AnswerAnalysis:
    numeric_value: float | None
    key_insights: str | None


class ResponseAnalyzer:
    """Derives numeric values, insights and follow-ups from answers."""

    def __init__(self, gateway: LLMGateway | None = None) -> None:
        self._gateway = gateway

    async def _complete(self, task: AnalysisTask, messages: list[ChatMessage]) -> str | None:
        if self._gateway is None:
            return None
        try:
            response = await self._gateway.chat_completion(ChatRequest.for_task(task, messages))
        except LLMError as e:
            logger.warning(
                "LLM call failed, using fallback",
                extra={"task": task.value, "error": str(e), "llm_correlation_id": e.correlation_id},
            )
            return None
        return response.content

    async def extract_numeric_value(self, question: str, answer: str) -> float | None:
        content = await self._complete(
            AnalysisTask.NUMERIC_VALUE, build_numeric_messages(question, answer)
        )
        if content is None:
            return heuristic_numeric_value(answer)
        return parse_numeric_reply(content)

    async def extract_key_insights(self, question: str, answer: str) -> str | None:
        content = await self._complete(
            AnalysisTask.KEY_INSIGHTS, build_insights_messages(question, answer)
        )
        return parse_text_reply(content)

    async def generate_follow_up(self, question: str, answer: str) -> str:
        content = await self._complete(
            AnalysisTask.FOLLOW_UP, build_follow_up_messages(question, answer)
        )
        return parse_text_reply(content) or DEFAULT_FOLLOW_UP

    async def analyze(self, question: str, answer: str) -> AnswerAnalysis:
        return AnswerAnalysis(
            numeric_value=await self.extract_numeric_value(question, answer),
            key_insights=await self.extract_key_insights(question, answer),
        )
