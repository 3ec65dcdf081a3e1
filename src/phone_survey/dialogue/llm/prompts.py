"""
Prompt templates for answer analysis.
"""

from phone_survey.dialogue.llm.models import ChatMessage, MessageRole

FOLLOW_UP_SYSTEM_PROMPT = (
    "You are an assistant that generates follow-up questions for a survey. "
    "Generate a single follow-up question based on the original question and the answer "
    "provided. Make it personal, insightful, and engaging."
)

FOLLOW_UP_USER_TEMPLATE = (
    'Original question: "{question}"\n'
    'Answer: "{answer}"\n'
    "Generate a follow-up question:"
)

NUMERIC_SYSTEM_PROMPT = """You extract a single numeric value from a survey answer.
Rules:
- If the answer is a number or a number word, return that number.
- Impact scales: "No impact" = 1, "Minor impact" = 2, "Moderate impact" = 3, "Severe impact" = 4.
- Yes = 1, No = 0.
- For a range such as "1 to 3 days" return the average of the bounds.
- If no numeric value applies, return null.
Reply with the number or null only."""

NUMERIC_USER_TEMPLATE = 'Question: "{question}"\nAnswer: "{answer}"\nNumeric value:'

INSIGHTS_SYSTEM_PROMPT = (
    "You summarise survey answers. Extract the key insight from the answer in 1-2 sentences. "
    "If the answer carries no meaningful information, reply with an empty string."
)

INSIGHTS_USER_TEMPLATE = 'Question: "{question}"\nAnswer: "{answer}"\nKey insight:'


def _messages(system: str, user: str) -> list[ChatMessage]:
    return [
        ChatMessage(role=MessageRole.SYSTEM, content=system),
        ChatMessage(role=MessageRole.USER, content=user),
    ]


def build_follow_up_messages(question: str, answer: str) -> list[ChatMessage]:
    return _messages(
        FOLLOW_UP_SYSTEM_PROMPT,
        FOLLOW_UP_USER_TEMPLATE.format(question=question, answer=answer),
    )


def build_numeric_messages(question: str, answer: str) -> list[ChatMessage]:
    return _messages(
        NUMERIC_SYSTEM_PROMPT,
        NUMERIC_USER_TEMPLATE.format(question=question, answer=answer),
    )


def build_insights_messages(question: str, answer: str) -> list[ChatMessage]:
    return _messages(
        INSIGHTS_SYSTEM_PROMPT,
        INSIGHTS_USER_TEMPLATE.format(question=question, answer=answer),
    )
