"""
Voice-friendly question text.

Pure string helpers used when authoring questions that will be read out by
TwiML ``<Say>``: add answer instructions, validate and suggest improvements.
"""

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

MULTIPLE_CHOICE = "Multiple-Choice"
YES_NO = "Yes-No"
NUMERIC = "Numeric"
OPEN_ENDED = "Open-Ended"

_VOICE_FRIENDLY_RE = re.compile(
    r"please say|please tell|please respond|please answer|please select|please choose",
    re.IGNORECASE,
)
_UI_TERMS = ("click", "select", "check")

MSG_EMPTY = "Question text cannot be empty"
MSG_PUNCTUATION = "Question should end with appropriate punctuation (?, ., !)"
MSG_FEW_OPTIONS = "Multiple-choice questions should have at least two options"
MSG_TOO_SHORT = "Question text is too short for clarity in voice interaction"

SUGGEST_QUESTION_MARK = "Consider phrasing as a question with a question mark"
SUGGEST_DESCRIPTIVE = "Consider making the question more descriptive for better voice understanding"
SUGGEST_UI_TERMS = (
    'Avoid UI-specific terms like "click", "select", or "check" in voice interactions'
)
SUGGEST_LONG_OPTIONS = (
    "Long multiple-choice options can be difficult to remember in voice interactions"
)
SUGGEST_MANY_OPTIONS = "Having more than 5 options can be overwhelming in voice interactions"


def _unpack(metadata: Any) -> tuple[str | None, list[str]]:
    if metadata is None:
        return None, []
    if isinstance(metadata, BaseModel):
        metadata = metadata.model_dump()
    if not isinstance(metadata, Mapping):
        return None, []
    options = metadata.get("options") or []
    return metadata.get("response_type"), [str(o) for o in options]


def is_voice_friendly(text: str) -> bool:
    """True when the text already tells the caller how to answer."""
    return bool(_VOICE_FRIENDLY_RE.search(text or ""))


def format_voice_question(text: str, metadata: Any = None) -> str:
    """Append punctuation and an answer instruction suited to the response type.

    Text that is already voice friendly is returned untouched, which makes the
    function idempotent on its own output.
    """
    if is_voice_friendly(text):
        return text

    formatted = (text or "").strip()
    if not formatted.endswith("?") and not formatted.endswith("."):
        formatted += "?"

    response_type, options = _unpack(metadata)
    if not response_type:
        return f"{formatted} Please respond with your answer."

    if response_type == MULTIPLE_CHOICE:
        if options:
            quoted = ", ".join(f'"{option}"' for option in options)
            return f"{formatted} Please say one of the following: {quoted}."
        return f"{formatted} Please select one of the options."
    if response_type == YES_NO:
        return f'{formatted} Please say "Yes" or "No".'
    if response_type == NUMERIC:
        return f"{formatted} Please say a number."
    if response_type == OPEN_ENDED:
        return f"{formatted} Please tell me in your own words."
    return f"{formatted} Please respond with your answer."


def validate_voice_question(text: str, metadata: Any = None) -> str | None:
    """Return the first validation problem, or None when the question is usable."""
    stripped = (text or "").strip()
    if not stripped:
        return MSG_EMPTY

    response_type, options = _unpack(metadata)
    if response_type == MULTIPLE_CHOICE and len(options) < 2:
        return MSG_FEW_OPTIONS

    if len(stripped) < 10:
        return MSG_TOO_SHORT

    if not stripped.endswith(("?", ".", "!")):
        return MSG_PUNCTUATION

    return None


def suggest_voice_improvements(text: str, metadata: Any = None) -> list[str]:
    """Independent, advisory hints; unlike validation all matches are returned."""
    text = text or ""
    suggestions: list[str] = []

    if "?" not in text:
        suggestions.append(SUGGEST_QUESTION_MARK)

    if len(text.strip()) < 15:
        suggestions.append(SUGGEST_DESCRIPTIVE)

    if any(term in text for term in _UI_TERMS):
        suggestions.append(SUGGEST_UI_TERMS)

    response_type, options = _unpack(metadata)
    if response_type == MULTIPLE_CHOICE:
        if any(len(option) > 30 for option in options):
            suggestions.append(SUGGEST_LONG_OPTIONS)
        if len(options) > 5:
            suggestions.append(SUGGEST_MANY_OPTIONS)

    return suggestions
