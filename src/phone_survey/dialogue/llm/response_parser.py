"""
Parsing of model replies into typed values.
"""

import re

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_NULL_REPLIES = {"", "null", "none", "n/a", "na"}


def parse_numeric_reply(content: str | None) -> float | None:
    """Read the first number of a reply; ``null``-like replies yield None."""
    text = (content or "").strip().strip('"').strip("'").lower()
    if text in _NULL_REPLIES:
        return None
    match = _NUMBER_RE.search(text)
    if match is None:
        return None
    return float(match.group(0))


def parse_text_reply(content: str | None) -> str | None:
    """Strip quotes and whitespace; empty or ``null`` replies yield None."""
    text = (content or "").strip().strip('"').strip()
    if text.lower() in _NULL_REPLIES:
        return None
    return text
