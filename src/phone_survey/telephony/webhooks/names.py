"""
Name detection in short spoken phrases.
"""

import re

DEFAULT_NAME = "there"

# Stored contact names that may be replaced by a name the callee states
GENERIC_NAMES = {"user", "unknown", "contact", "customer", "patient"}

_ACKNOWLEDGEMENTS = re.compile(r"^(yes|no|yeah|nope|sure|okay|ok)$", re.IGNORECASE)

_NAME_PATTERNS = (
    re.compile(r"my name is (\w+)", re.IGNORECASE),
    re.compile(r"this is (\w+)", re.IGNORECASE),
    re.compile(r"(\w+) speaking", re.IGNORECASE),
    re.compile(r"call me (\w+)", re.IGNORECASE),
    re.compile(r"i am (\w+)", re.IGNORECASE),
    re.compile(r"i'm (\w+)", re.IGNORECASE),
)


def _clean(word: str) -> str:
    return word.strip(" .,!?;:\"'")


def detect_greeting_name(speech: str | None, default_name: str = DEFAULT_NAME) -> str:
    """Name to greet the callee with, based on how they answered the phone.

    The expected name wins when it is heard; otherwise "this is NAME" and
    "NAME speaking" are recognised. Falls back to ``default_name``.
    """
    if not speech:
        return default_name

    lowered = speech.lower()
    if default_name != DEFAULT_NAME and default_name.lower() in lowered:
        return default_name

    if "this is " in lowered:
        start = lowered.index("this is ") + len("this is ")
        words = speech[start:].split()
        if words and _clean(words[0]):
            return _clean(words[0])
    elif " speaking" in lowered:
        words = speech[: lowered.index(" speaking")].split()
        if words and _clean(words[-1]):
            return _clean(words[-1])

    return default_name


def extract_stated_name(text: str | None) -> str | None:
    """A name volunteered in an answer ("my name is ...", "call me ..."), if any."""
    text = (text or "").strip()
    if len(text) < 3 or _ACKNOWLEDGEMENTS.match(text):
        return None

    for pattern in _NAME_PATTERNS:
        match = pattern.search(text)
        if match:
            name = match.group(1).strip()
            if len(name) >= 3 and not _ACKNOWLEDGEMENTS.match(name):
                return name
    return None
