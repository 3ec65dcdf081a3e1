"""
Call-flow state machine.

Twilio drives the conversation through webhook callbacks; each callback is
one state of the flow:

    GREETING -> CONTINUE_SURVEY(n) -> RESPONSE(n) -> CONTINUE_SURVEY(n+1) | TERMINATED

The current state and question index are kept per call in
``CallQueueEntry.call_metadata`` under ``FLOW_KEY``. Twilio remains
authoritative for what happens next: an unexpected transition is logged
and recorded, never refused.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from phone_survey.calls.models import CallQueueEntry
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)

FLOW_KEY = "survey_flow_v1"
_HISTORY_LIMIT = 50


class FlowState(str, Enum):
    GREETING = "greeting"
    CONTINUE_SURVEY = "continue_survey"
    RESPONSE = "response"
    TERMINATED = "terminated"


# None is the state of a call that has not reached any webhook yet.
TRANSITIONS: dict[FlowState | None, frozenset[FlowState]] = {
    None: frozenset({FlowState.GREETING, FlowState.CONTINUE_SURVEY}),
    FlowState.GREETING: frozenset({FlowState.CONTINUE_SURVEY, FlowState.TERMINATED}),
    # CONTINUE_SURVEY -> CONTINUE_SURVEY is the repeat-on-timeout redirect
    FlowState.CONTINUE_SURVEY: frozenset(
        {FlowState.CONTINUE_SURVEY, FlowState.RESPONSE, FlowState.TERMINATED}
    ),
    FlowState.RESPONSE: frozenset({FlowState.CONTINUE_SURVEY, FlowState.TERMINATED}),
    FlowState.TERMINATED: frozenset(),
}


def can_transition(current: FlowState | None, target: FlowState) -> bool:
    return target in TRANSITIONS[current]


@dataclass(frozen=True)
class FlowStep:
    """Where the flow goes next."""

    state: FlowState
    question: int | None = None


def next_after_response(question: int, total_questions: int) -> FlowStep:
    """Advance to the next question, or terminate after the last one."""
    if question < total_questions:
        return FlowStep(FlowState.CONTINUE_SURVEY, question + 1)
    return FlowStep(FlowState.TERMINATED)


def current_state(entry: CallQueueEntry | None) -> FlowState | None:
    if entry is None:
        return None
    flow = (entry.call_metadata or {}).get(FLOW_KEY) or {}
    value = flow.get("state")
    try:
        return FlowState(value) if value else None
    except ValueError:
        return None


def record_transition(
    entry: CallQueueEntry | None,
    target: FlowState,
    question: int | None = None,
) -> bool:
    """Store ``target`` as the call's state.

    Returns:
        Whether the transition was legal according to ``TRANSITIONS``.
    """
    if entry is None:
        return True

    current = current_state(entry)
    legal = can_transition(current, target)
    if not legal:
        logger.warning(
            "Unexpected call-flow transition",
            extra={
                "call_sid": entry.call_sid,
                "from_state": current.value if current else None,
                "to_state": target.value,
            },
        )

    # New dict objects so the JSON column is flagged dirty
    metadata: dict[str, Any] = dict(entry.call_metadata or {})
    flow: dict[str, Any] = dict(metadata.get(FLOW_KEY) or {})
    history = list(flow.get("history") or [])
    history.append(
        {
            "state": target.value,
            "question": question,
            "at": datetime.now(timezone.utc).isoformat(),
        }
    )
    flow.update(state=target.value, question=question, history=history[-_HISTORY_LIMIT:])
    metadata[FLOW_KEY] = flow
    entry.call_metadata = metadata
    return legal
