"""
Survey analytics aggregation.

Pure functions over already-loaded rows; the router does the I/O.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from phone_survey.analytics.capabilities import SchemaCapabilities
from phone_survey.surveys.models import Question, Survey

INSIGHTS_PER_QUESTION = 5
UNKNOWN_SURVEY_NAME = "Unknown Survey"


def _distribution_key(value: float) -> str:
    # 4.0 -> "4", 4.5 -> "4.5"
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)


def numeric_stats(values: Sequence[float | None]) -> dict[str, Any]:
    """Count, mean (2 decimals) and distribution of the non-null values."""
    present = [float(v) for v in values if v is not None]
    distribution: dict[str, int] = {}
    for value in present:
        key = _distribution_key(value)
        distribution[key] = distribution.get(key, 0) + 1
    avg = round(sum(present) / len(present), 2) if present else None
    return {"count": len(present), "avg": avg, "distribution": distribution}


def _date_key(recorded_at: Any) -> str:
    if isinstance(recorded_at, datetime):
        if recorded_at.tzinfo is not None:
            recorded_at = recorded_at.astimezone(timezone.utc)
        return recorded_at.date().isoformat()
    return str(recorded_at)[:10]


def responses_by_date(responses: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """``[{date, count}]`` in order of first appearance."""
    groups: dict[str, int] = {}
    for row in responses:
        key = _date_key(row.get("recorded_at"))
        groups[key] = groups.get(key, 0) + 1
    return [{"date": date, "count": count} for date, count in groups.items()]


def question_breakdown(
    question: Question,
    responses: Sequence[Mapping[str, Any]],
    capabilities: SchemaCapabilities,
) -> dict[str, Any]:
    own = [r for r in responses if r.get("question_id") == question.id]

    stats: dict[str, Any] = {"count": 0, "avg": None, "distribution": {}}
    if capabilities.has_numeric_value_column:
        stats = numeric_stats([r.get("numeric_value") for r in own])

    insights: list[str] = []
    if capabilities.has_key_insights_column:
        insights = [r["key_insights"] for r in own if r.get("key_insights")][:INSIGHTS_PER_QUESTION]

    return {
        "questionId": str(question.id),
        "questionText": question.question_text,
        "responseCount": len(own),
        "numericStats": stats,
        "insights": insights,
    }


def build_survey_analytics(
    survey_id: str,
    survey: Survey | None,
    questions: Sequence[Question],
    responses: Sequence[Mapping[str, Any]],
    capabilities: SchemaCapabilities,
) -> dict[str, Any]:
    """Assemble the analytics document for one survey.

    Args:
        survey_id: Requested survey id, echoed back.
        survey: Survey row, or None when it could not be loaded.
        questions: Survey questions in playback order.
        responses: Response rows for those questions.
        capabilities: Optional columns present in the database.

    Returns:
        ``{survey, questionBreakdown, overallStats}``.
    """
    with_numeric = 0
    if capabilities.has_numeric_value_column:
        with_numeric = sum(1 for r in responses if r.get("numeric_value") is not None)
    with_insights = 0
    if capabilities.has_key_insights_column:
        with_insights = sum(1 for r in responses if r.get("key_insights"))

    return {
        "survey": {
            "id": survey_id,
            "name": survey.name if survey is not None else UNKNOWN_SURVEY_NAME,
            "description": (survey.description or "") if survey is not None else "",
            "questionCount": len(questions),
        },
        "questionBreakdown": [question_breakdown(q, responses, capabilities) for q in questions],
        "overallStats": {
            "totalResponses": len(responses),
            "responsesWithNumericValue": with_numeric,
            "responsesWithInsights": with_insights,
            "responsesByDate": responses_by_date(responses),
            "columnsStatus": capabilities.as_status(),
        },
    }
