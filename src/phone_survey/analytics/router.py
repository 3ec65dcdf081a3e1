"""
Survey analytics API router.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.analytics.capabilities import detect_capabilities
from phone_survey.analytics.service import build_survey_analytics
from phone_survey.responses.repository import ResponseRepository
from phone_survey.shared.database import get_db_session
from phone_survey.shared.exceptions import NotFoundError, UpstreamServiceError, ValidationError
from phone_survey.shared.logging import get_logger
from phone_survey.surveys.repository import SurveyRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("")
async def get_survey_analytics(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    survey_id: Annotated[str | None, Query(alias="surveyId")] = None,
) -> dict[str, Any]:
    """Per-question and overall statistics for a survey's responses."""
    if not survey_id:
        raise ValidationError("Survey ID is required")
    try:
        survey_uuid = UUID(survey_id)
    except ValueError as e:
        raise ValidationError("Survey ID must be a UUID") from e

    try:
        capabilities = await detect_capabilities(session)
        surveys = SurveyRepository(session)
        questions = await surveys.get_ordered_questions(survey_uuid)
        if not questions:
            raise NotFoundError("No questions found for this survey")

        responses = await ResponseRepository(session, capabilities).list_for_questions(
            [q.id for q in questions]
        )
        survey = await surveys.get_by_id(survey_uuid)
    except SQLAlchemyError as e:
        logger.exception("Error fetching analytics data", extra={"survey_id": survey_id})
        raise UpstreamServiceError("Failed to fetch analytics data", details=str(e)) from e

    logger.info(
        "Analytics computed",
        extra={
            "survey_id": survey_id,
            "question_count": len(questions),
            "response_count": len(responses),
        },
    )
    return build_survey_analytics(survey_id, survey, questions, responses, capabilities)
