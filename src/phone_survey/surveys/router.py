"""
Question and survey API router.
"""

import asyncio
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phone_survey.dialogue.voice_formatter import (
    format_voice_question,
    suggest_voice_improvements,
    validate_voice_question,
)
from phone_survey.shared.database import get_db_session, get_session_factory
from phone_survey.shared.exceptions import (
    EntityNotFoundError,
    UpstreamServiceError,
    ValidationError,
)
from phone_survey.shared.logging import get_logger
from phone_survey.surveys.repository import QuestionRepository, SurveyRepository
from phone_survey.surveys.schemas import (
    QuestionCreate,
    QuestionResponse,
    SurveyCreate,
    SurveyResponse,
    VoiceCheckRequest,
    VoiceCheckResponse,
)
from phone_survey.surveys.script import seed_question_rows

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["surveys"])


def _questions_payload(questions: Any) -> list[dict[str, Any]]:
    return [QuestionResponse.model_validate(q).model_dump(mode="json") for q in questions]


@router.get("/questions")
async def list_questions(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    try:
        questions = await QuestionRepository(session).list_all()
    except SQLAlchemyError as e:
        logger.exception("Error fetching questions")
        raise UpstreamServiceError("Failed to fetch questions", details=str(e)) from e
    return {"questions": _questions_payload(questions)}


@router.post("/questions")
async def add_question(
    body: QuestionCreate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    if not body.question_text or not body.question_text.strip():
        raise ValidationError("Question text is required")

    metadata = body.metadata.model_dump(exclude_none=True) if body.metadata else None
    try:
        question = await QuestionRepository(session).create(
            question_text=body.question_text,
            is_follow_up=body.is_follow_up,
            parent_question_id=body.parent_question_id,
            metadata=metadata,
        )
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error adding question")
        raise UpstreamServiceError("Failed to add question", details=str(e)) from e

    logger.info("Question added", extra={"question_id": str(question.id)})
    return {"question": QuestionResponse.model_validate(question).model_dump(mode="json")}


@router.put("/questions")
async def populate_script_questions(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    """Seed the questions table from the built-in script when it is empty."""
    repo = QuestionRepository(session)
    try:
        if await repo.exists_any():
            return {
                "message": "Questions already exist",
                "questions": _questions_payload(await repo.list_all()),
            }

        questions = await repo.create_bulk(seed_question_rows())
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error populating sample questions")
        raise UpstreamServiceError("Failed to populate sample questions", details=str(e)) from e

    logger.info("Script questions seeded", extra={"count": len(questions)})
    return {"message": "Added sample questions", "questions": _questions_payload(questions)}


@router.post("/questions/voice-check", response_model=VoiceCheckResponse)
async def voice_check(body: VoiceCheckRequest) -> VoiceCheckResponse:
    """Preview how a draft question will be read out, with advice."""
    return VoiceCheckResponse(
        formatted=format_voice_question(body.question_text, body.metadata),
        error=validate_voice_question(body.question_text, body.metadata),
        suggestions=suggest_voice_improvements(body.question_text, body.metadata),
    )


async def _question_count(
    session_factory: async_sessionmaker[AsyncSession],
    survey_id: UUID,
) -> int:
    try:
        async with session_factory() as session:
            return await SurveyRepository(session).count_questions(survey_id)
    except SQLAlchemyError:
        logger.warning("Error counting questions for survey", extra={"survey_id": str(survey_id)})
        return 0


@router.get("/surveys")
async def list_surveys(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> dict[str, Any]:
    """List surveys, newest first, each with its question count."""
    try:
        surveys = await SurveyRepository(session).list_all()
    except SQLAlchemyError as e:
        logger.exception("Error fetching surveys")
        raise UpstreamServiceError("Failed to fetch surveys", details=str(e)) from e

    counts = await asyncio.gather(*(_question_count(session_factory, s.id) for s in surveys))
    return {
        "surveys": [
            SurveyResponse.model_validate(survey)
            .model_copy(update={"question_count": count})
            .model_dump(mode="json", by_alias=True)
            for survey, count in zip(surveys, counts)
        ]
    }


@router.post("/surveys")
async def create_survey(
    body: SurveyCreate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    """Create a survey asking ``questionIds`` in the given order."""
    if not body.name or not body.name.strip():
        raise ValidationError("Survey name is required")

    questions = QuestionRepository(session)
    for question_id in body.question_ids:
        if await questions.get_by_id(question_id) is None:
            raise EntityNotFoundError("Question", question_id)

    try:
        survey = await SurveyRepository(session).create(
            name=body.name.strip(),
            description=body.description,
            question_ids=body.question_ids,
        )
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error creating survey")
        raise UpstreamServiceError("Failed to create survey", details=str(e)) from e

    logger.info(
        "Survey created",
        extra={"survey_id": str(survey.id), "question_count": len(body.question_ids)},
    )
    payload = SurveyResponse.model_validate(survey).model_copy(
        update={"question_count": len(body.question_ids)}
    )
    return {"survey": payload.model_dump(mode="json", by_alias=True)}
