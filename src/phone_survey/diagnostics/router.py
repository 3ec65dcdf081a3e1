"""
Diagnostics endpoints for checking the database and configuration.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import phone_survey.models  # noqa: F401
from phone_survey.config import get_settings
from phone_survey.contacts.repository import PhoneContactRepository
from phone_survey.contacts.schemas import PhoneContactResponse
from phone_survey.shared.database import Base, get_db_session, get_session_factory
from phone_survey.shared.exceptions import UpstreamServiceError
from phone_survey.shared.logging import get_logger
from phone_survey.surveys.repository import QuestionRepository, SurveyRepository
from phone_survey.surveys.schemas import QuestionResponse, SurveyResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["diagnostics"])

CHECKED_TABLES = (
    "phone_list",
    "questions",
    "surveys",
    "survey_questions",
    "responses",
    "call_queue",
    "users",
)


async def _table_status(
    session_factory: async_sessionmaker[AsyncSession],
    table_name: str,
) -> str:
    table = Base.metadata.tables[table_name]
    try:
        async with session_factory() as session:
            await session.execute(select(func.count()).select_from(table))
    except SQLAlchemyError as e:
        return f"Error: {e}"
    return "OK"


@router.get("/db-test")
async def db_test(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> dict[str, Any]:
    """Count the phone list, then probe every table on its own session."""
    try:
        phone_count = await PhoneContactRepository(session).count()
    except SQLAlchemyError as e:
        logger.exception("Database connection check failed")
        raise UpstreamServiceError("Failed to connect to database", details=str(e)) from e

    tables = {name: await _table_status(session_factory, name) for name in CHECKED_TABLES}
    return {
        "status": "Database connection successful",
        "phoneCount": phone_count,
        "tables": tables,
    }


@router.get("/check-mock")
async def check_mock() -> dict[str, Any]:
    settings = get_settings()
    return {
        "useMockDb": settings.use_mock_db,
        "forceRealDb": settings.force_real_db,
        "databaseUrlConfigured": bool(settings.database_url),
        "authUrl": settings.auth_url,
        "authKeyPresent": bool(settings.auth_anon_key),
        "openaiKeyPresent": bool(settings.openai_api_key),
    }


@router.get("/real-db")
async def real_db(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    """Dump surveys, questions and the phone list with their sizes."""
    try:
        surveys = await SurveyRepository(session).list_all()
        questions = await QuestionRepository(session).list_all()
        phone_list = await PhoneContactRepository(session).list_all()
    except SQLAlchemyError as e:
        logger.exception("Real database check failed")
        raise UpstreamServiceError("Failed to read database", details=str(e)) from e

    return {
        "message": "Real database connection successful",
        "surveys": [SurveyResponse.model_validate(s).model_dump(mode="json", by_alias=True) for s in surveys],
        "questions": [QuestionResponse.model_validate(q).model_dump(mode="json") for q in questions],
        "phoneList": [PhoneContactResponse.model_validate(p).model_dump(mode="json") for p in phone_list],
        "tables": {
            "surveys": len(surveys),
            "questions": len(questions),
            "phoneList": len(phone_list),
        },
    }
