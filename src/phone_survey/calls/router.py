"""
Call queue and call placement API routers.

Call placement is user-triggered, so these endpoints answer JSON rather
than TwiML.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.calls.models import CallQueueEntry, CallQueueStatus
from phone_survey.calls.repository import CallQueueRepository
from phone_survey.calls.schemas import (
    CallQueueEntryResponse,
    CallQueueRequest,
    ContactSummary,
    PlaceCallRequest,
    RetryCallRequest,
    SurveySummary,
)
from phone_survey.calls.service import CallPlacementService
from phone_survey.contacts.models import PhoneContact
from phone_survey.contacts.repository import PhoneContactRepository
from phone_survey.shared.database import get_db_session
from phone_survey.shared.exceptions import (
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
)
from phone_survey.shared.logging import get_logger
from phone_survey.surveys.models import Survey
from phone_survey.surveys.repository import SurveyRepository
from phone_survey.telephony.config import TelephonyConfig
from phone_survey.telephony.factory import get_cached_telephony_config, get_telephony_provider
from phone_survey.telephony.interface import TelephonyProvider

logger = get_logger(__name__)

router = APIRouter(prefix="/api/call-queue", tags=["call-queue"])
twilio_router = APIRouter(prefix="/api/twilio", tags=["twilio"])


def get_call_placement_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    provider: Annotated[TelephonyProvider, Depends(get_telephony_provider)],
    config: Annotated[TelephonyConfig, Depends(get_cached_telephony_config)],
) -> CallPlacementService:
    """Dependency for the call placement service."""
    return CallPlacementService(session, provider, config)


def _serialize(
    entry: CallQueueEntry,
    contact: PhoneContact | None,
    survey: Survey | None,
    total_questions: int | None = None,
) -> dict[str, Any]:
    payload = CallQueueEntryResponse.model_validate(entry).model_copy(
        update={
            "phone_list": ContactSummary.model_validate(contact) if contact else None,
            "surveys": SurveySummary.model_validate(survey) if survey else None,
            "total_questions": total_questions,
        }
    )
    return payload.model_dump(mode="json")


@router.get("")
async def list_call_queue(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    status: Annotated[str | None, Query()] = None,
    phone_list_id: Annotated[UUID | None, Query(alias="phoneListId")] = None,
    survey_id: Annotated[UUID | None, Query(alias="surveyId")] = None,
) -> list[dict[str, Any]]:
    """List call queue entries newest first, with contact, survey and question total."""
    status_filter: CallQueueStatus | None = None
    if status:
        try:
            status_filter = CallQueueStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown call queue status: {status}") from e

    try:
        entries = await CallQueueRepository(session).list_entries(
            status=status_filter,
            phone_list_id=phone_list_id,
            survey_id=survey_id,
        )
        surveys = SurveyRepository(session)
        totals: dict[UUID, int] = {}
        for entry in entries:
            if entry.survey_id not in totals:
                totals[entry.survey_id] = await surveys.count_questions(entry.survey_id)
    except SQLAlchemyError as e:
        logger.exception("Error fetching call queue")
        raise UpstreamServiceError("Failed to fetch call queue", details=str(e)) from e

    return [
        _serialize(entry, entry.contact, entry.survey, totals.get(entry.survey_id))
        for entry in entries
    ]


@router.post("")
async def enqueue_call(
    body: CallQueueRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    """Create the entry for a phone/survey pair, or reset the existing one to pending."""
    if body.phone_list_id is None:
        raise ValidationError("Phone list ID is required")
    if body.survey_id is None:
        raise ValidationError("Survey ID is required")

    contact = await PhoneContactRepository(session).get_by_id(body.phone_list_id)
    if contact is None:
        raise NotFoundError("Phone number not found")
    survey = await SurveyRepository(session).get_by_id(body.survey_id)
    if survey is None:
        raise NotFoundError("Survey not found")

    values: dict[str, Any] = {
        "status": CallQueueStatus.PENDING,
        "voice_option": body.voice_option,
        "language_option": body.language_option,
    }
    if body.scheduled and body.scheduled_time is not None:
        values["next_attempt_at"] = body.scheduled_time

    queue = CallQueueRepository(session)
    try:
        existing = await queue.get_for_pair(body.phone_list_id, body.survey_id)
        if existing is not None:
            entry = await queue.update(existing, **values)
            message = "Call queue entry updated successfully"
        else:
            entry = await queue.create(
                phone_list_id=body.phone_list_id,
                survey_id=body.survey_id,
                attempt_count=0,
                **values,
            )
            message = "Call added to queue successfully"
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error saving call queue entry")
        raise UpstreamServiceError("Failed to add item to call queue", details=str(e)) from e

    logger.info(
        "Call queue entry saved",
        extra={"call_queue_id": str(entry.id), "updated": existing is not None},
    )
    return {
        "success": True,
        "message": message,
        "data": _serialize(entry, contact, survey),
        "updated": existing is not None,
    }


@twilio_router.post("/call")
async def place_call(
    body: PlaceCallRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[CallPlacementService, Depends(get_call_placement_service)],
) -> dict[str, Any]:
    """Call a queued entry, or queue and call a phone/survey pair."""
    queue = CallQueueRepository(session)

    if body.call_queue_id is not None:
        entry = await queue.get_by_id(body.call_queue_id)
        if entry is None:
            raise NotFoundError("Call queue item not found")
    elif body.phone_list_id is not None and body.survey_id is not None:
        entry = await queue.get_for_pair(body.phone_list_id, body.survey_id)
        if entry is None:
            if await PhoneContactRepository(session).get_by_id(body.phone_list_id) is None:
                raise NotFoundError("Phone number not found")
            if await SurveyRepository(session).get_by_id(body.survey_id) is None:
                raise NotFoundError("Survey not found")
            entry = await queue.create(
                phone_list_id=body.phone_list_id,
                survey_id=body.survey_id,
                status=CallQueueStatus.PENDING,
                attempt_count=0,
            )
    else:
        raise ValidationError("Either callQueueId or phoneListId and surveyId are required")

    if body.voice_option:
        entry.voice_option = body.voice_option
    if body.language_option:
        entry.language_option = body.language_option

    response = await service.place_call(entry)
    return {
        "success": True,
        "callSid": response.call_sid,
        "callQueueId": str(entry.id),
        "message": "Call initiated successfully",
    }


@twilio_router.post("/retry-call")
async def retry_call(
    body: RetryCallRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[CallPlacementService, Depends(get_call_placement_service)],
) -> dict[str, Any]:
    """Place the call of an existing queue entry again.

    Raises:
        ValidationError: 400 without ``callQueueId`` or when the survey has no questions.
        NotFoundError: 404 for an unknown entry.
        UpstreamServiceError: 500 when the provider fails; the entry is marked failed.
    """
    if body.call_queue_id is None:
        raise ValidationError("Missing callQueueId parameter")

    entry = await CallQueueRepository(session).get_by_id(body.call_queue_id)
    if entry is None:
        raise NotFoundError("Failed to find call queue entry")

    logger.info("Retrying call", extra={"call_queue_id": str(entry.id)})
    response = await service.place_call(entry)
    return {
        "success": True,
        "callSid": response.call_sid,
        "message": "Call retry initiated successfully",
    }
