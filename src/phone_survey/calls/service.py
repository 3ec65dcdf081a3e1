"""
Outbound call placement.

Places a survey call for a call queue entry through the telephony provider
and keeps the entry's attempt bookkeeping in step with the outcome.
"""

from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.calls.models import CallQueueEntry
from phone_survey.calls.repository import CallQueueRepository
from phone_survey.contacts.repository import PhoneContactRepository
from phone_survey.shared.exceptions import (
    EntityNotFoundError,
    UpstreamServiceError,
    ValidationError,
)
from phone_survey.shared.logging import get_logger
from phone_survey.surveys.repository import SurveyRepository
from phone_survey.telephony.config import TelephonyConfig
from phone_survey.telephony.interface import (
    CallInitiationError,
    OutboundCall,
    PlacedCall,
    TelephonyProvider,
)

logger = get_logger(__name__)

GREETING_PATH = "/api/twilio/greeting"
STATUS_PATH = "/api/twilio/status"


class CallPlacementService:
    """Places survey calls for call queue entries."""

    def __init__(
        self,
        session: AsyncSession,
        provider: TelephonyProvider,
        config: TelephonyConfig,
    ) -> None:
        """Initialize the service.

        Args:
            session: Database session.
            provider: Telephony provider used to place calls.
            config: Telephony configuration (from number, webhook base URL).
        """
        self._session = session
        self._provider = provider
        self._config = config
        self._queue = CallQueueRepository(session)

    async def place_call(self, entry: CallQueueEntry) -> PlacedCall:
        """Dial the entry's contact.

        On success the entry gets the new call SID, one more attempt and
        status in-progress. On a provider failure the entry is marked failed
        and committed before the error is raised.

        Raises:
            EntityNotFoundError: The contact or survey no longer exists.
            ValidationError: The survey has no questions.
            UpstreamServiceError: The provider refused or could not be reached.
        """
        contact = await PhoneContactRepository(self._session).get_by_id(entry.phone_list_id)
        if contact is None:
            raise EntityNotFoundError("Phone number", entry.phone_list_id)

        surveys = SurveyRepository(self._session)
        if await surveys.get_by_id(entry.survey_id) is None:
            raise EntityNotFoundError("Survey", entry.survey_id)
        if await surveys.count_questions(entry.survey_id) == 0:
            raise ValidationError("No questions found for this survey")

        answer_url = self._config.get_webhook_url(GREETING_PATH)
        if contact.name:
            answer_url = f"{answer_url}?{urlencode({'name': contact.name})}"

        request = OutboundCall(
            to=contact.phone_number,
            from_number=self._config.twilio_from_number,
            answer_url=answer_url,
            status_callback_url=self._config.get_webhook_url(STATUS_PATH),
            call_queue_id=str(entry.id),
            survey_id=str(entry.survey_id),
        )

        try:
            response = await self._provider.place_call(request)
        except CallInitiationError as e:
            logger.error(
                "Call placement failed",
                extra={"call_queue_id": str(entry.id), "error": str(e)},
            )
            await self._queue.mark_failed(entry, str(e))
            await self._session.commit()
            raise UpstreamServiceError("Failed to initiate call", details=str(e)) from e

        await self._queue.record_attempt(entry, response.call_sid)
        await self._session.commit()

        logger.info(
            "Call placed",
            extra={
                "call_queue_id": str(entry.id),
                "call_sid": response.call_sid,
                "attempt_count": entry.attempt_count,
            },
        )
        return response
