"""
Pydantic schemas for the call queue and call placement.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from phone_survey.calls.models import CallQueueStatus


class CallQueueRequest(BaseModel):
    """Body of ``POST /api/call-queue``."""

    phone_list_id: UUID | None = Field(default=None, alias="phoneListId")
    survey_id: UUID | None = Field(default=None, alias="surveyId")
    voice_option: str | None = Field(default=None, alias="voiceOption")
    language_option: str | None = Field(default=None, alias="languageOption")
    scheduled: bool = False
    scheduled_time: datetime | None = Field(default=None, alias="scheduledTime")


class PlaceCallRequest(BaseModel):
    """Body of ``POST /api/twilio/call``: a queue entry or a phone/survey pair."""

    call_queue_id: UUID | None = Field(default=None, alias="callQueueId")
    phone_list_id: UUID | None = Field(default=None, alias="phoneListId")
    survey_id: UUID | None = Field(default=None, alias="surveyId")
    voice_option: str | None = Field(default=None, alias="voiceOption")
    language_option: str | None = Field(default=None, alias="languageOption")


class RetryCallRequest(BaseModel):
    call_queue_id: UUID | None = Field(default=None, alias="callQueueId")


class ContactSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    phone_number: str


class SurveySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str


class CallQueueEntryResponse(BaseModel):
    """A call queue row with its contact and survey names."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    phone_list_id: UUID
    survey_id: UUID
    call_sid: str | None
    status: CallQueueStatus
    attempt_count: int
    last_attempt_at: datetime | None
    next_attempt_at: datetime | None
    voice_option: str | None
    language_option: str | None
    notes: str | None
    questions_answered: int
    call_metadata: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime
    total_questions: int | None = None
    phone_list: ContactSummary | None = None
    surveys: SurveySummary | None = None
