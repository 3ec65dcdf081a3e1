"""
Pydantic schemas for questions and surveys.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ResponseType = Literal["Multiple-Choice", "Yes-No", "Numeric", "Open-Ended"]


class QuestionMetadata(BaseModel):
    """How a question is answered and what may follow it."""

    model_config = ConfigDict(extra="allow")

    response_type: ResponseType | None = None
    options: list[str] = Field(default_factory=list)
    follow_up_trigger: str | None = None
    follow_up_text: str | None = None


class QuestionCreate(BaseModel):
    question_text: str | None = None
    is_follow_up: bool = False
    parent_question_id: UUID | None = None
    metadata: QuestionMetadata | None = None


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    question_text: str
    is_follow_up: bool
    parent_question_id: UUID | None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="question_metadata")
    created_at: datetime


class VoiceCheckRequest(BaseModel):
    question_text: str = ""
    metadata: QuestionMetadata | None = None


class VoiceCheckResponse(BaseModel):
    """Formatter output for a draft question."""

    formatted: str
    error: str | None
    suggestions: list[str]


class SurveyCreate(BaseModel):
    name: str | None = None
    description: str | None = None
    question_ids: list[UUID] = Field(default_factory=list, alias="questionIds")


class SurveyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    created_at: datetime
    question_count: int = Field(default=0, serialization_alias="questionCount")
