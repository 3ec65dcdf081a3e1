"""
SQLAlchemy models for the outbound call queue.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from phone_survey.contacts.models import PhoneContact
from phone_survey.shared.database import Base
from phone_survey.surveys.models import Survey


class CallQueueStatus(str, Enum):
    """Lifecycle of one outbound survey call."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CallQueueEntry(Base):
    """Tracks a call's status, attempts and voice options.

    ``call_metadata`` stores the flow state written by the webhook
    handlers (see phone_survey.telephony.webhooks.flow).
    """

    __tablename__ = "call_queue"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    phone_list_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("phone_list.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    survey_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    call_sid: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[CallQueueStatus] = mapped_column(
        SQLEnum(
            CallQueueStatus,
            name="call_queue_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=CallQueueStatus.PENDING,
    )
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voice_option: Mapped[str | None] = mapped_column(String(100), nullable=True)
    language_option: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    questions_answered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    call_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    contact: Mapped[PhoneContact] = relationship(PhoneContact, lazy="joined")
    survey: Mapped[Survey] = relationship(Survey, lazy="joined")

    def __repr__(self) -> str:
        return f"<CallQueueEntry(id={self.id}, status={self.status}, call_sid={self.call_sid})>"
