"""
SQLAlchemy model for recorded survey answers.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Float, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from phone_survey.shared.database import Base

# Columns added after the first schema revision. Deployments may lack them;
# see phone_survey.analytics.capabilities.
OPTIONAL_COLUMNS = ("numeric_value", "key_insights")


class Response(Base):
    """One answer given by a contact to a question."""

    __tablename__ = "responses"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    phone_list_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("phone_list.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    question_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("questions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    call_sid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    answer_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    recording_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    numeric_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    key_insights: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
