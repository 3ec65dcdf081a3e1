"""
Repository for call queue entries.
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.calls.models import CallQueueEntry, CallQueueStatus


class CallQueueRepository:
    """Repository for call queue database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_id(self, entry_id: UUID) -> CallQueueEntry | None:
        return await self._session.get(CallQueueEntry, entry_id)

    async def get_by_call_sid(self, call_sid: str) -> CallQueueEntry | None:
        """Get the queue entry for a Twilio call SID.

        Args:
            call_sid: Provider call identifier.

        Returns:
            Most recently updated matching entry or None.
        """
        if not call_sid:
            return None
        stmt = (
            select(CallQueueEntry)
            .where(CallQueueEntry.call_sid == call_sid)
            .order_by(CallQueueEntry.updated_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_for_pair(self, phone_list_id: UUID, survey_id: UUID) -> CallQueueEntry | None:
        stmt = (
            select(CallQueueEntry)
            .where(
                CallQueueEntry.phone_list_id == phone_list_id,
                CallQueueEntry.survey_id == survey_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def list_entries(
        self,
        status: CallQueueStatus | None = None,
        phone_list_id: UUID | None = None,
        survey_id: UUID | None = None,
    ) -> Sequence[CallQueueEntry]:
        """List entries newest first, optionally filtered."""
        stmt = select(CallQueueEntry).order_by(CallQueueEntry.created_at.desc())
        if status is not None:
            stmt = stmt.where(CallQueueEntry.status == status)
        if phone_list_id is not None:
            stmt = stmt.where(CallQueueEntry.phone_list_id == phone_list_id)
        if survey_id is not None:
            stmt = stmt.where(CallQueueEntry.survey_id == survey_id)
        result = await self._session.execute(stmt)
        return result.scalars().unique().all()

    async def count(self) -> int:
        result = await self._session.execute(select(func.count(CallQueueEntry.id)))
        return result.scalar() or 0

    async def create(self, **values: Any) -> CallQueueEntry:
        entry = CallQueueEntry(**values)
        self._session.add(entry)
        await self._session.flush()
        await self._session.refresh(entry)
        return entry

    async def update(self, entry: CallQueueEntry, **values: Any) -> CallQueueEntry:
        for key, value in values.items():
            setattr(entry, key, value)
        await self._session.flush()
        return entry

    async def record_attempt(self, entry: CallQueueEntry, call_sid: str) -> CallQueueEntry:
        """Book a placed call: attempt count +1, new SID, in-progress."""
        return await self.update(
            entry,
            attempt_count=(entry.attempt_count or 0) + 1,
            call_sid=call_sid,
            status=CallQueueStatus.IN_PROGRESS,
            last_attempt_at=datetime.now(timezone.utc),
        )

    async def mark_failed(self, entry: CallQueueEntry, error: str) -> CallQueueEntry:
        return await self.update(entry, status=CallQueueStatus.FAILED, notes=f"Error: {error}")
