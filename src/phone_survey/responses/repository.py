"""
Response repository.

Statements are built from the table's columns filtered by the live
``SchemaCapabilities`` so databases without the optional analysis columns
keep working.
"""

from typing import Any, Sequence
from uuid import UUID, uuid4

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.analytics.capabilities import SchemaCapabilities
from phone_survey.responses.models import Response

_TABLE = Response.__table__


class ResponseRepository:
    """Repository for response rows."""

    def __init__(self, session: AsyncSession, capabilities: SchemaCapabilities | None = None) -> None:
        self._session = session
        self._capabilities = capabilities or SchemaCapabilities.full()

    async def add(self, **values: Any) -> UUID:
        """Insert a response, dropping values for columns the schema lacks.

        Returns:
            ID of the inserted row.
        """
        values.setdefault("id", uuid4())
        row = {k: v for k, v in values.items() if self._capabilities.supports(k)}
        await self._session.execute(insert(_TABLE).values(**row))
        return row["id"]

    async def list_for_questions(self, question_ids: Sequence[UUID]) -> list[dict[str, Any]]:
        """Responses to any of ``question_ids`` as plain mappings."""
        if not question_ids:
            return []
        columns = [c for c in _TABLE.columns if self._capabilities.supports(c.name)]
        stmt = (
            select(*columns)
            .where(_TABLE.c.question_id.in_(list(question_ids)))
            .order_by(_TABLE.c.recorded_at)
        )
        result = await self._session.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def count(self) -> int:
        result = await self._session.execute(select(func.count(_TABLE.c.id)))
        return result.scalar() or 0
