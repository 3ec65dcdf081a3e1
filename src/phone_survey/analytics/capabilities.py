"""
Schema capability descriptor.

Older deployments of the ``responses`` table lack the ``numeric_value`` and
``key_insights`` columns. Instead of probing with failing queries, the live
columns are inspected once per database and carried around as a
``SchemaCapabilities`` value.
"""

from dataclasses import dataclass

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.responses.models import OPTIONAL_COLUMNS, Response
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)

_CACHE: dict[str, "SchemaCapabilities"] = {}


@dataclass(frozen=True)
class SchemaCapabilities:
    """Which optional ``responses`` columns exist."""

    response_columns: frozenset[str]

    @classmethod
    def full(cls) -> "SchemaCapabilities":
        return cls(frozenset(c.name for c in Response.__table__.columns))

    @property
    def has_numeric_value_column(self) -> bool:
        return "numeric_value" in self.response_columns

    @property
    def has_key_insights_column(self) -> bool:
        return "key_insights" in self.response_columns

    def supports(self, column: str) -> bool:
        return column in self.response_columns

    def as_status(self) -> dict[str, bool]:
        return {
            "hasNumericValueColumn": self.has_numeric_value_column,
            "hasKeyInsightsColumn": self.has_key_insights_column,
        }


async def detect_capabilities(session: AsyncSession, use_cache: bool = True) -> SchemaCapabilities:
    """Inspect the ``responses`` table of the session's database."""
    conn = await session.connection()
    key = str(conn.engine.url)
    if use_cache and key in _CACHE:
        return _CACHE[key]

    def _columns(sync_conn) -> list[str]:
        inspector = inspect(sync_conn)
        if not inspector.has_table(Response.__tablename__):
            return []
        return [c["name"] for c in inspector.get_columns(Response.__tablename__)]

    columns = frozenset(await conn.run_sync(_columns))
    capabilities = SchemaCapabilities(columns)

    missing = [c for c in OPTIONAL_COLUMNS if c not in columns]
    if missing:
        logger.warning("Optional response columns missing", extra={"missing_columns": missing})

    if use_cache:
        _CACHE[key] = capabilities
    return capabilities


def clear_capabilities_cache() -> None:
    _CACHE.clear()
