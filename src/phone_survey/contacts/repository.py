"""
Phone contact repository for database operations.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.contacts.models import PhoneContact


class PhoneContactRepository:
    """Repository for phone contact database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def list_all(self) -> Sequence[PhoneContact]:
        """Return every contact, newest first."""
        stmt = select(PhoneContact).order_by(PhoneContact.created_at.desc())
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def get_by_id(self, contact_id: UUID) -> PhoneContact | None:
        return await self._session.get(PhoneContact, contact_id)

    async def count(self) -> int:
        result = await self._session.execute(select(func.count(PhoneContact.id)))
        return result.scalar() or 0

    async def create(self, name: str, phone_number: str) -> PhoneContact:
        """Create a single contact.

        Args:
            name: Display name.
            phone_number: Number in E.164 format.

        Returns:
            Created contact with ID.
        """
        contact = PhoneContact(name=name, phone_number=phone_number)
        self._session.add(contact)
        await self._session.flush()
        await self._session.refresh(contact)
        return contact

    async def create_bulk(self, entries: list[tuple[str, str]]) -> list[PhoneContact]:
        """Create multiple contacts in one flush.

        Args:
            entries: ``(name, phone_number)`` pairs.

        Returns:
            List of created contacts with IDs.
        """
        if not entries:
            return []

        contacts = [PhoneContact(name=name, phone_number=number) for name, number in entries]
        self._session.add_all(contacts)
        await self._session.flush()
        for contact in contacts:
            await self._session.refresh(contact)
        return contacts
