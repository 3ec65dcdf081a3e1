"""
Phone list API router.
"""

import re
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.contacts.repository import PhoneContactRepository
from phone_survey.contacts.schemas import (
    PhoneBatchRequest,
    PhoneBatchResponse,
    PhoneContactCreate,
    PhoneContactResponse,
    PhoneListResponse,
)
from phone_survey.shared.database import get_db_session
from phone_survey.shared.exceptions import UpstreamServiceError, ValidationError
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/phone", tags=["phone"])

E164_PATTERN = re.compile(r"\+[1-9]\d{1,14}")

SAMPLE_CONTACTS: tuple[tuple[str, str], ...] = (
    ("John Doe", "+16505551234"),
    ("Jane Smith", "+14155557890"),
    ("Robert Johnson", "+12125559876"),
)


def get_contact_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PhoneContactRepository:
    """Dependency for the phone contact repository."""
    return PhoneContactRepository(session)


def _as_responses(contacts: Any) -> list[PhoneContactResponse]:
    return [PhoneContactResponse.model_validate(c) for c in contacts]


def valid_batch_entries(entries: list[Any]) -> list[tuple[str, str]]:
    """Entries with a non-empty name and an E.164 phone number."""
    valid: list[tuple[str, str]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        number = entry.get("phone_number")
        if not isinstance(name, str) or not name.strip():
            continue
        if not isinstance(number, str) or not E164_PATTERN.fullmatch(number):
            continue
        valid.append((name, number))
    return valid


@router.get("", response_model=PhoneListResponse, response_model_exclude_none=True)
async def list_phone_numbers(
    repo: Annotated[PhoneContactRepository, Depends(get_contact_repository)],
) -> PhoneListResponse:
    """List the phone list, newest first."""
    try:
        contacts = await repo.list_all()
    except SQLAlchemyError as e:
        logger.exception("Error fetching phone numbers")
        raise UpstreamServiceError("Failed to fetch phone numbers", details=str(e)) from e
    return PhoneListResponse(phone_numbers=_as_responses(contacts))


@router.post("")
async def add_phone_number(
    body: PhoneContactCreate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    if not body.name or not body.phone_number:
        raise ValidationError("Name and phone number are required")

    try:
        contact = await PhoneContactRepository(session).create(body.name, body.phone_number)
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error adding phone number")
        raise UpstreamServiceError("Failed to add phone number", details=str(e)) from e

    logger.info("Phone number added", extra={"contact_id": str(contact.id)})
    return {"phoneNumber": PhoneContactResponse.model_validate(contact).model_dump(mode="json")}


@router.put("", response_model=PhoneListResponse, response_model_exclude_none=True)
async def populate_sample_phone_numbers(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PhoneListResponse:
    """Insert the sample contacts when the phone list is empty."""
    repo = PhoneContactRepository(session)
    try:
        if await repo.count() > 0:
            return PhoneListResponse(
                message="Phone numbers already exist",
                phone_numbers=_as_responses(await repo.list_all()),
            )

        contacts = await repo.create_bulk(list(SAMPLE_CONTACTS))
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error populating sample phone numbers")
        raise UpstreamServiceError("Failed to populate sample phone numbers", details=str(e)) from e

    logger.info("Sample phone numbers added", extra={"count": len(contacts)})
    return PhoneListResponse(message="Added sample phone numbers", phone_numbers=_as_responses(contacts))


@router.post("/batch", response_model=PhoneBatchResponse)
async def add_phone_numbers_batch(
    body: PhoneBatchRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PhoneBatchResponse:
    """Insert every valid entry of ``phoneEntries``; invalid ones are skipped."""
    entries = body.phone_entries
    if not isinstance(entries, list) or not entries:
        raise ValidationError("Phone entries are required and must be an array")

    valid = valid_batch_entries(entries)
    if not valid:
        raise ValidationError("No valid phone entries found")

    repo = PhoneContactRepository(session)
    try:
        created = await repo.create_bulk(valid)
        await session.commit()
        full_list = await repo.list_all()
    except SQLAlchemyError as e:
        logger.exception("Error processing batch phone numbers upload")
        raise UpstreamServiceError("Failed to process phone numbers", details=str(e)) from e

    logger.info(
        "Phone numbers added in batch",
        extra={"received": len(entries), "inserted": len(created)},
    )
    return PhoneBatchResponse(
        message="Phone numbers added successfully",
        count=len(created),
        phone_numbers=_as_responses(created),
        full_list=_as_responses(full_list),
    )
