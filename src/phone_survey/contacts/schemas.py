"""
Pydantic schemas for the phone list.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PhoneContactCreate(BaseModel):
    """Body of ``POST /api/phone``; both fields are checked by the handler."""

    name: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=20)


class PhoneContactResponse(BaseModel):
    """A phone list row as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    phone_number: str
    created_at: datetime
    updated_at: datetime


class PhoneBatchRequest(BaseModel):
    """Body of ``POST /api/phone/batch``.

    ``phoneEntries`` is left untyped so malformed payloads reach the
    handler and get the documented 400 message.
    """

    phone_entries: Any = Field(default=None, alias="phoneEntries")


class PhoneListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_numbers: list[PhoneContactResponse] = Field(alias="phoneNumbers")
    message: str | None = None


class PhoneBatchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    count: int
    phone_numbers: list[PhoneContactResponse] = Field(alias="phoneNumbers")
    full_list: list[PhoneContactResponse] = Field(alias="fullList")
