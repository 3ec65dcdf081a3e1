"""
Telephony provider interface.

Survey calls are placed and their status callbacks read through
``TelephonyProvider``; the HTTP handlers never talk to the vendor API
directly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import anyio


class CallStatus(str, Enum):
    """Call statuses, spelled the way Twilio reports them."""

    QUEUED = "queued"
    INITIATED = "initiated"
    RINGING = "ringing"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BUSY = "busy"
    NO_ANSWER = "no-answer"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_final(self) -> bool:
        return self in _FINAL_STATUSES


_FINAL_STATUSES = frozenset(
    {
        CallStatus.COMPLETED,
        CallStatus.BUSY,
        CallStatus.NO_ANSWER,
        CallStatus.FAILED,
        CallStatus.CANCELED,
    }
)


@dataclass(frozen=True)
class OutboundCall:
    """A survey call to place.

    ``answer_url`` is the greeting webhook; ``call_queue_id`` identifies the
    queue entry the call belongs to and is only used for logging.
    """

    to: str
    from_number: str
    answer_url: str
    status_callback_url: str
    call_queue_id: str
    survey_id: str | None = None


@dataclass(frozen=True)
class PlacedCall:
    call_sid: str
    status: CallStatus
    created_at: datetime
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CallStatusEvent:
    """A parsed status callback."""

    call_sid: str
    status: CallStatus
    timestamp: datetime
    duration_seconds: int | None = None
    error_code: str | None = None
    error_message: str | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)


class TelephonyProviderError(Exception):
    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.provider_response = provider_response or {}


class CallInitiationError(TelephonyProviderError):
    """The provider refused the call or could not be reached."""


class WebhookParseError(TelephonyProviderError):
    """A status callback lacks the fields needed to act on it."""


class TelephonyProvider(ABC):
    """Places survey calls and reads their status callbacks.

    Implementations write the blocking ``place_call_sync``; ``place_call``
    runs it in a worker thread.
    """

    async def place_call(self, call: OutboundCall) -> PlacedCall:
        return await anyio.to_thread.run_sync(self.place_call_sync, call)

    @abstractmethod
    def place_call_sync(self, call: OutboundCall) -> PlacedCall: ...

    @abstractmethod
    def parse_status_callback(self, payload: dict[str, Any]) -> CallStatusEvent: ...

    @abstractmethod
    def validate_signature(self, body: bytes, signature: str, url: str) -> bool:
        """Whether ``signature`` authenticates a callback POSTed to ``url``."""
