"""
Tests for the telephony provider interface.
"""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from typing import Any

import pytest

from phone_survey.telephony.interface import (
    CallInitiationError,
    OutboundCall,
    PlacedCall,
    CallStatus,
    TelephonyProvider,
    TelephonyProviderError,
    CallStatusEvent,
)


class RecordingProvider(TelephonyProvider):
    """Minimal provider that records the calls it places."""

    def __init__(self) -> None:
        self.placed: list[OutboundCall] = []

    def place_call_sync(self, request: OutboundCall) -> PlacedCall:
        self.placed.append(request)
        return PlacedCall(
            call_sid=f"CA_{len(self.placed)}",
            status=CallStatus.QUEUED,
            created_at=datetime.now(timezone.utc),
        )

    def parse_status_callback(self, payload: dict[str, Any]) -> CallStatusEvent:
        raise NotImplementedError

    def validate_signature(self, payload: bytes, signature: str, url: str) -> bool:
        return True


@pytest.fixture
def call_request() -> OutboundCall:
    return OutboundCall(
        to="+14155551234",
        from_number="+14155550000",
        answer_url="https://example.com/api/twilio/greeting",
        status_callback_url="https://example.com/api/twilio/status",
        call_queue_id="entry-1",
    )


class TestOutboundCall:
    def test_survey_id_is_optional(self, call_request: OutboundCall) -> None:
        assert call_request.survey_id is None

    def test_is_frozen(self, call_request: OutboundCall) -> None:
        with pytest.raises(FrozenInstanceError):
            call_request.to = "+10000000000"


class TestCallStatus:
    def test_uses_twilio_spelling(self) -> None:
        assert CallStatus("in-progress") is CallStatus.IN_PROGRESS
        assert CallStatus("no-answer") is CallStatus.NO_ANSWER

    @pytest.mark.parametrize(
        ("status", "final"),
        [
            (CallStatus.QUEUED, False),
            (CallStatus.RINGING, False),
            (CallStatus.IN_PROGRESS, False),
            (CallStatus.COMPLETED, True),
            (CallStatus.BUSY, True),
            (CallStatus.NO_ANSWER, True),
            (CallStatus.FAILED, True),
            (CallStatus.CANCELED, True),
        ],
    )
    def test_is_final(self, status: CallStatus, final: bool) -> None:
        assert status.is_final is final


class TestTelephonyProvider:
    async def test_async_call_delegates_to_sync(self, call_request: OutboundCall) -> None:
        provider = RecordingProvider()

        response = await provider.place_call(call_request)

        assert response.call_sid == "CA_1"
        assert provider.placed == [call_request]

    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            TelephonyProvider()


class TestErrors:
    def test_initiation_error_fields(self) -> None:
        error = CallInitiationError("Invalid number", error_code="21211", provider_response={"code": 21211})
        assert isinstance(error, TelephonyProviderError)
        assert str(error) == "Invalid number"
        assert error.error_code == "21211"
        assert error.provider_response == {"code": 21211}

    def test_provider_response_defaults(self) -> None:
        assert CallInitiationError("boom").provider_response == {}
