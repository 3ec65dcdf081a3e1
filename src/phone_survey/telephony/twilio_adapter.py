"""
Twilio adapter over the REST API.

Calls are created with ``POST /Accounts/{sid}/Calls.json`` through httpx;
status callbacks are form posts whose ``X-Twilio-Signature`` is an
HMAC-SHA1 of the callback URL followed by the sorted form parameters.
"""

import hashlib
import hmac
from base64 import b64encode
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any
from urllib.parse import parse_qsl

import httpx

from phone_survey.shared.logging import get_logger
from phone_survey.telephony.config import TelephonyConfig, get_telephony_config
from phone_survey.telephony.interface import (
    CallInitiationError,
    CallStatus,
    CallStatusEvent,
    OutboundCall,
    PlacedCall,
    TelephonyProvider,
    WebhookParseError,
)

logger = get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
STATUS_CALLBACK_EVENTS = ("initiated", "ringing", "answered", "completed")


def parse_twilio_timestamp(value: str | None) -> datetime:
    """RFC 2822 as Twilio sends it, ISO 8601 as a fallback, now otherwise."""
    if value:
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError):
            pass
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def _status(value: str | None, default: CallStatus) -> CallStatus:
    try:
        return CallStatus((value or "").lower())
    except ValueError:
        return default


class TwilioAdapter(TelephonyProvider):
    def __init__(
        self,
        config: TelephonyConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config or get_telephony_config()
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def calls_url(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self._config.twilio_account_sid}/Calls.json"

    def _client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=httpx.Timeout(30.0))
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def place_call_sync(self, call: OutboundCall) -> PlacedCall:
        """Dial ``call.to`` and point Twilio at the greeting webhook.

        Raises:
            CallInitiationError: Transport failure or a 4xx/5xx reply; Twilio's
                error ``code`` and ``message`` are carried over when present.
        """
        form = {
            "To": call.to,
            "From": call.from_number,
            "Url": call.answer_url,
            "Method": "POST",
            "StatusCallback": call.status_callback_url,
            "StatusCallbackEvent": list(STATUS_CALLBACK_EVENTS),
            "StatusCallbackMethod": "POST",
            "Timeout": str(self._config.call_timeout_seconds),
        }
        log_extra = {"to": call.to, "call_queue_id": call.call_queue_id, "survey_id": call.survey_id}
        logger.info("Placing survey call", extra=log_extra)

        try:
            response = self._client().post(
                self.calls_url,
                data=form,
                auth=(self._config.twilio_account_sid, self._config.twilio_auth_token),
            )
        except httpx.HTTPError as e:
            logger.exception("Twilio unreachable while placing call", extra=log_extra)
            raise CallInitiationError(f"HTTP error: {e!s}", error_code="HTTP_ERROR") from e

        if response.status_code >= 400:
            body = response.json() if response.content else {}
            logger.error(
                "Twilio refused call",
                extra={**log_extra, "status_code": response.status_code, "error": body},
            )
            raise CallInitiationError(
                body.get("message", "Call initiation failed"),
                error_code=str(body.get("code", response.status_code)),
                provider_response=body,
            )

        data = response.json()
        return PlacedCall(
            call_sid=data["sid"],
            status=_status(data.get("status"), CallStatus.QUEUED),
            created_at=parse_twilio_timestamp(data.get("date_created")),
            raw_response=data,
        )

    def parse_status_callback(self, payload: dict[str, Any]) -> CallStatusEvent:
        call_sid = payload.get("CallSid")
        if not call_sid:
            raise WebhookParseError(
                "Missing CallSid in status callback",
                error_code="MISSING_CALL_SID",
                provider_response=payload,
            )
        if not payload.get("CallStatus"):
            raise WebhookParseError(
                "Missing CallStatus in status callback",
                error_code="MISSING_CALL_STATUS",
                provider_response=payload,
            )

        status = _status(payload["CallStatus"], CallStatus.COMPLETED)

        duration = None
        if status == CallStatus.COMPLETED:
            try:
                duration = int(payload["CallDuration"])
            except (KeyError, TypeError, ValueError):
                duration = None

        failed = status == CallStatus.FAILED
        return CallStatusEvent(
            call_sid=call_sid,
            status=status,
            timestamp=parse_twilio_timestamp(payload.get("Timestamp")),
            duration_seconds=duration,
            error_code=payload.get("ErrorCode") if failed else None,
            error_message=payload.get("ErrorMessage") if failed else None,
            raw_payload=payload,
        )

    def validate_signature(self, body: bytes, signature: str, url: str) -> bool:
        token = self._config.twilio_auth_token
        if not token:
            logger.warning("No Twilio auth token configured, accepting unsigned callback")
            return True

        params = sorted(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
        signed = url + "".join(key + value for key, value in params)
        digest = hmac.new(token.encode("utf-8"), signed.encode("utf-8"), hashlib.sha1).digest()
        return hmac.compare_digest(b64encode(digest).decode("utf-8"), signature or "")
