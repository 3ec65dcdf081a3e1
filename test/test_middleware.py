"""
Tests for application-level middleware, error rendering and logging.
"""

import json
import logging
import sys

from fastapi import status
from httpx import AsyncClient

from phone_survey.shared.logging import StructuredFormatter, call_sid_var, correlation_id_var


class TestCorrelationId:
    async def test_generated_when_missing(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Request-ID"]

    async def test_echoes_incoming_id(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestErrorRendering:
    async def test_request_validation_error(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/call-queue", json={"phoneListId": "nope"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        body = response.json()
        assert body["error"] == "Request validation failed"
        assert body["details"][0]["field"] == "body.phoneListId"

    async def test_app_error_without_details(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/surveys", json={})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Survey name is required"}


class TestStructuredFormatter:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("phone_survey.test", logging.INFO, __file__, 1, "Call placed", (), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_extra_fields_become_keys(self) -> None:
        output = json.loads(StructuredFormatter().format(self._record(call_sid="CA1", attempt_count=2)))

        assert output["message"] == "Call placed"
        assert output["level"] == "INFO"
        assert output["logger"] == "phone_survey.test"
        assert output["call_sid"] == "CA1"
        assert output["attempt_count"] == 2

    def test_correlation_id_is_included(self) -> None:
        token = correlation_id_var.set("req-7")
        try:
            output = json.loads(StructuredFormatter().format(self._record()))
        finally:
            correlation_id_var.reset(token)
        assert output["correlation_id"] == "req-7"

    def test_clashing_extra_is_prefixed(self) -> None:
        output = json.loads(StructuredFormatter().format(self._record(level="custom")))
        assert output["level"] == "INFO"
        assert output["extra_level"] == "custom"

    def test_bound_call_sid_is_included(self) -> None:
        token = call_sid_var.set("CA_BOUND")
        try:
            output = json.loads(StructuredFormatter().format(self._record()))
        finally:
            call_sid_var.reset(token)
        assert output["call_sid"] == "CA_BOUND"

    def test_explicit_call_sid_wins_over_bound_one(self) -> None:
        token = call_sid_var.set("CA_BOUND")
        try:
            output = json.loads(StructuredFormatter().format(self._record(call_sid="CA_EXPLICIT")))
        finally:
            call_sid_var.reset(token)
        assert output["call_sid"] == "CA_EXPLICIT"
        assert "extra_call_sid" not in output

    def test_exception_text(self) -> None:
        try:
            raise RuntimeError("twilio down")
        except RuntimeError:
            record = logging.LogRecord(
                "phone_survey.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )
        output = json.loads(StructuredFormatter().format(record))
        assert "RuntimeError: twilio down" in output["exception"]
