#!/usr/bin/env python3
"""
End-to-end tests for POST /appointments through the full HTTP stack.
"""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.crud.appointment import get_appointment
from app.core.errors import ErrorSeverity, determine_severity
from app.services.validation import (
    MSG_CONTACT_REQUIRED,
    MSG_PHONE_SHORT,
    MSG_SERVICE_ID,
    MSG_START_FORMAT,
)


def fetch_appointment(client, appointment_id):
    """Read a row back on the app's own event loop and engine."""
    async def _fetch():
        async with client.app.state.session_factory() as session:
            return await get_appointment(session, appointment_id)

    return client.portal.call(_fetch)


@pytest.mark.integration
class TestCreateAppointment:
    """Acceptance path"""

    def test_accepts_and_stores_pending_record(self, client, valid_payload):
        response = client.post("/appointments", json=valid_payload)

        assert response.status_code == 201
        data = response.json()
        assert data["message"]
        debug = data["debug"]
        assert set(debug) == {"id", "confirmToken", "cancelToken"}

        row = fetch_appointment(client, debug["id"])
        assert row.status == "pending"
        assert row.start_at == "2025-09-20T18:00:00Z"
        assert row.end_at == "2025-09-20T19:00:00Z"
        assert row.client_name == "Jane Doe"
        assert row.confirm_token == debug["confirmToken"]
        assert row.cancel_token == debug["cancelToken"]

    def test_debug_tokens_hidden_by_default(self, build_client, valid_payload):
        client = build_client(EXPOSE_DEBUG_TOKENS=False)
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 201
        assert "debug" not in response.json()

    def test_debug_tokens_never_leak_in_production(self, build_client, valid_payload):
        client = build_client(APP_ENV="production", EXPOSE_DEBUG_TOKENS=True)
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 201
        assert "debug" not in response.json()

    def test_offset_start_is_stored_in_utc(self, client, valid_payload):
        valid_payload["startAt"] = "2025-09-20T20:00+02:00"
        response = client.post("/appointments", json=valid_payload)
        row = fetch_appointment(client, response.json()["debug"]["id"])
        assert row.start_at == "2025-09-20T18:00:00Z"

    def test_email_is_lowercased(self, client, valid_payload):
        valid_payload["clientEmail"] = " Jane@Example.COM "
        response = client.post("/appointments", json=valid_payload)
        # leading whitespace fails the email shape check
        assert response.status_code == 400

        valid_payload["clientEmail"] = "Jane@Example.COM"
        response = client.post("/appointments", json=valid_payload)
        row = fetch_appointment(client, response.json()["debug"]["id"])
        assert row.client_email == "jane@example.com"


@pytest.mark.integration
class TestRejections:
    """Caller mistakes come back as 400 with an error list"""

    def test_missing_contacts(self, client, valid_payload):
        del valid_payload["clientEmail"]
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 400
        assert MSG_CONTACT_REQUIRED in response.json()["errors"]

    def test_short_phone(self, client, valid_payload):
        valid_payload["clientPhone"] = "123"
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 400
        assert MSG_PHONE_SHORT in response.json()["errors"]

    def test_seconds_in_start(self, client, valid_payload):
        valid_payload["startAt"] = "2025-09-20T18:00:00Z"
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 400
        assert response.json() == {"errors": [MSG_START_FORMAT]}

    def test_past_start_single_error(self, build_client, valid_payload):
        client = build_client(now=datetime(2025, 10, 1, tzinfo=timezone.utc))
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 400
        assert response.json() == {"errors": ["startAt must be in the future"]}

    def test_grid_enforced_by_setting(self, build_client, valid_payload):
        client = build_client(ENFORCE_SLOT_GRID=True)
        valid_payload["startAt"] = "2025-09-20T18:05Z"
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 400
        assert response.json() == {"errors": ["startAt must align to 15-minute increments"]}

    def test_invalid_json(self, client):
        response = client.post(
            "/appointments",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"errors": ["Request body must be valid JSON"]}

    def test_non_object_body(self, client):
        response = client.post("/appointments", json=[1, 2, 3])
        assert response.status_code == 400
        assert MSG_CONTACT_REQUIRED in response.json()["errors"]

    def test_oversized_body(self, client, valid_payload):
        valid_payload["notes"] = "x" * (33 * 1024)
        response = client.post("/appointments", content=json.dumps(valid_payload))
        assert response.status_code == 413
        assert response.json() == {"error": "Payload Too Large"}

    def test_oversized_chunked_body(self, build_client, valid_payload):
        # No Content-Length header, so only the route sees the real size
        client = build_client(MAX_BODY_BYTES=1024)
        valid_payload["notes"] = "x" * 2048
        body = json.dumps(valid_payload).encode()

        def chunks():
            yield body[:512]
            yield body[512:]

        response = client.post(
            "/appointments",
            content=chunks(),
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 413
        assert response.json() == {"error": "Payload Too Large"}

    @pytest.mark.parametrize("service_id", [2**31, 2**63, 1e300])
    def test_service_id_beyond_column_range(self, client, valid_payload, service_id):
        valid_payload["serviceId"] = service_id
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 400
        assert response.json() == {"errors": [MSG_SERVICE_ID]}

    def test_largest_service_id_is_stored(self, client, valid_payload):
        valid_payload["serviceId"] = 2**31 - 1
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 201
        row = fetch_appointment(client, response.json()["debug"]["id"])
        assert row.service_id == 2**31 - 1

    def test_start_too_far_in_the_future(self, client, valid_payload):
        valid_payload["startAt"] = "9999-12-31T23:30Z"
        response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 400
        assert response.json() == {"errors": ["startAt is too far in the future"]}


@pytest.mark.integration
class TestFaultBoundary:
    """Unexpected faults are logged and redacted in production"""

    def _failing_insert(self):
        return patch(
            "app.services.booking.insert_appointment",
            side_effect=OperationalError("INSERT", {}, Exception("connection refused")),
        )

    def test_detail_shown_outside_production(self, client, valid_payload):
        with self._failing_insert():
            response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 500
        assert "connection refused" in response.json()["error"]

    def test_detail_redacted_in_production(self, build_client, valid_payload):
        client = build_client(APP_ENV="production")
        with self._failing_insert():
            response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}

    def test_fault_is_logged(self, client, valid_payload):
        with self._failing_insert(), patch("app.core.errors.log_error") as mock_log:
            client.post("/appointments", json=valid_payload)
        mock_log.assert_called_once()
        error = mock_log.call_args.args[0]
        assert isinstance(error, OperationalError)

    def test_database_fault_logged_as_high(self, client, valid_payload):
        with self._failing_insert(), patch("app.core.errors.logger") as mock_logger:
            client.post("/appointments", json=valid_payload)
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["severity"] == "high"
        assert mock_logger.error.call_args.kwargs["endpoint"] == "/appointments"

    def test_fault_response_keeps_request_id(self, client, valid_payload):
        with self._failing_insert():
            response = client.post("/appointments", json=valid_payload)
        assert response.status_code == 500
        assert len(response.headers["X-Request-ID"]) == 8

    def test_fault_response_keeps_cors_headers(self, client, valid_payload):
        with self._failing_insert():
            response = client.post(
                "/appointments",
                json=valid_payload,
                headers={"Origin": "http://localhost:3000"},
            )
        assert response.status_code == 500
        assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.unit
class TestErrorSeverity:

    @pytest.mark.parametrize("error", [TimeoutError("read timed out"), ConnectionResetError()])
    def test_transient_faults_are_medium(self, error):
        assert determine_severity(error) is ErrorSeverity.MEDIUM

    @pytest.mark.parametrize("error", [
        OperationalError("INSERT", {}, Exception("disk full")),
        RuntimeError("boom"),
        KeyError("serviceId"),
    ])
    def test_everything_else_is_high(self, error):
        assert determine_severity(error) is ErrorSeverity.HIGH


@pytest.mark.smoke
class TestUnknownRoutes:

    def test_not_found(self, client):
        response = client.get("/slots/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_request_id_header(self, client):
        response = client.get("/healthz")
        assert len(response.headers["X-Request-ID"]) == 8
