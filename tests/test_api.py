"""
Integration tests for the HTTP API
"""
from datetime import timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app
from app.time_utils import utcnow
from tests.factories import make_report


@pytest.fixture
def client():
    """Test client with a fresh in-memory store per test"""
    with TestClient(app) as test_client:
        yield test_client


def post_error(client, **overrides):
    response = client.post("/api/errors", json=make_report(**overrides))
    assert response.status_code == 201
    return response.json()["id"]


class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_reports_storage_mode(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "errorcue", "storage": "memory"}

    def test_storage_mode_header(self, client):
        response = client.get("/api/errors")

        assert response.headers["X-Storage-Mode"] == "memory"

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        response = client.get("/health")

        assert response.headers["X-Request-ID"]


class TestIngest:

    def test_ingest_returns_id(self, client):
        response = client.post("/api/errors", json=make_report())

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Error logged successfully"
        assert body["id"]

    def test_ingest_with_owner_and_occurred_at(self, client):
        response = client.post("/api/errors", json={
            "owner": "local-dev-user",
            "occurredAt": "2025-01-15T10:30:00Z",
            "integrationName": "n8n",
            "errorType": "TIMEOUT",
            "errorMessage": "HTTP request timeout"
        })

        assert response.status_code == 201
        listed = client.get("/api/errors").json()
        assert listed[0]["timestamp"] == "2025-01-15T10:30:00Z"
        assert listed[0]["raw_payload"] == {}

    def test_missing_fields(self, client):
        body = make_report()
        del body["integrationName"]
        del body["errorMessage"]

        response = client.post("/api/errors", json=body)

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["missing_fields"] == ["integrationName", "errorMessage"]
        assert detail["error"] == "Missing required fields: integrationName, errorMessage"
        assert client.get("/api/errors").json() == []

    def test_unparseable_timestamp(self, client):
        response = client.post("/api/errors", json=make_report(timestamp="not a date"))

        assert response.status_code == 400
        assert response.json()["detail"]["invalid_fields"] == ["occurredAt"]

    def test_non_object_body(self, client):
        response = client.post("/api/errors", json=["not", "an", "object"])

        assert response.status_code == 400

    def test_empty_body(self, client):
        response = client.post("/api/errors")

        assert response.status_code == 400
        assert response.json()["detail"]["missing_fields"] == [
            "owner", "occurredAt", "integrationName", "errorType", "errorMessage"
        ]

    def test_malformed_json(self, client):
        response = client.post(
            "/api/errors",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["invalid_fields"] == ["body"]
        assert client.get("/api/errors").json() == []

    def test_notification_sent_inline(self, client):
        notifier = client.app.state.notifier
        with patch.object(notifier, "notify", new_callable=AsyncMock) as mock_notify:
            error_id = post_error(client)

        mock_notify.assert_awaited_once()
        assert mock_notify.await_args.args[0].id == error_id

    def test_notification_sent_in_background(self, client, monkeypatch):
        monkeypatch.setattr(settings, "notify_in_background", True)
        notifier = client.app.state.notifier
        with patch.object(notifier, "notify", new_callable=AsyncMock) as mock_notify:
            error_id = post_error(client)

        mock_notify.assert_awaited_once()
        assert mock_notify.await_args.args[0].id == error_id


class TestListErrors:

    def test_record_shape(self, client):
        error_id = post_error(client, rawPayload={"zapId": "ZAP-83921"})

        records = client.get("/api/errors").json()

        assert len(records) == 1
        record = records[0]
        assert record["id"] == error_id
        assert record["user_id"] == "local-dev-user"
        assert record["integration_name"] == "Zapier"
        assert record["error_type"] == "RATE_LIMIT"
        assert record["raw_payload"] == {"zapId": "ZAP-83921"}
        assert record["resolved"] is False
        assert record["resolved_at"] is None
        assert record["retry_count"] == 0
        assert record["retry_results"] == []
        assert record["timestamp"].endswith("Z")

    def test_filters(self, client):
        zapier = post_error(client, integrationName="Zapier", errorType="RATE_LIMIT")
        post_error(client, integrationName="n8n", errorType="RATE_LIMIT")
        post_error(client, integrationName="Zapier", errorType="AUTH_EXPIRED")

        records = client.get("/api/errors", params={"integration": "Zapier", "errorType": "RATE_LIMIT"}).json()
        everything = client.get("/api/errors", params={"integration": "all", "errorType": "all"}).json()

        assert [r["id"] for r in records] == [zapier]
        assert len(everything) == 3

    def test_date_range(self, client):
        now = utcnow()
        recent = post_error(client, timestamp=(now - timedelta(days=1)).isoformat())
        post_error(client, timestamp=(now - timedelta(days=10)).isoformat())

        start = (now - timedelta(days=2)).date().isoformat()
        records = client.get("/api/errors", params={"startDate": start}).json()

        assert [r["id"] for r in records] == [recent]

    def test_bad_date_param(self, client):
        response = client.get("/api/errors", params={"startDate": "someday"})

        assert response.status_code == 400
        assert response.json()["detail"]["invalid_fields"] == ["startDate"]

    def test_bad_show_resolved_param(self, client):
        response = client.get("/api/errors", params={"showResolved": "maybe"})

        assert response.status_code == 400
        assert response.json()["detail"]["invalid_fields"] == ["showResolved"]

    @pytest.mark.parametrize("value", ["true", "True", "1", "yes"])
    def test_show_resolved_truthy_values(self, client, value):
        error_id = post_error(client)
        client.post(f"/api/errors/{error_id}/resolve")

        records = client.get("/api/errors", params={"showResolved": value}).json()

        assert [r["id"] for r in records] == [error_id]

    def test_owner_query_param(self, client):
        post_error(client, userId="team-b")

        assert client.get("/api/errors").json() == []
        assert len(client.get("/api/errors", params={"userId": "team-b"}).json()) == 1
        assert len(client.get("/api/errors", params={"owner": "team-b"}).json()) == 1


class TestStatsAndFilterOptions:

    def test_stats_empty(self, client):
        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {"totalErrors": 0, "mostCommonErrorType": "None", "totalIntegrations": 0}

    def test_stats(self, client):
        for _ in range(3):
            post_error(client, errorType="AUTH_EXPIRED", integrationName="Zapier")
        post_error(client, errorType="RATE_LIMIT", integrationName="n8n")

        assert client.get("/api/stats").json() == {
            "totalErrors": 4,
            "mostCommonErrorType": "AUTH_EXPIRED",
            "totalIntegrations": 2
        }

    def test_filter_options(self, client):
        post_error(client, integrationName="n8n", errorType="TIMEOUT")
        post_error(client, integrationName="Airtable", errorType="AUTH_EXPIRED")

        assert client.get("/api/filter-options").json() == {
            "integrations": ["Airtable", "n8n"],
            "errorTypes": ["AUTH_EXPIRED", "TIMEOUT"]
        }


class TestRetryAndResolve:

    @pytest.mark.parametrize("path", ["/api/retry-error/{id}", "/api/errors/{id}/retry"])
    def test_retry(self, client, path):
        error_id = post_error(client)

        response = client.post(path.format(id=error_id))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Retry completed"
        assert body["errorId"] == error_id
        assert set(body["result"]) == {"success", "message", "response"}

        record = client.get("/api/errors").json()[0]
        assert record["retry_count"] == 1
        assert record["retry_results"][0]["message"] == body["result"]["message"]
        assert record["last_retry_at"] == record["retry_results"][0]["timestamp"]

    @pytest.mark.parametrize("error_id", [str(uuid4()), "not-a-record-id"])
    def test_retry_unknown(self, client, error_id):
        response = client.post(f"/api/retry-error/{error_id}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Error log not found"

    @pytest.mark.parametrize("path", ["/api/resolve-error/{id}", "/api/errors/{id}/resolve"])
    def test_resolve(self, client, path):
        error_id = post_error(client)

        response = client.post(path.format(id=error_id))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Error marked as resolved"
        assert body["errorId"] == error_id
        assert body["resolved"] is True
        assert body["resolvedAt"].endswith("Z")

        assert client.get("/api/errors").json() == []
        shown = client.get("/api/errors", params={"showResolved": "true"}).json()
        assert shown[0]["resolved"] is True
        assert shown[0]["resolved_at"] == body["resolvedAt"]

    def test_resolve_unknown(self, client):
        response = client.post(f"/api/errors/{uuid4()}/resolve")

        assert response.status_code == 404


class TestDebugRoutes:

    def test_test_error(self, client):
        response = client.get("/debug/test-error")

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == len(body["data"]) > 0
        assert len(client.get("/api/errors").json()) == body["count"]

    def test_check_db(self, client):
        post_error(client)

        body = client.get("/debug/check-db").json()

        assert body["storageMode"] == "memory"
        assert body["healthy"] is True
        assert body["totalRecords"] == 1
        assert len(body["records"]) == 1
