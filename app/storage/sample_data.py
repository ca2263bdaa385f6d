"""
Canned example records for seeding an empty store and for demo mode
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import uuid4

from app.models import ErrorRecordRead, RetryEntry
from app.time_utils import isoformat, utcnow


SAMPLE_ERRORS: List[Dict[str, Any]] = [
    {
        "hours_ago": 1,
        "integration_name": "Zapier",
        "error_type": "AUTH_EXPIRED",
        "error_message": "OAuth token expired for Gmail account",
        "raw_payload": {"zapId": "ZAP-83921", "step": "Send Email", "response": "401 Unauthorized"},
        "retries": [(0.5, False, "Authentication still expired", {"tokenRefreshed": False})],
    },
    {
        "hours_ago": 2,
        "integration_name": "n8n",
        "error_type": "CONNECTION_FAILED",
        "error_message": "Failed to connect to Slack API",
        "raw_payload": {"nodeId": "slack-node-1", "workflowId": "workflow-456", "error": "Network timeout"},
        "retries": [
            (1.5, False, "Connection still failing", {"connectionTest": "fail"}),
            (1.0, True, "Connection restored", {"connectionTest": "pass"}),
        ],
        "resolved_hours_ago": 0.8,
    },
    {
        "hours_ago": 3,
        "integration_name": "Make.com",
        "error_type": "RATE_LIMIT",
        "error_message": "API rate limit exceeded for Google Sheets",
        "raw_payload": {"scenarioId": "scenario-789", "module": "Google Sheets - Add Row"},
        "retries": [],
    },
    {
        "hours_ago": 4,
        "integration_name": "Zapier",
        "error_type": "INVALID_DATA",
        "error_message": "Invalid email format in trigger data",
        "raw_payload": {"zapId": "ZAP-12345", "step": "Format Email", "invalidData": {"email": "not-an-email"}},
        "retries": [
            (3.5, False, "Retry failed", {"retryAttempt": True}),
            (2.5, False, "Retry failed", {"retryAttempt": True}),
            (2.0, False, "Retry failed", {"retryAttempt": True}),
        ],
    },
    {
        "hours_ago": 5,
        "integration_name": "n8n",
        "error_type": "TIMEOUT",
        "error_message": "HTTP request timeout after 30 seconds",
        "raw_payload": {"nodeId": "http-request-1", "workflowId": "workflow-123", "url": "https://api.example.com"},
        "retries": [(4.5, True, "Retry successful", {"retryAttempt": True})],
        "resolved_hours_ago": 4,
    },
    {
        "hours_ago": 6,
        "integration_name": "Make.com",
        "error_type": "AUTH_EXPIRED",
        "error_message": "Google Drive authentication expired",
        "raw_payload": {"scenarioId": "scenario-456", "module": "Google Drive - Upload File"},
        "retries": [
            (5.5, False, "Authentication still expired", {"tokenRefreshed": False}),
            (5.0, False, "Authentication still expired", {"tokenRefreshed": False}),
        ],
    },
    {
        "hours_ago": 7,
        "integration_name": "Zapier",
        "error_type": "RATE_LIMIT",
        "error_message": "Twitter API rate limit exceeded",
        "raw_payload": {"zapId": "ZAP-67890", "step": "Post Tweet"},
        "retries": [(6.5, True, "Rate limit window reset", {"rateLimitReset": None})],
        "resolved_hours_ago": 6,
    },
    {
        "hours_ago": 8,
        "integration_name": "n8n",
        "error_type": "INVALID_DATA",
        "error_message": "Missing required field: customer_email",
        "raw_payload": {"nodeId": "validation-node", "workflowId": "workflow-789"},
        "retries": [],
    },
    {
        "hours_ago": 9,
        "integration_name": "Make.com",
        "error_type": "CONNECTION_FAILED",
        "error_message": "Unable to connect to Shopify store",
        "raw_payload": {"scenarioId": "scenario-321", "module": "Shopify - Get Orders", "storeUrl": "mystore.myshopify.com"},
        "retries": [
            (8.0, False, "Connection still failing", {"connectionTest": "fail"}),
            (7.0, False, "Connection still failing", {"connectionTest": "fail"}),
            (6.0, False, "Connection still failing", {"connectionTest": "fail"}),
            (5.0, False, "Connection still failing", {"connectionTest": "fail"}),
        ],
    },
    {
        "hours_ago": 10,
        "integration_name": "Zapier",
        "error_type": "TIMEOUT",
        "error_message": "Webhook delivery timeout to customer endpoint",
        "raw_payload": {"zapId": "ZAP-11111", "step": "Send Webhook", "endpoint": "https://customer.com/webhook"},
        "retries": [
            (9.0, False, "Retry failed", {"retryAttempt": True}),
            (8.5, True, "Retry successful", {"retryAttempt": True}),
        ],
        "resolved_hours_ago": 8,
    },
]

# Reports posted by the debug test-error endpoint
DEBUG_REPORTS: List[Dict[str, Any]] = [
    {
        "integrationName": "Zapier",
        "errorType": "AUTH_EXPIRED",
        "errorMessage": "OAuth token expired for Gmail account",
        "rawPayload": {"zapId": "ZAP-83921", "step": "Send Email", "response": "401 Unauthorized"},
        "minutes_ago": 0,
    },
    {
        "integrationName": "n8n",
        "errorType": "CONNECTION_FAILED",
        "errorMessage": "Failed to connect to Slack API",
        "rawPayload": {"nodeId": "slack-node-1", "workflowId": "workflow-456", "error": "Network timeout after 30 seconds"},
        "minutes_ago": 1,
    },
    {
        "integrationName": "Make.com",
        "errorType": "RATE_LIMIT",
        "errorMessage": "API rate limit exceeded for Google Sheets",
        "rawPayload": {"scenarioId": "scenario-789", "module": "Google Sheets - Add Row"},
        "minutes_ago": 2,
    },
    {
        "integrationName": "Zapier",
        "errorType": "INVALID_DATA",
        "errorMessage": "Invalid email format in trigger data",
        "rawPayload": {"zapId": "ZAP-12345", "step": "Format Email", "invalidData": {"email": "not-an-email"}},
        "minutes_ago": 3,
    },
]


def sample_records(owner: str, now: Optional[datetime] = None) -> List[ErrorRecordRead]:
    """
    Build the canned example records with timestamps relative to now

    Retry histories match each record's retry_count and resolved records
    carry a resolved_at.

    Args:
        owner: Owner the records belong to
        now: Reference time (defaults to the current time)

    Returns:
        List of records ready for RecordStore.import_records
    """
    now = now or utcnow()
    records = []

    for sample in SAMPLE_ERRORS:
        occurred_at = now - timedelta(hours=sample["hours_ago"])
        history = []
        for hours_ago, success, message, response in sample["retries"]:
            if "rateLimitReset" in response:
                response = {"rateLimitReset": isoformat(now - timedelta(hours=hours_ago - 1))}
            history.append(RetryEntry(
                timestamp=now - timedelta(hours=hours_ago),
                success=success,
                message=message,
                response=dict(response)
            ))

        resolved_at = None
        if "resolved_hours_ago" in sample:
            resolved_at = now - timedelta(hours=sample["resolved_hours_ago"])

        records.append(ErrorRecordRead(
            id=str(uuid4()),
            owner=owner,
            occurred_at=occurred_at,
            integration_name=sample["integration_name"],
            error_type=sample["error_type"],
            error_message=sample["error_message"],
            raw_payload=sample["raw_payload"],
            resolved=resolved_at is not None,
            resolved_at=resolved_at,
            retry_count=len(history),
            last_retry_at=history[-1].timestamp if history else None,
            retry_history=history,
            created_at=occurred_at,
            updated_at=resolved_at or (history[-1].timestamp if history else occurred_at)
        ))

    return records


def debug_reports(owner: str, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Webhook bodies for the debug test-error endpoint"""
    now = now or utcnow()
    reports = []
    for report in DEBUG_REPORTS:
        body = {key: value for key, value in report.items() if key != "minutes_ago"}
        body["userId"] = owner
        body["timestamp"] = (now - timedelta(minutes=report["minutes_ago"])).isoformat()
        reports.append(body)
    return reports
