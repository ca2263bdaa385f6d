"""
Unit tests for the canned example records
"""
from datetime import datetime, timezone

from app.models import ErrorReport
from app.storage.sample_data import DEBUG_REPORTS, SAMPLE_ERRORS, debug_reports, sample_records


NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_sample_records_are_consistent():
    """Test retry counts, resolution and timestamps line up"""
    records = sample_records("local-dev-user", now=NOW)

    assert len(records) == len(SAMPLE_ERRORS)
    assert len({record.id for record in records}) == len(records)

    for record in records:
        assert record.owner == "local-dev-user"
        assert record.retry_count == len(record.retry_history)
        assert record.resolved == (record.resolved_at is not None)
        assert record.occurred_at < NOW
        if record.retry_history:
            assert record.last_retry_at == record.retry_history[-1].timestamp
            assert all(entry.timestamp > record.occurred_at for entry in record.retry_history)
        else:
            assert record.last_retry_at is None


def test_sample_records_cover_every_category():
    """Test the dashboard has something to show for each filter"""
    records = sample_records("local-dev-user", now=NOW)

    assert {record.error_type for record in records} == {
        "AUTH_EXPIRED", "CONNECTION_FAILED", "RATE_LIMIT", "INVALID_DATA", "TIMEOUT"
    }
    assert {record.integration_name for record in records} == {"Zapier", "n8n", "Make.com"}
    assert any(record.resolved for record in records)
    assert any(not record.resolved for record in records)


def test_debug_reports_are_valid_webhook_bodies():
    """Test each debug report passes ingestion validation"""
    reports = debug_reports("team-a", now=NOW)

    assert len(reports) == len(DEBUG_REPORTS)
    for body in reports:
        assert "minutes_ago" not in body
        report = ErrorReport.model_validate(body)
        assert report.owner == "team-a"
        assert report.occurred_at <= NOW
