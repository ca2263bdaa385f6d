"""
Slack notifications for newly ingested errors
"""
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.exceptions import NotifierError
from app.logging_config import logger
from app.models import ErrorRecordRead


SUGGESTIONS: Dict[str, str] = {
    "AUTH_EXPIRED": "Check and refresh OAuth tokens in your {integration} dashboard",
    "RATE_LIMIT": "Wait for rate limit reset or upgrade your {integration} plan",
    "CONNECTION_FAILED": "Check {integration} service status and network connectivity",
    "INVALID_DATA": "Verify data format and field mappings in {integration}",
    "TIMEOUT": "Increase timeout settings or check {integration} response times",
}

DEFAULT_SUGGESTION = "Check {integration} configuration and logs"


def get_suggestion(error_type: str, integration_name: str) -> str:
    """Static fix suggestion for an error category"""
    template = SUGGESTIONS.get(error_type, DEFAULT_SUGGESTION)
    return f"💡 *Suggested Fix:* {template.format(integration=integration_name)}"


class SlackNotifier:
    """Posts a summary of each new error record to a Slack incoming webhook"""

    def __init__(self, webhook_url: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize Slack notifier

        Args:
            webhook_url: Incoming webhook URL (uses settings if not provided)
            timeout: Request timeout in seconds (uses settings if not provided)
        """
        self.webhook_url = webhook_url if webhook_url is not None else settings.slack_webhook_url
        self.timeout = timeout if timeout is not None else settings.notifier_timeout

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def build_message(self, record: ErrorRecordRead) -> Dict[str, Any]:
        """
        Build the Block Kit message for a record

        Args:
            record: Newly stored error record

        Returns:
            JSON payload for the webhook
        """
        occurred = record.occurred_at.strftime("%Y-%m-%d %H:%M:%S UTC")

        return {
            "text": "🚨 *ErrorCue Alert*",
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "🚨 ErrorCue Alert"}
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Integration:*\n{record.integration_name}"},
                        {"type": "mrkdwn", "text": f"*Error Type:*\n{record.error_type}"},
                        {"type": "mrkdwn", "text": f"*User ID:*\n{record.owner}"},
                        {"type": "mrkdwn", "text": f"*Time:*\n{occurred}"}
                    ]
                },
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"*Error Message:*\n```{record.error_message}```"}
                },
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": get_suggestion(record.error_type, record.integration_name)}
                },
                {"type": "divider"},
                {
                    "type": "context",
                    "elements": [
                        {
                            "type": "mrkdwn",
                            "text": "Catch automation errors before they break your business • ErrorCue"
                        }
                    ]
                }
            ]
        }

    async def _post(self, message: Dict[str, Any]) -> None:
        """
        Send a message to the webhook

        Raises:
            NotifierError: On transport failure or a non-2xx response
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=message)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NotifierError(f"Slack webhook request failed: {type(e).__name__}: {str(e)}") from e

        if not response.is_success:
            raise NotifierError(f"Slack webhook returned {response.status_code}: {response.text[:200]}")

    async def notify(self, record: ErrorRecordRead) -> bool:
        """
        Notify about a new error record, never raising

        Args:
            record: Newly stored error record

        Returns:
            True if the message was delivered
        """
        if not self.enabled:
            logger.info("Slack webhook not configured, skipping notification")
            return False

        try:
            await self._post(self.build_message(record))
        except NotifierError as e:
            logger.error(f"Failed to send Slack notification for {record.id}: {str(e)}")
            return False

        logger.info(f"Slack notification sent for {record.id}")
        return True
