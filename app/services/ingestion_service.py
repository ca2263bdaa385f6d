"""
Ingestion of error reports posted to the webhook
"""
from typing import Any, Dict, List, Optional, Tuple

import pydantic

from app.exceptions import ValidationError
from app.logging_config import logger
from app.models import ErrorRecordRead, ErrorReport
from app.services.notifier import SlackNotifier
from app.storage.base import RecordStore


# Wire name reported for each required field, whichever alias was sent
REQUIRED_FIELDS: Dict[str, str] = {
    "owner": "owner",
    "occurred_at": "occurredAt",
    "integration_name": "integrationName",
    "error_type": "errorType",
    "error_message": "errorMessage",
}


def _field_aliases() -> Dict[str, str]:
    aliases = {}
    for name, field in ErrorReport.model_fields.items():
        public = REQUIRED_FIELDS.get(name, name)
        aliases[name] = public
        for choice in getattr(field.validation_alias, "choices", []):
            aliases[choice] = public
    return aliases


FIELD_ALIASES = _field_aliases()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_report(payload: Any) -> ErrorReport:
    """
    Validate a webhook body into an ErrorReport

    Args:
        payload: Decoded JSON body

    Returns:
        Validated report

    Raises:
        ValidationError: Listing missing and invalid fields
    """
    if not isinstance(payload, dict):
        raise ValidationError(invalid_fields=["body"])

    try:
        return ErrorReport.model_validate(payload)
    except pydantic.ValidationError as e:
        missing, invalid = _classify(e)
        raise ValidationError(missing_fields=missing, invalid_fields=invalid) from e


def _classify(error: pydantic.ValidationError) -> Tuple[List[str], List[str]]:
    missing: List[str] = []
    invalid: List[str] = []

    for detail in error.errors():
        loc = detail.get("loc") or ("body",)
        field = FIELD_ALIASES.get(str(loc[0]), str(loc[0]))
        if detail.get("type") == "missing" or _is_blank(detail.get("input")):
            bucket = missing
        else:
            bucket = invalid
        if field not in bucket:
            bucket.append(field)

    # Keep a stable order for error messages
    order = list(REQUIRED_FIELDS.values())
    missing.sort(key=lambda name: order.index(name) if name in order else len(order))
    return missing, invalid


class IngestionService:
    """Validates, stores and announces incoming error reports"""

    def __init__(self, store: RecordStore, notifier: Optional[SlackNotifier] = None):
        """
        Initialize ingestion service

        Args:
            store: Record store new errors are written to
            notifier: Notifier told about each stored error (optional)
        """
        self.store = store
        self.notifier = notifier

    async def submit(self, payload: Dict[str, Any], notify: bool = True) -> ErrorRecordRead:
        """
        Store a reported error and send its notification

        The record is persisted before the notification is attempted, and a
        failed notification never fails the submit.

        Args:
            payload: Decoded webhook body
            notify: Whether to notify now; callers that notify later pass False

        Returns:
            The stored record

        Raises:
            ValidationError: If required fields are missing or unparseable
            StorageError: If the record could not be stored
        """
        try:
            report = parse_report(payload)
        except ValidationError as e:
            logger.warning(f"Rejected error report: {str(e)}")
            raise

        record = await self.store.create(report)
        logger.info(
            f"Error logged: {record.id} ({record.integration_name}/{record.error_type}) for {record.owner}"
        )

        if notify and self.notifier is not None:
            await self.notifier.notify(record)

        return record
