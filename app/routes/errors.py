"""
API routes for error ingestion, dashboard queries, retries and resolution
"""
import json
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status

from app.config import settings
from app.dependencies import (
    get_ingestion_service,
    get_mutation_service,
    get_notifier,
    get_owner,
    get_query_service,
)
from app.exceptions import NotFoundError, StorageError, ValidationError
from app.logging_config import logger
from app.models import ErrorFilters
from app.services import IngestionService, MutationService, QueryService, SlackNotifier
from app.time_utils import isoformat, parse_timestamp

router = APIRouter(prefix="/api", tags=["errors"])


def _parse_date_param(name: str, value: Optional[str]):
    if value is None or value == "":
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        raise ValidationError(invalid_fields=[name])


TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}


def _parse_bool_param(name: str, value: Optional[str], default: bool = False) -> bool:
    if value is None or value == "":
        return default
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValidationError(invalid_fields=[name])


async def _read_report_body(request: Request) -> Any:
    """Decoded JSON body; an empty body reads as an empty report"""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError:
        raise ValidationError(invalid_fields=["body"])


@router.post("/errors", status_code=status.HTTP_201_CREATED)
async def ingest_error(
    request: Request,
    background_tasks: BackgroundTasks,
    service: IngestionService = Depends(get_ingestion_service),
    notifier: SlackNotifier = Depends(get_notifier)
):
    """Webhook receiver for automation platform errors"""
    try:
        payload = await _read_report_body(request)

        if settings.notify_in_background:
            record = await service.submit(payload, notify=False)
            background_tasks.add_task(notifier.notify, record)
        else:
            record = await service.submit(payload)

        return {
            "message": "Error logged successfully",
            "id": record.id
        }

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.to_detail())
    except StorageError as e:
        logger.error(f"Error storing webhook report: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
    except Exception as e:
        logger.error(f"Error handling webhook: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/errors")
async def list_errors(
    owner: str = Depends(get_owner),
    integration: Optional[str] = Query(None),
    error_type: Optional[str] = Query(None, alias="errorType"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    show_resolved: Optional[str] = Query(None, alias="showResolved"),
    service: QueryService = Depends(get_query_service)
):
    """Get error logs for the dashboard"""
    try:
        filters = ErrorFilters(
            integration=integration,
            error_type=error_type,
            start_date=_parse_date_param("startDate", start_date),
            end_date=_parse_date_param("endDate", end_date),
            show_resolved=_parse_bool_param("showResolved", show_resolved)
        )

        records = await service.list_errors(owner, filters)
        return [record.to_api() for record in records]

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.to_detail())
    except Exception as e:
        logger.error(f"Error fetching error logs: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/stats")
async def get_stats(
    owner: str = Depends(get_owner),
    service: QueryService = Depends(get_query_service)
):
    """Get dashboard statistics for the trailing week"""
    try:
        stats = await service.stats(owner)
        return stats.to_api()

    except Exception as e:
        logger.error(f"Error fetching stats: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/filter-options")
async def get_filter_options(
    owner: str = Depends(get_owner),
    service: QueryService = Depends(get_query_service)
):
    """Get available integrations and error types for the filter dropdowns"""
    try:
        options = await service.filter_options(owner)
        return options.to_api()

    except Exception as e:
        logger.error(f"Error fetching filter options: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/retry-error/{error_id}")
@router.post("/errors/{error_id}/retry")
async def retry_error(
    error_id: str,
    service: MutationService = Depends(get_mutation_service)
):
    """Simulate a retry of a stored error"""
    try:
        entry = await service.simulate_retry(error_id)

        return {
            "message": "Retry completed",
            "result": {
                "success": entry.success,
                "message": entry.message,
                "response": entry.response
            },
            "errorId": error_id
        }

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Error log not found")
    except Exception as e:
        logger.error(f"Error retrying {error_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/resolve-error/{error_id}")
@router.post("/errors/{error_id}/resolve")
async def resolve_error(
    error_id: str,
    service: MutationService = Depends(get_mutation_service)
):
    """Mark a stored error as resolved"""
    try:
        record = await service.resolve(error_id)

        return {
            "message": "Error marked as resolved",
            "errorId": error_id,
            "resolved": True,
            "resolvedAt": isoformat(record.resolved_at)
        }

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Error log not found")
    except Exception as e:
        logger.error(f"Error resolving {error_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
