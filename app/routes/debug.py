"""
Debug routes for generating test errors and inspecting the store
"""
from fastapi import APIRouter, Depends, HTTPException

from app.config import settings
from app.dependencies import get_ingestion_service, get_query_service, get_record_store
from app.logging_config import logger
from app.models import ErrorFilters
from app.services import IngestionService, QueryService
from app.storage import RecordStore
from app.storage.sample_data import debug_reports

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/test-error")
async def create_test_errors(service: IngestionService = Depends(get_ingestion_service)):
    """Ingest a batch of example errors, sending a notification for each"""
    try:
        records = []
        for report in debug_reports(settings.default_owner):
            records.append(await service.submit(report))

        return {
            "message": f"{len(records)} test errors created and Slack notifications sent",
            "count": len(records),
            "data": [record.to_api() for record in records]
        }

    except Exception as e:
        logger.error(f"Error creating test errors: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/check-db")
async def check_db(
    store: RecordStore = Depends(get_record_store),
    service: QueryService = Depends(get_query_service)
):
    """Report storage mode, record count and the default owner's records"""
    try:
        records = await service.list_errors(settings.default_owner, ErrorFilters(show_resolved=True))

        return {
            "message": "Database check complete",
            "storageMode": store.mode.value,
            "healthy": await store.health_check(),
            "totalRecords": await store.count(),
            "records": [record.to_api() for record in records]
        }

    except Exception as e:
        logger.error(f"Error checking database: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
