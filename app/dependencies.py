"""
FastAPI dependencies resolving the services built during startup
"""
from typing import Optional

from fastapi import Query, Request

from app.config import settings
from app.services import IngestionService, MutationService, QueryService, SlackNotifier
from app.storage import RecordStore


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def get_notifier(request: Request) -> SlackNotifier:
    return request.app.state.notifier


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def get_mutation_service(request: Request) -> MutationService:
    return request.app.state.mutation_service


def get_owner(
    user_id: Optional[str] = Query(None, alias="userId"),
    owner: Optional[str] = Query(None)
) -> str:
    """Owner named by the query string, or the single default identity"""
    return owner or user_id or settings.default_owner
