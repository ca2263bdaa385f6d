# Business logic services package
from .notifier import SlackNotifier
from .retry_simulator import RetrySimulator
from .ingestion_service import IngestionService
from .query_service import QueryService
from .mutation_service import MutationService

__all__ = [
    "SlackNotifier",
    "RetrySimulator",
    "IngestionService",
    "QueryService",
    "MutationService"
]
