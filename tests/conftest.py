"""
Shared test configuration and fixtures
"""
import os

# Settings are read once at import time, so the test environment must be
# in place before any app module is imported
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SEED_SAMPLE_DATA", "false")
os.environ.setdefault("SLACK_WEBHOOK_URL", "")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ENABLE_DEBUG_ROUTES", "true")

import random

import pytest
import pytest_asyncio

from app.database import DatabaseManager
from app.services import IngestionService, MutationService, QueryService, RetrySimulator, SlackNotifier
from app.storage import MemoryRecordStore, SQLRecordStore


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    """Each record store backend in turn"""
    if request.param == "memory":
        yield MemoryRecordStore()
        return

    db = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'errorcue-test.db'}", echo=False)
    await db.initialize()
    yield SQLRecordStore(db)
    await db.close()


@pytest.fixture
def disabled_notifier():
    """Notifier with no destination configured"""
    return SlackNotifier(webhook_url="", timeout=1.0)


@pytest.fixture
def ingestion_service(store, disabled_notifier):
    return IngestionService(store, disabled_notifier)


@pytest.fixture
def query_service(store):
    return QueryService(store, list_limit=100, stats_window_days=7)


@pytest.fixture
def mutation_service(store):
    return MutationService(store, RetrySimulator(rng=random.Random(42)))
