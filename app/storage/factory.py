"""
Record store selection, done once at application startup
"""
from typing import Optional

from app.config import Settings, settings as default_settings
from app.database import DatabaseManager
from app.exceptions import StorageError
from app.logging_config import logger
from app.storage.base import RecordStore, StorageMode
from app.storage.memory_store import MemoryRecordStore
from app.storage.sample_data import sample_records
from app.storage.sql_store import SQLRecordStore


async def seed_if_empty(store: RecordStore, owner: str) -> int:
    """
    Load the example records into an empty store

    Returns:
        Number of records seeded
    """
    if await store.count() > 0:
        return 0

    seeded = await store.import_records(sample_records(owner))
    logger.info(f"Seeded {seeded} sample error records for {owner}")
    return seeded


async def build_record_store(settings: Optional[Settings] = None) -> RecordStore:
    """
    Create the configured record store

    The SQL backend is checked for reachability here. When it is down and
    demo fallback is enabled, a seeded in-memory store flagged as DEMO is
    returned instead.

    Args:
        settings: Settings to use (defaults to the global settings)

    Returns:
        Ready-to-use record store

    Raises:
        StorageError: If the database is unreachable and demo fallback is off
        ValueError: If the storage backend name is unknown
    """
    settings = settings or default_settings
    backend = settings.storage_backend.lower()

    if backend == "memory":
        store = MemoryRecordStore(StorageMode.MEMORY)
        if settings.seed_sample_data:
            await seed_if_empty(store, settings.default_owner)
        return store

    if backend != "sql":
        raise ValueError(f"Unknown storage backend: {settings.storage_backend}")

    db = DatabaseManager(
        settings.database_url,
        echo=settings.database_echo,
        busy_timeout=settings.database_busy_timeout
    )
    try:
        await db.initialize()
        if not await db.health_check():
            raise StorageError("Database health check failed")
    except Exception as e:
        await db.close()
        if not settings.demo_fallback:
            raise StorageError(f"Database unavailable: {str(e)}") from e

        logger.warning(
            f"Database unavailable, running in demo mode with non-durable sample data: {str(e)}"
        )
        store = MemoryRecordStore(StorageMode.DEMO)
        await seed_if_empty(store, settings.default_owner)
        return store

    store = SQLRecordStore(db)
    if settings.seed_sample_data:
        await seed_if_empty(store, settings.default_owner)

    logger.info("Using SQL record store")
    return store
