"""
Database initialization and health check utilities
"""
import asyncio
import sys

from app.config import settings
from app.database import db_manager
from app.logging_config import logger, setup_logging
from app.storage import SQLRecordStore, seed_if_empty


async def init_database(seed: bool = False) -> None:
    """Initialize database, create all tables and optionally seed sample data"""
    try:
        logger.info("Initializing database...")

        # Tables are created by the database manager on first initialization
        await db_manager.initialize()

        if seed:
            await seed_if_empty(SQLRecordStore(db_manager), settings.default_owner)

        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise
    finally:
        # Close connections
        await db_manager.close()


async def check_database_health() -> bool:
    """Check database connectivity and table existence"""
    try:
        logger.info("Checking database health...")

        await db_manager.initialize()
        is_healthy = await db_manager.health_check()

        if is_healthy:
            logger.info("Database health check passed")
        else:
            logger.error("Database health check failed")

        return is_healthy

    except Exception as e:
        logger.error(f"Database health check error: {str(e)}")
        return False
    finally:
        await db_manager.close()


if __name__ == "__main__":
    # python -m app.db_init [--seed | --check]
    setup_logging()
    if "--check" in sys.argv:
        sys.exit(0 if asyncio.run(check_database_health()) else 1)
    asyncio.run(init_database(seed="--seed" in sys.argv))
