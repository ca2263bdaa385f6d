"""
Async database engine and session management

SQLite allows a single writer at a time. For SQLite URLs the manager
hands out an in-process write lock so concurrent writers queue on the
event loop instead of spinning in SQLite's busy handler, and connections
get a busy timeout for writers from other processes.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from app.config import settings
from app.logging_config import logger
from app.models import ErrorRecord, RetryAttempt  # noqa: F401  registers the tables


class DatabaseManager:
    """Owns the async engine and session factory for the error record tables"""

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: Optional[bool] = None,
        busy_timeout: Optional[float] = None
    ):
        """
        Initialize database manager

        Args:
            database_url: SQLAlchemy async URL (uses settings if not provided)
            echo: Log SQL statements (uses settings if not provided)
            busy_timeout: Seconds a SQLite connection waits for the write lock
        """
        self.database_url = database_url or settings.database_url
        self.echo = settings.database_echo if echo is None else echo
        self.busy_timeout = settings.database_busy_timeout if busy_timeout is None else busy_timeout
        self.is_sqlite = make_url(self.database_url).get_backend_name() == "sqlite"
        self.write_lock = asyncio.Lock()
        self.engine = None
        self.async_session_maker = None
        self._initialized = False

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for create_async_engine"""
        options: Dict[str, Any] = {
            "echo": self.echo,
            "poolclass": NullPool,
            "pool_pre_ping": True,
        }
        if self.is_sqlite:
            options["connect_args"] = {"timeout": self.busy_timeout}
        return options

    async def initialize(self):
        """Create the engine and session factory, then any missing tables"""
        if self._initialized:
            return

        try:
            self.engine = create_async_engine(self.database_url, **self.engine_options())
            self.async_session_maker = async_sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)

            self._initialized = True
            logger.info(f"Database ready ({make_url(self.database_url).get_backend_name()})")

        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            if self.engine is not None:
                await self.engine.dispose()
                self.engine = None
            raise

    async def close(self):
        """Dispose of the engine"""
        if self.engine:
            await self.engine.dispose()
            self._initialized = False
            logger.info("Database engine disposed")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session scoped to one unit of work

        Commits when the block exits cleanly, rolls back and re-raises otherwise.
        """
        if not self._initialized:
            await self.initialize()

        async with self.async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def writer(self) -> AsyncGenerator[None, None]:
        """Hold the write lock for a writing unit of work on SQLite, no-op elsewhere"""
        if not self.is_sqlite:
            yield
            return

        async with self.write_lock:
            yield

    async def health_check(self) -> bool:
        """Run SELECT 1, reporting False instead of raising"""
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False


# Global database manager instance
db_manager = DatabaseManager()
