"""Database connection management"""
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncGenerator, AsyncIterator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from farmfocus import config
from farmfocus.exceptions import wrap_store_exception

logger = logging.getLogger(__name__)

# Connection of the transaction() block the current task is inside, if any
_ambient_connection: ContextVar[Optional[psycopg.AsyncConnection]] = ContextVar(
    "db_ambient_connection", default=None
)


class Database:
    """Database connection pool manager"""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        self.connection_string = connection_string or config.DATABASE_URL
        self.min_size = min_size or config.DB_POOL_MIN_SIZE
        self.max_size = max_size or config.DB_POOL_MAX_SIZE
        self._pool: Optional[AsyncConnectionPool] = None

    async def init_pool(self) -> None:
        """Initialize connection pool"""
        logger.info(f"Initializing database connection pool ({self.min_size}-{self.max_size} connections)")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False
        )
        try:
            await self._pool.open(wait=True)
        except psycopg.Error as e:
            raise wrap_store_exception(e, operation="init_pool")

    async def close_pool(self) -> None:
        """Close connection pool"""
        if self._pool:
            logger.info("Closing database connection pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Get database connection from pool

        Inside a transaction() block this is the transaction's connection;
        otherwise a pooled connection whose work is committed when the
        block exits normally and rolled back when it raises.
        """
        ambient = _ambient_connection.get()
        if ambient is not None:
            yield ambient
            return

        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Run every query issued inside the block on one connection, atomically

        Nested blocks join the outermost transaction.
        """
        if _ambient_connection.get() is not None:
            yield
            return

        async with self.connection() as conn:
            token = _ambient_connection.set(conn)
            try:
                async with conn.transaction():
                    yield
            finally:
                _ambient_connection.reset(token)


# Global database instance
db = Database()
