"""Shared plumbing for the PostgreSQL stores"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

import psycopg

from farmfocus.db.connection import Database
from farmfocus.exceptions import wrap_store_exception

logger = logging.getLogger(__name__)


class PostgresQueries:
    """
    Base of the PostgreSQL store classes

    Every statement goes through _fetchone/_fetchall/_execute, which run on
    the current transaction's connection when there is one and turn psycopg
    errors into TransientStoreError subclasses.
    """

    def __init__(self, database: Database):
        self.db = database

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self.db.transaction():
            yield

    async def _fetchone(self, operation: str, query: str, params: Sequence[Any] = ()) -> Optional[dict]:
        try:
            async with self.db.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    row = await cur.fetchone()
                    return dict(row) if row else None
        except psycopg.Error as e:
            raise wrap_store_exception(e, operation=operation, context={"params": list(params)})

    async def _fetchall(self, operation: str, query: str, params: Sequence[Any] = ()) -> list[dict]:
        try:
            async with self.db.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    rows = await cur.fetchall()
                    return [dict(row) for row in rows]
        except psycopg.Error as e:
            raise wrap_store_exception(e, operation=operation, context={"params": list(params)})

    async def _execute(self, operation: str, query: str, params: Sequence[Any] = ()) -> int:
        """Run a statement, return the affected row count"""
        try:
            async with self.db.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    return cur.rowcount
        except psycopg.Error as e:
            raise wrap_store_exception(e, operation=operation, context={"params": list(params)})
