"""User directory queries"""
import logging
from typing import Optional

from farmfocus.db.queries.base import PostgresQueries
from farmfocus.models.user import User

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, is_active, created_at"


class UserQueries(PostgresQueries):
    """UserDirectory on the users table"""

    async def get_user(self, user_id: int) -> Optional[User]:
        row = await self._fetchone(
            "get_user",
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            (user_id,)
        )
        return User(**row) if row else None

    async def create_user(self, user: User) -> User:
        """
        Create a user (idempotent).

        Uses DO UPDATE so the row is returned whether it was inserted now or
        already existed.
        """
        row = await self._fetchone(
            "create_user",
            f"""
            INSERT INTO users (id, username, is_active, created_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET id = EXCLUDED.id
            RETURNING {_USER_COLUMNS}
            """,
            (user.id, user.username, user.is_active, user.created_at)
        )
        logger.info(f"Ensured user exists: {user.id}")
        return User(**row)

    async def list_active_users(self) -> list[User]:
        rows = await self._fetchall(
            "list_active_users",
            f"SELECT {_USER_COLUMNS} FROM users WHERE is_active = TRUE ORDER BY id"
        )
        return [User(**row) for row in rows]
