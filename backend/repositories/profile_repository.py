"""
Profile Repository - PostgreSQL storage for user profiles

Storage: PostgreSQL (profiles table, one row per auth user)
"""
import logging
import uuid

import asyncpg

logger = logging.getLogger(__name__)


class ProfileRepository:
    """
    Repository for user profile flags.

    Only the AI-lookup permission is read by this service; profiles are
    created and edited elsewhere.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def can_use_ai(self, user_id: str) -> bool:
        """
        Whether the user may run AI-assisted lookups.

        Missing profiles are treated as not permitted.
        """
        try:
            user_uuid = uuid.UUID(str(user_id))
        except ValueError:
            return False

        async with self.db_pool.acquire() as conn:
            allowed = await conn.fetchval("""
                SELECT can_use_ai FROM profiles WHERE id = $1
            """, user_uuid)

            return bool(allowed)
