"""
Memorial Repository - PostgreSQL storage for memorial records

Storage: PostgreSQL (memorials table, Supabase project database)

images and sources are JSONB lists. Every read and write goes through
parse_image_list / parse_source_list so malformed entries never reach callers.
"""
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

import asyncpg

from models.domain.memorial import Memorial
from models.domain.references import (
    ImageReference,
    PathResolver,
    parse_image_list,
    parse_source_list,
)

logger = logging.getLogger(__name__)

MEMORIAL_COLUMNS = """
    id, user_id, name, date_of_birth, date_of_death, age,
    place_of_birth, place_of_death, nationality, story,
    sources, images, primary_image_url, created_at
"""


@dataclass
class ImageUsage:
    """Image columns of one memorial (orphan cleanup input)"""
    memorial_id: str
    images: List[ImageReference] = field(default_factory=list)
    primary_image_url: Optional[str] = None


def _load_json(value):
    if value is None:
        return None
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def _escape_like(text: str) -> str:
    return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
        return True
    except ValueError:
        return False


class MemorialRepository:
    """
    Repository for Memorial domain model

    Args:
        db_pool: asyncpg pool
        resolve_path: maps an owned-bucket URL to its object path; used to
            upgrade legacy image entries that were stored without a path
    """

    def __init__(self, db_pool: asyncpg.Pool, resolve_path: Optional[PathResolver] = None):
        self.db_pool = db_pool
        self.resolve_path = resolve_path

    def _row_to_memorial(self, row) -> Memorial:
        return Memorial(
            id=str(row['id']),
            user_id=str(row['user_id']) if row['user_id'] else None,
            name=row['name'],
            date_of_birth=row['date_of_birth'],
            date_of_death=row['date_of_death'],
            age=row['age'],
            place_of_birth=row['place_of_birth'],
            place_of_death=row['place_of_death'],
            nationality=row['nationality'],
            story=row['story'] or "",
            sources=parse_source_list(_load_json(row['sources'])),
            images=parse_image_list(_load_json(row['images']), self.resolve_path),
            primary_image_url=row['primary_image_url'],
            created_at=row['created_at'],
        )

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def list_all(self) -> List[Memorial]:
        """All memorials, newest first"""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(f"""
                SELECT {MEMORIAL_COLUMNS}
                FROM memorials
                ORDER BY created_at DESC
            """)
            return [self._row_to_memorial(row) for row in rows]

    async def get_by_id(self, memorial_id: str) -> Optional[Memorial]:
        """
        Retrieve memorial by ID.

        Args:
            memorial_id: Memorial UUID

        Returns:
            Memorial or None (also for malformed IDs)
        """
        if not _is_uuid(memorial_id):
            return None

        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(f"""
                SELECT {MEMORIAL_COLUMNS}
                FROM memorials
                WHERE id = $1
            """, uuid.UUID(str(memorial_id)))

            if not row:
                return None

            return self._row_to_memorial(row)

    async def find_by_name(self, name: str) -> Optional[Memorial]:
        """
        First memorial whose name contains `name`, case-insensitively.

        Args:
            name: Free-text name fragment ("john" matches "John Smith")

        Returns:
            Oldest matching memorial or None
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(f"""
                SELECT {MEMORIAL_COLUMNS}
                FROM memorials
                WHERE name ILIKE $1
                ORDER BY created_at ASC
                LIMIT 1
            """, f"%{_escape_like(name)}%")

            if not row:
                return None

            return self._row_to_memorial(row)

    async def list_image_references(self) -> List[ImageUsage]:
        """Image columns of every memorial"""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT id, images, primary_image_url
                FROM memorials
            """)

            return [
                ImageUsage(
                    memorial_id=str(row['id']),
                    images=parse_image_list(_load_json(row['images']), self.resolve_path),
                    primary_image_url=row['primary_image_url'],
                )
                for row in rows
            ]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    @staticmethod
    def _write_args(memorial: Memorial) -> list:
        return [
            memorial.name,
            memorial.date_of_birth,
            memorial.date_of_death,
            memorial.age,
            memorial.place_of_birth,
            memorial.place_of_death,
            memorial.nationality,
            memorial.story,
            json.dumps([s.to_storage() for s in memorial.sources]),
            json.dumps([i.to_storage() for i in memorial.images]),
            memorial.primary_image_url,
            uuid.UUID(str(memorial.user_id)) if memorial.user_id else None,
        ]

    async def create(self, memorial: Memorial) -> Memorial:
        """
        Insert a new memorial.

        Returns:
            The memorial with database-assigned id and created_at
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO memorials (
                    name, date_of_birth, date_of_death, age,
                    place_of_birth, place_of_death, nationality, story,
                    sources, images, primary_image_url, user_id
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb, $10::jsonb, $11, $12)
                RETURNING id, created_at
            """, *self._write_args(memorial))

            memorial.id = str(row['id'])
            memorial.created_at = row['created_at']
            logger.info(f"✅ Created memorial {memorial.id} ({memorial.name})")
            return memorial

    async def update(self, memorial: Memorial) -> Optional[Memorial]:
        """
        Replace all columns of an existing memorial.

        Returns:
            The memorial, or None if no row has that id
        """
        if not memorial.id or not _is_uuid(memorial.id):
            return None

        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                UPDATE memorials SET
                    name = $1,
                    date_of_birth = $2,
                    date_of_death = $3,
                    age = $4,
                    place_of_birth = $5,
                    place_of_death = $6,
                    nationality = $7,
                    story = $8,
                    sources = $9::jsonb,
                    images = $10::jsonb,
                    primary_image_url = $11,
                    user_id = $12
                WHERE id = $13
                RETURNING created_at
            """, *self._write_args(memorial), uuid.UUID(memorial.id))

            if not row:
                return None

            memorial.created_at = row['created_at']
            logger.info(f"✅ Updated memorial {memorial.id} ({memorial.name})")
            return memorial
