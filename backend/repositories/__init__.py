"""
Repository Pattern - Storage abstraction layer

Repositories hide storage details (PostgreSQL) from business logic.
Consumers work with domain models, not asyncpg rows.

Storage Split:
- MemorialRepository: PostgreSQL memorials table (JSONB images/sources)
- ProfileRepository: PostgreSQL profiles table (permission flags)
- Image files: Supabase Storage bucket (services/storage_client.py)

Repositories take the pool they use at construction time; the pool itself
is created once per process in main.py's lifespan.
"""
from .memorial_repository import MemorialRepository, ImageUsage
from .profile_repository import ProfileRepository

__all__ = [
    'MemorialRepository',
    'ImageUsage',
    'ProfileRepository',
]
