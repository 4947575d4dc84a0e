"""
Database Configuration
======================

Connection configuration for the memorial record store (Supabase Postgres).
Values come from Settings so .env and the process environment behave the same.
"""
from dataclasses import dataclass
from typing import Optional

from .settings import Settings, get_settings


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""
    host: str
    port: int
    user: str
    password: str
    database: str
    min_size: int = 2
    max_size: int = 10
    # Supabase's transaction pooler rejects prepared statements
    statement_cache_size: int = 0
    dsn: Optional[str] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        min_size: int = 2,
        max_size: int = 10
    ) -> 'PostgresConfig':
        """Create config from application settings."""
        settings = settings or get_settings()
        if not settings.postgres_host:
            raise ValueError("POSTGRES_HOST environment variable is required")

        return cls(
            host=settings.postgres_host,
            port=settings.postgres_port,
            user=settings.postgres_user,
            password=settings.postgres_password,
            database=settings.postgres_db,
            min_size=min_size,
            max_size=max_size,
            dsn=settings.database_url,
        )

    def to_asyncpg_kwargs(self) -> dict:
        """Convert to asyncpg.create_pool kwargs."""
        if self.dsn:
            return {
                'dsn': self.dsn,
                'min_size': self.min_size,
                'max_size': self.max_size,
                'statement_cache_size': self.statement_cache_size,
            }
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'min_size': self.min_size,
            'max_size': self.max_size,
            'statement_cache_size': self.statement_cache_size,
        }


def get_postgres_config(settings: Optional[Settings] = None, min_size: int = 2, max_size: int = 10) -> PostgresConfig:
    """Get PostgreSQL configuration from settings."""
    return PostgresConfig.from_settings(settings, min_size=min_size, max_size=max_size)


async def create_postgres_pool(settings: Optional[Settings] = None, min_size: int = 2, max_size: int = 10):
    """Create PostgreSQL connection pool from settings."""
    import asyncpg
    config = get_postgres_config(settings, min_size=min_size, max_size=max_size)
    return await asyncpg.create_pool(**config.to_asyncpg_kwargs())
