"""
Pytest configuration and shared fixtures for the memorial backend tests.
"""

import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import BUCKET, SERVICE_KEY, SUPABASE_URL, FakeMemorialRepository, FakeSupabase
from services.storage_client import StorageClient

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


def pytest_configure(config):
    """Configure pytest with asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def http_client(supabase) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(supabase.handler))


@pytest.fixture
def storage(http_client) -> StorageClient:
    return StorageClient(
        base_url=SUPABASE_URL,
        service_key=SERVICE_KEY,
        bucket=BUCKET,
        http_client=http_client,
    )


@pytest.fixture
def memorials(storage) -> FakeMemorialRepository:
    return FakeMemorialRepository(resolve_path=storage.path_from_url)
