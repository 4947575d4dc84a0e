"""
Endpoint tests through FastAPI's TestClient.

The lifespan is not run; get_services is overridden with services built on
the in-memory fakes, and requests authenticate with locally minted tokens.
"""
from datetime import date

import httpx
import pytest
from fastapi.testclient import TestClient

from api.memorials import get_services
from config import Settings
from fakes import FakeExtractor, FakeProfileRepository, FakeSearchClient
from main import app
from middleware.jwt_session import create_access_token
from models.domain.memorial import Memorial
from models.domain.references import ImageReference
from services.app_services import AppServices
from services.search_client import SearchClient, SearchContext

AI_USER = "11111111-1111-1111-1111-111111111111"
PLAIN_USER = "33333333-3333-3333-3333-333333333333"


def _auth(user_id=AI_USER):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def services(http_client, storage, memorials):
    return AppServices(
        settings=Settings(signed_url_ttl_list_seconds=300, signed_url_ttl_detail_seconds=600),
        http_client=http_client,
        storage=storage,
        memorials=memorials,
        profiles=FakeProfileRepository([AI_USER]),
        search_client=FakeSearchClient(),
        extractor=FakeExtractor(),
    )


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_cors_preflight(client):
    response = client.options(
        "/api/persist-images",
        headers={
            "Origin": "https://memorials.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        },
    )

    assert response.status_code == 200
    assert response.text == "OK"
    assert response.headers["access-control-allow-origin"] in ("*", "https://memorials.example")
    assert "POST" in response.headers["access-control-allow-methods"]


def test_unknown_route_uses_error_shape(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


class TestPersistImages:

    def test_requires_auth(self, client):
        response = client.post("/api/persist-images", json={"images": []})
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_invalid_token(self, client):
        response = client.post(
            "/api/persist-images",
            json={"images": []},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_empty_list(self, client, supabase):
        response = client.post("/api/persist-images", json={"images": []}, headers=_auth())
        assert response.status_code == 200
        assert response.json() == []
        assert supabase.fetched == []

    def test_external_images_are_copied(self, client, storage, supabase):
        supabase.serve("https://img.example/1.png")
        supabase.add_file("owned.jpg")

        response = client.post(
            "/api/persist-images",
            json={"images": [
                {"url": "https://img.example/1.png", "title": "One"},
                {"url": "https://img.example/missing.png", "title": "Missing"},
                {"url": storage.get_public_url("owned.jpg"), "title": "Owned"},
            ]},
            headers=_auth(),
        )

        assert response.status_code == 200
        [image] = response.json()
        assert image["title"] == "One"
        assert image["path"] in supabase.files
        assert image["url"] == storage.get_public_url(image["path"])
        assert supabase.fetched == ["https://img.example/1.png", "https://img.example/missing.png"]

    def test_malformed_url_is_dropped(self, client, supabase):
        supabase.serve("https://img.example/1.png")

        response = client.post(
            "/api/persist-images",
            json={"images": [
                {"url": "https://img.example/1.png", "title": "One"},
                {"url": "https://xn--/x", "title": "Bad host"},
            ]},
            headers=_auth(),
        )

        assert response.status_code == 200
        assert [img["title"] for img in response.json()] == ["One"]


class TestLookup:

    def test_requires_ai_permission(self, client):
        response = client.post("/api/lookup-memorial", json={"name": "John"}, headers=_auth(PLAIN_USER))
        assert response.status_code == 403
        assert "error" in response.json()

    def test_missing_name(self, client):
        response = client.post("/api/lookup-memorial", json={}, headers=_auth())
        assert response.status_code == 400
        assert response.json() == {"error": "Name is required"}

    def test_search_provider_garbage_is_upstream_error(self, client, services):
        services.search_client = SearchClient(
            api_key="tvly-test",
            http_client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
            ),
        )

        response = client.post("/api/lookup-memorial", json={"name": "Jane Roe"}, headers=_auth())

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to retrieve search context."}

    def test_existing_memorial(self, client, memorials):
        memorials.rows["m1"] = Memorial(id="m1", name="John Smith", date_of_death=date(2023, 11, 1))

        response = client.post("/api/lookup-memorial", json={"name": "john"}, headers=_auth())

        assert response.status_code == 200
        body = response.json()
        assert body["isExisting"] is True
        assert body["id"] == "m1"

    def test_no_information_found(self, client):
        response = client.post("/api/lookup-memorial", json={"name": "Unknown Person"}, headers=_auth())
        assert response.status_code == 500
        assert response.json() == {"error": "No reliable information could be found."}

    def test_candidate(self, client, services):
        services.search_client.result = SearchContext(
            context="Source: https://a.example\nContent: ...",
            images=["https://img.example/a.jpg"],
            sources=[{"url": "https://a.example", "title": "A"}],
        )
        services.extractor.data = {"name": "Jane Roe", "date_of_death": "2024-02-02", "story": "..."}

        response = client.post("/api/lookup-memorial", json={"name": "Jane Roe"}, headers=_auth())

        assert response.status_code == 200
        body = response.json()
        assert body["isExisting"] is False
        assert body["images"] == [{"url": "https://img.example/a.jpg", "title": "Jane Roe", "path": None}]
        assert body["sources"] == [{"url": "https://a.example", "title": "A"}]


class TestMemorials:

    def test_list_signs_with_list_ttl(self, client, memorials, storage, supabase):
        supabase.add_file("a.jpg")
        memorials.rows["m1"] = Memorial(
            id="m1",
            name="Jane Doe",
            date_of_death=date(2024, 1, 1),
            images=[ImageReference(url=storage.get_public_url("a.jpg"), title="A", path="a.jpg")],
        )

        response = client.get("/api/memorials")

        assert response.status_code == 200
        [memorial] = response.json()
        assert memorial["images"][0]["url"] == supabase.signed_url("a.jpg", 300)
        assert memorial["date_of_death"] == "2024-01-01"

    def test_detail_signs_with_detail_ttl(self, client, memorials, storage, supabase):
        supabase.add_file("a.jpg")
        memorials.rows["m1"] = Memorial(
            id="m1",
            name="Jane Doe",
            date_of_death=date(2024, 1, 1),
            images=[ImageReference(url=storage.get_public_url("a.jpg"), path="a.jpg")],
        )

        response = client.get("/api/memorials/m1")

        assert response.status_code == 200
        assert response.json()["images"][0]["url"] == supabase.signed_url("a.jpg", 600)

    def test_detail_not_found(self, client):
        response = client.get("/api/memorials/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Memorial not found"}

    def test_create(self, client, memorials, supabase):
        supabase.serve("https://img.example/1.png")

        response = client.post(
            "/api/memorials",
            json={
                "name": "Jane Doe",
                "date_of_death": "2024-01-01",
                "age": 34,
                "selected_images": [{"url": "https://img.example/1.png", "title": "One"}],
                "sources": ["https://a.example/obit"],
            },
            headers=_auth(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] in memorials.rows
        assert body["user_id"] == AI_USER
        assert body["sources"] == [{"url": "https://a.example/obit", "title": "Source"}]
        assert body["images"][0]["path"] in supabase.files
        assert body["primary_image_url"] == body["images"][0]["url"]

    def test_create_requires_auth(self, client):
        response = client.post("/api/memorials", json={"name": "x", "date_of_death": "2024-01-01"})
        assert response.status_code == 401

    def test_validation_error_shape(self, client):
        response = client.post("/api/memorials", json={"name": ""}, headers=_auth())

        assert response.status_code == 422
        assert set(response.json()) == {"error"}

    def test_update_missing(self, client):
        response = client.post(
            "/api/memorials",
            json={"id": "nope", "name": "x", "date_of_death": "2024-01-01"},
            headers=_auth(),
        )
        assert response.status_code == 404

    def test_upload(self, client, supabase):
        response = client.post(
            "/api/memorials/uploads",
            files={"file": ("me.png", b"data", "image/png")},
            headers=_auth(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["path"].startswith(f"{AI_USER}/")
        assert supabase.files[body["path"]] == (b"data", "image/png")

    def test_empty_upload(self, client):
        response = client.post(
            "/api/memorials/uploads",
            files={"file": ("empty.png", b"", "image/png")},
            headers=_auth(),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Uploaded file is empty"}


class TestCleanup:

    def test_cleanup(self, client, memorials, storage, supabase):
        supabase.add_file("x.jpg")
        supabase.add_file("y.jpg")
        memorials.rows["m1"] = Memorial(
            id="m1",
            name="Jane Doe",
            date_of_death=date(2024, 1, 1),
            images=[ImageReference(url=storage.get_public_url("x.jpg"), path="x.jpg")],
        )

        response = client.post("/api/cleanup-images", headers=_auth())
        assert response.json() == {"message": "Successfully deleted 1 orphaned images."}

        response = client.post("/api/cleanup-images", headers=_auth())
        assert response.json() == {"message": "No orphaned images to delete."}

    def test_storage_failure(self, client, storage, supabase):
        supabase.add_file("x.jpg")
        storage.headers["Authorization"] = "Bearer revoked"

        response = client.post("/api/cleanup-images", headers=_auth())

        assert response.status_code == 500
        assert response.json()["error"].startswith("Storage list failed (401)")
        assert "x.jpg" in supabase.files
