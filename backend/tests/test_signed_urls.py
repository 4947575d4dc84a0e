"""
Tests for signed URL resolution and its public URL fallback.
"""
import pytest

from models.domain.references import ImageReference
from services.signed_urls import resolve_signed_urls, sign_image_references


@pytest.mark.asyncio
async def test_empty_paths(storage, supabase):
    assert await resolve_signed_urls(storage, [], 60) == {}


@pytest.mark.asyncio
async def test_paths_are_signed(storage, supabase):
    supabase.add_file("a.jpg")
    supabase.add_file("u/b.png")

    url_map = await resolve_signed_urls(storage, ["a.jpg", "u/b.png", "a.jpg"], 60)

    assert url_map == {
        "a.jpg": supabase.signed_url("a.jpg", 60),
        "u/b.png": supabase.signed_url("u/b.png", 60),
    }


@pytest.mark.asyncio
async def test_batch_failure_falls_back_to_public(storage, supabase):
    supabase.add_file("a.jpg")
    supabase.fail_batch_signing = True

    url_map = await resolve_signed_urls(storage, ["a.jpg"], 60)

    assert url_map == {"a.jpg": storage.get_public_url("a.jpg")}


@pytest.mark.asyncio
async def test_item_failure_falls_back_to_public(storage, supabase):
    supabase.add_file("a.jpg")

    url_map = await resolve_signed_urls(storage, ["a.jpg", "missing.jpg"], 60)

    assert url_map["a.jpg"] == supabase.signed_url("a.jpg", 60)
    assert url_map["missing.jpg"] == storage.get_public_url("missing.jpg")


@pytest.mark.asyncio
async def test_sign_image_references(storage, supabase):
    supabase.add_file("a.jpg")
    owned = ImageReference(url=storage.get_public_url("a.jpg"), title="Portrait", path="a.jpg")
    legacy = ImageReference(url=storage.get_public_url("a.jpg"), title="No path")
    external = ImageReference(url="https://a.example/x.png", title="External")

    signed = await sign_image_references(storage, [owned, legacy, external], 3600)

    assert signed[0].url == supabase.signed_url("a.jpg", 3600)
    assert signed[0].title == "Portrait"
    assert signed[1].url == supabase.signed_url("a.jpg", 3600)
    assert signed[1].path == "a.jpg"
    assert signed[2] == external
    # inputs untouched
    assert owned.url == storage.get_public_url("a.jpg")
