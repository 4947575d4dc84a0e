"""
Memorial submission - turns a form submission into a stored record.

Steps:
1. Split selected images into owned (already in the bucket) and external
2. Persist the external ones (services/image_persistence.py)
3. Assemble the final image list: owned, persisted, then the user upload
4. Resolve the primary image against the final list
5. Insert (no id) or full-replace update (id)
"""
import logging
import re
import time
from typing import Dict, List, Optional

import httpx

from models.api.memorial import MemorialSubmit
from models.domain.memorial import Memorial
from models.domain.references import ImageReference
from services.image_persistence import persist_with_origins
from services.storage_client import StorageClient

logger = logging.getLogger(__name__)


class MemorialNotFound(Exception):
    """Update target does not exist."""


def _sanitize_for_filename(s: str) -> str:
    # letters, digits, _ . - only
    return re.sub(r"[^A-Za-z0-9_.-]", "_", s or "") or "image"


async def upload_user_image(
    storage: StorageClient,
    user_id: str,
    filename: str,
    data: bytes,
    content_type: Optional[str],
    title: str = ""
) -> ImageReference:
    """Store a user-provided file under the user's folder"""
    path = f"{user_id}/{int(time.time() * 1000)}_{_sanitize_for_filename(filename)}"
    await storage.upload(path, data, content_type or "application/octet-stream", upsert=False)
    logger.info(f"📤 Stored user upload {path}")
    return ImageReference(url=storage.get_public_url(path), title=title or filename or "", path=path)


def _owned_path(storage: StorageClient, image: ImageReference) -> Optional[str]:
    # A client-supplied path is not trusted; only a bucket URL proves ownership
    return storage.path_from_url(image.url)


def resolve_primary_image(
    requested: Optional[str],
    final_images: List[ImageReference],
    persisted_by_url: Dict[str, ImageReference],
    external_urls: set,
    storage: StorageClient
) -> Optional[str]:
    """
    Stored primary_image_url for a submission.

    - owned URL (public or signed) of a final image -> its public URL
    - external URL that was persisted -> the persisted public URL
    - external URL that failed, or nothing requested -> first final image
    - any other URL -> kept as supplied
    """
    fallback = final_images[0].url if final_images else None
    if not requested:
        return fallback

    path = storage.path_from_url(requested)
    if path:
        final_paths = {img.path for img in final_images}
        return storage.get_public_url(path) if path in final_paths else fallback

    if requested in persisted_by_url:
        return persisted_by_url[requested].url
    if requested in external_urls:
        return fallback

    return requested


async def submit_memorial(
    payload: MemorialSubmit,
    user_id: str,
    repository,
    storage: StorageClient,
    http_client: httpx.AsyncClient
) -> Memorial:
    """
    Persist images and write the memorial.

    Raises:
        ValueError: uploaded_image is not a bucket object
        MemorialNotFound: payload.id does not exist
        StorageError / asyncpg errors: upstream failures
    """
    owned: List[ImageReference] = []
    external: List[ImageReference] = []
    for image in payload.selected_images:
        path = _owned_path(storage, image)
        if path:
            owned.append(ImageReference(url=storage.get_public_url(path), title=image.title, path=path))
        else:
            external.append(image)

    # Same external URL selected twice is fetched once
    unique_external = list({img.url: img for img in external}.values())
    pairs = await persist_with_origins(unique_external, storage, http_client)
    persisted_by_url = {original.url: copy for original, copy in pairs}

    final_images = owned + [copy for _, copy in pairs]

    if payload.uploaded_image:
        path = _owned_path(storage, payload.uploaded_image)
        if not path:
            raise ValueError("Uploaded image must be stored in the memorial bucket")
        final_images.append(ImageReference(
            url=storage.get_public_url(path),
            title=payload.uploaded_image.title or payload.name,
            path=path,
        ))

    # One entry per bucket object, first occurrence wins
    seen = set()
    deduped = []
    for image in final_images:
        if image.path in seen:
            continue
        seen.add(image.path)
        deduped.append(image)

    memorial = Memorial(
        id=payload.id,
        user_id=user_id,
        name=payload.name,
        date_of_birth=payload.date_of_birth,
        date_of_death=payload.date_of_death,
        age=payload.age,
        place_of_birth=payload.place_of_birth,
        place_of_death=payload.place_of_death,
        nationality=payload.nationality,
        story=payload.story,
        sources=payload.sources,
        images=deduped,
        primary_image_url=resolve_primary_image(
            payload.primary_image_url,
            deduped,
            persisted_by_url,
            {img.url for img in external},
            storage,
        ),
    )

    if memorial.id:
        updated = await repository.update(memorial)
        if updated is None:
            raise MemorialNotFound(f"Memorial {memorial.id} not found")
        return updated

    return await repository.create(memorial)
