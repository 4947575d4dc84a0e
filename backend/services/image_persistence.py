"""
Image persistence - copy externally hosted images into the owned bucket.

Search results point at images on arbitrary hosts that may disappear or
block hotlinking. Before a memorial is saved, each selected external image is
fetched and re-uploaded under a fresh name; the record then stores only
owned references.

Per-item failures (fetch non-2xx, network error, upload error) are logged and
the item is dropped. The batch as a whole never raises for them.
"""
import asyncio
import logging
import uuid
from typing import List, Optional, Tuple

import httpx

from models.domain.references import ImageReference
from services.storage_client import StorageClient, StorageError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"
DEFAULT_CONTENT_TYPE = "image/jpeg"


def extension_from_content_type(content_type: Optional[str]) -> str:
    """
    File extension from a Content-Type header.

    image/png -> png, image/svg+xml -> svg, image/jpeg; charset=x -> jpeg.
    Missing or unparsable types fall back to jpg.
    """
    if not content_type:
        return DEFAULT_EXTENSION

    media_type = content_type.split(';', 1)[0].strip().lower()
    if '/' not in media_type:
        return DEFAULT_EXTENSION

    subtype = media_type.split('/', 1)[1].split('+', 1)[0].strip()
    if not subtype or not subtype.isalnum():
        return DEFAULT_EXTENSION

    return subtype


async def _persist_one(
    image: ImageReference,
    storage: StorageClient,
    http_client: httpx.AsyncClient
) -> Optional[ImageReference]:
    try:
        response = await http_client.get(image.url, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
        # InvalidURL and IDNA errors are raised while building the request
        logger.warning(f"⚠️  Failed to fetch image: {image.url!r} ({e})")
        return None

    if not response.is_success:
        logger.warning(f"⚠️  Failed to fetch image: {image.url} (HTTP {response.status_code})")
        return None

    content_type = response.headers.get('content-type')
    file_name = f"{uuid.uuid4()}.{extension_from_content_type(content_type)}"

    try:
        path = await storage.upload(
            file_name,
            response.content,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            upsert=True,
        )
    except (StorageError, httpx.HTTPError) as e:
        logger.warning(f"⚠️  Failed to upload image: {image.url} ({e})")
        return None

    return ImageReference(
        url=storage.get_public_url(path),
        title=image.title,
        path=path,
    )


async def persist_with_origins(
    images: List[ImageReference],
    storage: StorageClient,
    http_client: httpx.AsyncClient
) -> List[Tuple[ImageReference, ImageReference]]:
    """
    Like persist_external_images, but pairs each owned copy with its input.

    Returns:
        [(external_input, owned_copy)] for every successful item
    """
    if not images:
        return []

    results = await asyncio.gather(*(_persist_one(img, storage, http_client) for img in images))
    pairs = [(original, copy) for original, copy in zip(images, results) if copy is not None]

    logger.info(f"✅ Persisted {len(pairs)}/{len(images)} external images")
    return pairs


async def persist_external_images(
    images: List[ImageReference],
    storage: StorageClient,
    http_client: httpx.AsyncClient
) -> List[ImageReference]:
    """
    Fetch each image and re-upload it to the bucket, concurrently.

    Args:
        images: External image references
        storage: Bucket client
        http_client: Client used to fetch the remote images

    Returns:
        One owned ImageReference per successfully persisted input
    """
    pairs = await persist_with_origins(images, storage, http_client)
    return [copy for _, copy in pairs]
