"""
Signed URL resolution for displaying bucket images.

Records store stable public URLs plus object paths; display responses swap
in time-limited signed URLs. Signing failures never fail the read: the
affected images fall back to their public URL.
"""
import logging
from typing import Dict, List

import httpx

from models.domain.references import ImageReference
from services.storage_client import StorageClient, StorageError

logger = logging.getLogger(__name__)


async def resolve_signed_urls(storage: StorageClient, paths: List[str], ttl_seconds: int) -> Dict[str, str]:
    """
    Map each object path to a signed URL valid for ttl_seconds.

    Paths the signer rejects map to their public URL instead.
    """
    if not paths:
        return {}

    unique_paths = list(dict.fromkeys(paths))
    fallback = {path: storage.get_public_url(path) for path in unique_paths}

    try:
        signed = await storage.create_signed_urls(unique_paths, ttl_seconds)
    except (StorageError, httpx.HTTPError) as e:
        logger.error(f"❌ Error creating signed URLs: {e}")
        return fallback

    url_map = dict(fallback)
    for item in signed:
        if item.get('signedURL') and not item.get('error') and item.get('path') in url_map:
            url_map[item['path']] = item['signedURL']
        else:
            logger.warning(f"⚠️  Could not sign {item.get('path')}: {item.get('error')}")

    return url_map


async def sign_image_references(
    storage: StorageClient,
    images: List[ImageReference],
    ttl_seconds: int
) -> List[ImageReference]:
    """
    Copy of images with owned URLs replaced by signed URLs.

    Images without a resolvable bucket path pass through unchanged.
    """
    paths = [img.path or storage.path_from_url(img.url) for img in images]
    url_map = await resolve_signed_urls(storage, [p for p in paths if p], ttl_seconds)

    signed = []
    for img, path in zip(images, paths):
        if path and path in url_map:
            signed.append(img.model_copy(update={'url': url_map[path], 'path': path}))
        else:
            signed.append(img)
    return signed
