"""
Orphan image cleanup.

Files land in the bucket before the record that references them is saved
(persist-images, user uploads), so abandoned submissions leave files behind.
This sweep deletes every object that no memorial references.

References are compared by object path. A record may hold a public URL, a
signed URL (older rows stored display URLs), or an explicit path; all three
normalize to the same key, so a signed reference never makes its file look
orphaned.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Set

from services.storage_client import StorageClient

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    """Outcome of one sweep"""
    deleted: List[str] = field(default_factory=list)
    scanned: int = 0
    referenced: int = 0

    @property
    def message(self) -> str:
        if not self.deleted:
            return "No orphaned images to delete."
        return f"Successfully deleted {len(self.deleted)} orphaned images."


async def collect_referenced_paths(repository, storage: StorageClient) -> Set[str]:
    """Object paths referenced by any memorial's images or primary image"""
    referenced = set()
    for ref in await repository.list_image_references():
        if ref.primary_image_url:
            path = storage.path_from_url(ref.primary_image_url)
            if path:
                referenced.add(path)
        for image in ref.images:
            path = image.path or storage.path_from_url(image.url)
            if path:
                referenced.add(path)
    return referenced


async def find_orphaned_paths(repository, storage: StorageClient) -> CleanupResult:
    """
    Compute orphans without deleting anything.

    Returns:
        CleanupResult whose `deleted` lists the paths that would be removed
    """
    referenced = await collect_referenced_paths(repository, storage)
    stored = await storage.list()

    orphaned = [path for path in stored if path not in referenced]
    return CleanupResult(deleted=orphaned, scanned=len(stored), referenced=len(referenced))


async def reclaim_orphaned_images(repository, storage: StorageClient) -> CleanupResult:
    """
    Delete all bucket objects not referenced by any memorial.

    Args:
        repository: MemorialRepository (needs list_image_references())
        storage: Bucket client

    Returns:
        CleanupResult with the deleted paths
    """
    candidates = await find_orphaned_paths(repository, storage)
    orphaned = candidates.deleted
    result = CleanupResult(scanned=candidates.scanned, referenced=candidates.referenced)

    if not orphaned:
        logger.info(f"✅ No orphaned images ({result.scanned} files, {result.referenced} referenced)")
        return result

    await storage.remove(orphaned)
    result.deleted = orphaned
    logger.info(f"🗑️  Deleted {len(orphaned)} orphaned images of {result.scanned} files")
    return result
