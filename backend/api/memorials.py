"""
Memorial API Endpoints
======================

Endpoints:
- POST /api/lookup-memorial     - Existing memorial or AI-assisted candidate by name
- POST /api/persist-images      - Copy external images into the bucket
- POST /api/cleanup-images      - Delete bucket files no memorial references
- GET  /api/memorials           - All memorials (signed image URLs)
- GET  /api/memorials/{id}      - One memorial (signed image URLs)
- POST /api/memorials           - Create or update a memorial
- POST /api/memorials/uploads   - Store a user-provided image

Upstream failures propagate to the app-level handlers in main.py, which
answer 500 {"error": message}.
"""

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from typing import List
import logging

from middleware.auth import UserPublic, get_current_user
from models.api.memorial import LookupRequest, MemorialSubmit, MessageResponse, PersistImagesRequest
from models.domain.references import ImageReference
from services.app_services import AppServices
from services.enrichment_service import NameRequired
from services.image_persistence import persist_external_images
from services.orphan_cleanup import reclaim_orphaned_images
from services.signed_urls import sign_image_references
from services.submission_service import MemorialNotFound, submit_memorial, upload_user_image

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["memorials"])


def get_services(request: Request) -> AppServices:
    """Services built in main.py's lifespan"""
    return request.app.state.services


@router.post("/lookup-memorial")
async def lookup_memorial(
    body: LookupRequest,
    current_user: UserPublic = Depends(get_current_user),
    services: AppServices = Depends(get_services)
):
    """
    Look up a person by name.

    Returns the stored memorial with isExisting=true when a name matches
    (case-insensitive substring), otherwise a search + LLM candidate whose
    images are still external.
    """
    if not await services.profiles.can_use_ai(current_user.user_id):
        raise HTTPException(status_code=403, detail="AI lookup is not enabled for this account")

    try:
        return await services.enrichment().lookup(body.name)
    except NameRequired as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/persist-images", response_model=List[ImageReference])
async def persist_images(
    body: PersistImagesRequest,
    current_user: UserPublic = Depends(get_current_user),
    services: AppServices = Depends(get_services)
):
    """
    Re-upload external images to the bucket.

    Failed images are omitted; an empty list is a no-op.
    """
    external = [img for img in body.images if not services.storage.is_owned(img.url)]
    return await persist_external_images(external, services.storage, services.http_client)


@router.post("/cleanup-images", response_model=MessageResponse)
async def cleanup_images(
    current_user: UserPublic = Depends(get_current_user),
    services: AppServices = Depends(get_services)
):
    """Delete every bucket file that no memorial references"""
    result = await reclaim_orphaned_images(services.memorials, services.storage)
    logger.info(f"🧹 Cleanup requested by {current_user.user_id}: {result.message}")
    return MessageResponse(message=result.message)


@router.get("/memorials")
async def list_memorials(services: AppServices = Depends(get_services)):
    """All memorials with short-lived signed image URLs"""
    ttl = services.settings.signed_url_ttl_list_seconds
    memorials = await services.memorials.list_all()

    response = []
    for memorial in memorials:
        signed = await sign_image_references(services.storage, memorial.images, ttl)
        response.append(memorial.with_images(signed).to_dict())
    return response


@router.get("/memorials/{memorial_id}")
async def get_memorial(memorial_id: str, services: AppServices = Depends(get_services)):
    """One memorial with signed image URLs"""
    memorial = await services.memorials.get_by_id(memorial_id)
    if not memorial:
        raise HTTPException(status_code=404, detail="Memorial not found")

    ttl = services.settings.signed_url_ttl_detail_seconds
    signed = await sign_image_references(services.storage, memorial.images, ttl)
    return memorial.with_images(signed).to_dict()


@router.post("/memorials")
async def save_memorial(
    body: MemorialSubmit,
    current_user: UserPublic = Depends(get_current_user),
    services: AppServices = Depends(get_services)
):
    """
    Create (no id) or replace (id) a memorial.

    External selected images are persisted first; the stored record only
    references bucket objects plus any externally supplied primary URL.
    """
    try:
        memorial = await submit_memorial(
            body,
            user_id=str(current_user.user_id),
            repository=services.memorials,
            storage=services.storage,
            http_client=services.http_client,
        )
    except MemorialNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return memorial.to_dict()


@router.post("/memorials/uploads", response_model=ImageReference)
async def upload_image(
    file: UploadFile = File(...),
    current_user: UserPublic = Depends(get_current_user),
    services: AppServices = Depends(get_services)
):
    """Store a user-provided image under the user's folder"""
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    return await upload_user_image(
        services.storage,
        user_id=str(current_user.user_id),
        filename=file.filename or "image",
        data=data,
        content_type=file.content_type,
    )
