from fastapi import APIRouter, Depends, Path, Query

from lazygallery.api.auth import gallery_password_header, get_media_service
from lazygallery.api.streaming import file_response, preview_response
from lazygallery.api.views import media_page
from lazygallery.services.media_service import MediaService

router = APIRouter(prefix="/api/shared", tags=["shared"])


@router.get("/{share_slug}/media")
async def list_shared_media(
    share_slug: str = Path(...),
    offset: int = Query(default=0),
    limit: int = Query(default=50),
    password: str = Depends(gallery_password_header),
    media: MediaService = Depends(get_media_service),
):
    page = await media.list_shared_media(share_slug, password, offset, limit)
    return media_page(page)


@router.get("/{share_slug}/files/original/{media_id}")
async def get_shared_original(
    share_slug: str = Path(...),
    media_id: str = Path(...),
    password: str = Depends(gallery_password_header),
    media: MediaService = Depends(get_media_service),
):
    stat = await media.stat_original_shared(share_slug, password, media_id)
    body = await media.open_original_shared(share_slug, password, media_id)
    return file_response(stat, body)


@router.get("/{share_slug}/files/preview/{media_id}")
async def get_shared_preview(
    share_slug: str = Path(...),
    media_id: str = Path(...),
    password: str = Depends(gallery_password_header),
    media: MediaService = Depends(get_media_service),
):
    stat = await media.stat_thumbnail_shared(share_slug, password, media_id)
    body = await media.open_thumbnail_shared(share_slug, password, media_id)
    return preview_response(stat, body)
