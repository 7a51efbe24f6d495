from pydantic import BaseModel
from fastapi import APIRouter, Depends, File, Header, Path, Query, Request, Response, UploadFile
from fastapi.responses import StreamingResponse

from lazygallery.api.auth import get_media_service, owner_id_header
from lazygallery.api.streaming import file_response, iter_body, preview_response
from lazygallery.api.views import context_root, media_page, shared_original_path
from lazygallery.services.media_service import ARCHIVE_CACHE_CONTROL, IncomingFile, MediaService

router = APIRouter(prefix="/api/galleries", tags=["media"])


class MediaSharingPayload(BaseModel):
    shared: bool


@router.get("/{gallery_id}/media")
async def list_owner_media(
    gallery_id: str = Path(...),
    offset: int = Query(default=0),
    limit: int = Query(default=50),
    owner_id: str = Depends(owner_id_header),
    media: MediaService = Depends(get_media_service),
):
    page = await media.list_media_for_owner(gallery_id, owner_id, offset, limit)
    return media_page(page)


@router.post("/{gallery_id}/upload")
async def upload_media(
    gallery_id: str = Path(...),
    files: list[UploadFile] = File(...),
    owner_id: str = Depends(owner_id_header),
    media: MediaService = Depends(get_media_service),
):
    incoming = []
    for file in files:
        data = await file.read()
        incoming.append(
            IncomingFile(
                filename=file.filename,
                content_type=file.content_type,
                data=data,
                size=file.size,
            )
        )
    uploaded = await media.upload_files(gallery_id, owner_id, incoming)
    return {"uploaded": uploaded}


@router.delete("/{gallery_id}/media/{media_id}", status_code=204)
async def delete_media(
    gallery_id: str = Path(...),
    media_id: str = Path(...),
    owner_id: str = Depends(owner_id_header),
    media: MediaService = Depends(get_media_service),
):
    await media.delete_media(gallery_id, owner_id, media_id)
    return Response(status_code=204)


@router.patch("/{gallery_id}/media/{media_id}/sharing")
async def update_media_sharing(
    payload: MediaSharingPayload,
    request: Request,
    gallery_id: str = Path(...),
    media_id: str = Path(...),
    owner_id: str = Depends(owner_id_header),
    media: MediaService = Depends(get_media_service),
):
    gallery, asset = await media.update_media_sharing(gallery_id, owner_id, media_id, payload.shared)
    share_link = None
    if asset.shared and asset.share_slug:
        share_link = context_root(request) + shared_original_path(gallery, media_id)
    return {"shared": bool(asset.shared), "shareSlug": asset.share_slug, "shareLink": share_link}


@router.get("/{gallery_id}/files/original/{media_id}")
async def get_owner_original(
    gallery_id: str = Path(...),
    media_id: str = Path(...),
    owner_id: str = Depends(owner_id_header),
    media: MediaService = Depends(get_media_service),
):
    stat = await media.stat_original_for_owner(gallery_id, owner_id, media_id)
    body = await media.open_original_for_owner(gallery_id, owner_id, media_id)
    return file_response(stat, body)


@router.get("/{gallery_id}/files/preview/{media_id}")
async def get_owner_preview(
    gallery_id: str = Path(...),
    media_id: str = Path(...),
    owner_id: str = Depends(owner_id_header),
    media: MediaService = Depends(get_media_service),
):
    stat = await media.stat_thumbnail_for_owner(gallery_id, owner_id, media_id)
    body = await media.open_thumbnail_for_owner(gallery_id, owner_id, media_id)
    return preview_response(stat, body)


@router.get("/{gallery_id}/download")
async def download_gallery(
    gallery_id: str = Path(...),
    if_none_match: str | None = Header(default=None, alias="If-None-Match"),
    owner_id: str = Depends(owner_id_header),
    media: MediaService = Depends(get_media_service),
):
    archive = await media.download_archive(gallery_id, owner_id, if_none_match)
    headers = {
        "ETag": archive.etag,
        "Cache-Control": ARCHIVE_CACHE_CONTROL,
    }
    if archive.not_modified:
        return Response(status_code=304, headers=headers)

    headers["Content-Disposition"] = f'attachment; filename="{archive.filename}"'
    headers["Content-Length"] = str(archive.size)
    return StreamingResponse(
        iter_body(archive.body),
        media_type="application/octet-stream",
        headers=headers,
    )
