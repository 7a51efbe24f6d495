from __future__ import annotations

from fastapi import Request

from lazygallery.core.ids import encode_id
from lazygallery.models.gallery import Gallery
from lazygallery.models.media_asset import MediaAsset
from lazygallery.models.timestamps import epoch_millis
from lazygallery.services.media_service import MediaPage, detect_media_type


def context_root(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def gallery_view(gallery: Gallery, base_url: str) -> dict:
    return {
        "id": gallery.id,
        "name": gallery.name,
        "shared": bool(gallery.shared),
        "shareLink": f"{base_url}/g/{gallery.share_slug}" if gallery.shared and gallery.share_slug else None,
    }


def shared_original_path(gallery: Gallery, encoded_id: str) -> str:
    return f"/api/shared/{gallery.share_slug}/files/original/{encoded_id}"


def media_item(asset: MediaAsset, gallery: Gallery, owner_context: bool) -> dict:
    encoded_id = encode_id(asset.id)
    media_type = detect_media_type(asset.mime_type)
    if owner_context:
        base_path = f"/api/galleries/{gallery.id}/files"
    else:
        base_path = f"/api/shared/{gallery.share_slug}/files"

    share_link = None
    if gallery.shared and asset.shared and gallery.share_slug:
        share_link = shared_original_path(gallery, encoded_id)

    return {
        "id": encoded_id,
        "galleryId": gallery.id,
        "name": asset.original_name,
        "type": media_type,
        "mime": asset.mime_type,
        "size": int(asset.size),
        "mtime": epoch_millis(asset.uploaded_at),
        "shared": bool(asset.shared),
        "shareLink": share_link,
        "originalUrl": f"{base_path}/original/{encoded_id}",
        "previewUrl": f"{base_path}/preview/{encoded_id}" if media_type == "image" else None,
    }


def media_page(page: MediaPage) -> dict:
    return {
        "items": [media_item(asset, page.gallery, page.owner_context) for asset in page.items],
        "nextOffset": page.next_offset,
        "total": page.total,
    }
