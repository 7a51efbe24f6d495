from pydantic import BaseModel
from fastapi import APIRouter, Depends, Path, Request

from lazygallery.api.auth import get_gallery_service, owner_id_header
from lazygallery.api.views import context_root, gallery_view
from lazygallery.services.gallery_service import GalleryService

router = APIRouter(prefix="/api/galleries", tags=["galleries"])


class CreateGalleryPayload(BaseModel):
    ownerId: str = ""
    name: str = ""
    password: str = ""
    shared: bool = False


class UpdateSharingPayload(BaseModel):
    shared: bool


@router.post("")
async def create_gallery(
    payload: CreateGalleryPayload,
    request: Request,
    galleries: GalleryService = Depends(get_gallery_service),
):
    gallery = await galleries.create_gallery(payload.ownerId, payload.name, payload.password, payload.shared)
    return gallery_view(gallery, context_root(request))


@router.get("")
async def list_galleries(
    request: Request,
    owner_id: str = Depends(owner_id_header),
    galleries: GalleryService = Depends(get_gallery_service),
):
    base_url = context_root(request)
    return [gallery_view(gallery, base_url) for gallery in await galleries.list_owner_galleries(owner_id)]


@router.get("/{gallery_id}")
async def get_gallery(
    request: Request,
    gallery_id: str = Path(...),
    owner_id: str = Depends(owner_id_header),
    galleries: GalleryService = Depends(get_gallery_service),
):
    gallery = await galleries.require_owner_gallery(gallery_id, owner_id)
    return gallery_view(gallery, context_root(request))


@router.patch("/{gallery_id}/sharing")
async def update_gallery_sharing(
    payload: UpdateSharingPayload,
    request: Request,
    gallery_id: str = Path(...),
    owner_id: str = Depends(owner_id_header),
    galleries: GalleryService = Depends(get_gallery_service),
):
    gallery = await galleries.update_sharing(gallery_id, owner_id, payload.shared)
    return gallery_view(gallery, context_root(request))
