from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from lazygallery.core.config import settings
from lazygallery.core.database import get_db
from lazygallery.services.gallery_service import GalleryService
from lazygallery.services.media_service import MediaService
from lazygallery.services.metadata_store import MetadataStore
from lazygallery.services.storage import ObjectStore, get_object_store

OWNER_HEADER = "X-Owner-Id"
PASSWORD_HEADER = "X-Gallery-Password"


async def owner_id_header(x_owner_id: str = Header(default="", alias=OWNER_HEADER)) -> str:
    # upstream authenticates the caller; a missing header behaves like a wrong one
    return x_owner_id.strip()


async def gallery_password_header(x_gallery_password: str = Header(default="", alias=PASSWORD_HEADER)) -> str:
    return x_gallery_password


def get_gallery_service(db: AsyncSession = Depends(get_db)) -> GalleryService:
    return GalleryService(MetadataStore(db))


def get_media_service(
    db: AsyncSession = Depends(get_db),
    objects: ObjectStore = Depends(get_object_store),
) -> MediaService:
    store = MetadataStore(db)
    return MediaService(store, objects, GalleryService(store), settings)
