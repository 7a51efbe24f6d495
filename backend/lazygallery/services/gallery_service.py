from __future__ import annotations

import logging

from lazygallery.core.errors import InvalidArgument, NotFound
from lazygallery.core.security import generate_share_slug, hash_password, verify_password
from lazygallery.models.gallery import Gallery
from lazygallery.models.timestamps import utcnow
from lazygallery.services.metadata_store import MetadataStore, SlugCollision

logger = logging.getLogger(__name__)

SLUG_ATTEMPTS = 3


class GalleryService:
    def __init__(self, store: MetadataStore) -> None:
        self.store = store

    async def create_gallery(self, owner_id: str, name: str, password: str, shared: bool) -> Gallery:
        owner_id = (owner_id or "").strip()
        name = (name or "").strip()
        if not owner_id:
            raise InvalidArgument("ownerId required")
        if not name:
            raise InvalidArgument("name required")
        if not password or not password.strip():
            raise InvalidArgument("password required")

        password_hash = hash_password(password)
        for attempt in range(1, SLUG_ATTEMPTS + 1):
            now = utcnow()
            gallery = Gallery(
                owner_id=owner_id,
                name=name,
                password_hash=password_hash,
                share_slug=generate_share_slug(),
                shared=bool(shared),
                created_at=now,
                updated_at=now,
            )
            try:
                await self.store.save(gallery)
                return gallery
            except SlugCollision:
                if attempt == SLUG_ATTEMPTS:
                    raise
                logger.warning("Share slug collision while creating gallery, retrying")

    async def list_owner_galleries(self, owner_id: str) -> list[Gallery]:
        if not owner_id:
            return []
        return await self.store.list_owner_galleries(owner_id)

    async def require_owner_gallery(self, gallery_id: str, owner_id: str) -> Gallery:
        # a foreign gallery is reported exactly like a missing one
        gallery = await self.store.get_gallery(gallery_id) if gallery_id else None
        if gallery is None or not owner_id or gallery.owner_id != owner_id:
            raise NotFound()
        return gallery

    async def verify_shared_gallery(self, share_slug: str, password: str) -> Gallery:
        gallery = await self.store.get_gallery_by_slug(share_slug) if share_slug else None
        if gallery is None or not gallery.shared:
            raise NotFound()
        if not verify_password(password, gallery.password_hash):
            raise NotFound()
        return gallery

    async def update_sharing(self, gallery_id: str, owner_id: str, shared: bool) -> Gallery:
        gallery = await self.require_owner_gallery(gallery_id, owner_id)
        if shared and not gallery.share_slug:
            gallery.share_slug = generate_share_slug()
        if not shared:
            # assets cannot stay shared inside an unshared gallery
            await self.store.unshare_assets(gallery.id)
        gallery.shared = bool(shared)
        gallery.updated_at = utcnow()
        await self.store.save(gallery)
        return gallery
