from __future__ import annotations

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lazygallery.models.gallery import Gallery
from lazygallery.models.media_asset import MediaAsset
from lazygallery.services.storage import StorageError


class SlugCollision(StorageError):
    """A unique index rejected a write, most likely a share slug collision."""


class MetadataStore:
    """Indexed access to the ``galleries`` and ``media_assets`` tables."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_gallery(self, gallery_id: str) -> Gallery | None:
        return await self.db.get(Gallery, gallery_id)

    async def get_gallery_by_slug(self, share_slug: str) -> Gallery | None:
        result = await self.db.execute(select(Gallery).where(Gallery.share_slug == share_slug))
        return result.scalar_one_or_none()

    async def list_owner_galleries(self, owner_id: str) -> list[Gallery]:
        result = await self.db.execute(
            select(Gallery)
            .where(Gallery.owner_id == owner_id)
            .order_by(desc(Gallery.created_at), desc(Gallery.id))
        )
        return list(result.scalars().all())

    async def get_asset(self, asset_id: str) -> MediaAsset | None:
        return await self.db.get(MediaAsset, asset_id)

    async def list_assets(self, gallery_id: str) -> list[MediaAsset]:
        result = await self.db.execute(self._assets_query(gallery_id, shared_only=False))
        return list(result.scalars().all())

    async def page_assets(
        self,
        gallery_id: str,
        page_number: int,
        page_size: int,
        shared_only: bool = False,
    ) -> tuple[list[MediaAsset], int]:
        """Return one fixed-size page (newest first) plus the full match count."""
        result = await self.db.execute(
            self._assets_query(gallery_id, shared_only)
            .limit(page_size)
            .offset(page_number * page_size)
        )
        items = list(result.scalars().all())

        count_query = select(func.count()).select_from(MediaAsset).where(MediaAsset.gallery_id == gallery_id)
        if shared_only:
            count_query = count_query.where(MediaAsset.shared.is_(True))
        total = int((await self.db.execute(count_query)).scalar_one() or 0)
        return items, total

    async def save(self, row: Gallery | MediaAsset) -> None:
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise SlugCollision(str(exc.orig)) from exc
        await self.db.refresh(row)

    async def unshare_assets(self, gallery_id: str) -> None:
        """Clear per-asset sharing for a gallery; committed by the next save."""
        await self.db.execute(
            update(MediaAsset)
            .where(MediaAsset.gallery_id == gallery_id, MediaAsset.shared.is_(True))
            .values(shared=False, share_slug=None)
        )

    async def delete_asset(self, asset_id: str) -> None:
        await self.db.execute(delete(MediaAsset).where(MediaAsset.id == asset_id))
        await self.db.commit()

    @staticmethod
    def _assets_query(gallery_id: str, shared_only: bool):
        query = select(MediaAsset).where(MediaAsset.gallery_id == gallery_id)
        if shared_only:
            query = query.where(MediaAsset.shared.is_(True))
        # equal instants fall back to id so the order is stable for the query
        return query.order_by(desc(MediaAsset.uploaded_at), desc(MediaAsset.id))
