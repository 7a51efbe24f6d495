from __future__ import annotations

import asyncio
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import BinaryIO
from urllib.parse import quote
from uuid import uuid4

from lazygallery.core.config import Settings
from lazygallery.core.errors import MediaSharingRejected, NotFound
from lazygallery.core.ids import decode_id, encode_id
from lazygallery.core.security import generate_share_slug
from lazygallery.models.gallery import Gallery
from lazygallery.models.media_asset import MediaAsset
from lazygallery.models.timestamps import epoch_millis, utcnow
from lazygallery.services.gallery_service import SLUG_ATTEMPTS, GalleryService
from lazygallery.services.metadata_store import MetadataStore, SlugCollision
from lazygallery.services.storage import ObjectNotFound, ObjectStat, ObjectStore, StorageError
from lazygallery.services.thumbnail import ThumbnailError, generate_thumbnail
from lazygallery.services.zip_utils import ZIP_CONTENT_TYPE, build_archive, inventory_signature

logger = logging.getLogger(__name__)

GALLERIES_PREFIX = "galleries/"
ORIGINALS_FOLDER = "originals/"
THUMBNAILS_FOLDER = "thumbnails/"
ARCHIVES_FOLDER = "archives/"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
THUMBNAIL_CONTENT_TYPE = "image/jpeg"
ARCHIVE_CACHE_CONTROL = "public, max-age=0, must-revalidate"
MAX_PAGE_SIZE = 200


@dataclass
class IncomingFile:
    filename: str | None
    content_type: str | None
    data: bytes
    size: int | None = None


@dataclass
class MediaPage:
    gallery: Gallery
    items: list[MediaAsset]
    total: int
    next_offset: int | None
    owner_context: bool


@dataclass
class ArchiveDownload:
    etag: str
    signature: str
    not_modified: bool = False
    filename: str | None = None
    size: int | None = None
    body: BinaryIO | None = field(default=None, repr=False)


def gallery_original_key(gallery_id: str, storage_name: str) -> str:
    return f"{GALLERIES_PREFIX}{gallery_id}/{ORIGINALS_FOLDER}{storage_name}"


def gallery_thumbnail_key(gallery_id: str, storage_name: str) -> str:
    return f"{GALLERIES_PREFIX}{gallery_id}/{THUMBNAILS_FOLDER}{storage_name}.jpg"


def gallery_archive_key(gallery_id: str, signature: str) -> str:
    return f"{GALLERIES_PREFIX}{gallery_id}/{ARCHIVES_FOLDER}media-{signature}.zip"


def generate_storage_name(original_filename: str | None) -> str:
    suffix = PurePosixPath((original_filename or "").replace("\\", "/")).suffix
    extension = suffix[1:].lower() if len(suffix) > 1 else "bin"
    return f"{uuid4()}.{extension}"


def resolve_content_type(filename: str | None, declared: str | None) -> str:
    if declared and declared.strip():
        return declared.strip()
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or DEFAULT_CONTENT_TYPE


def detect_media_type(mime_type: str | None) -> str:
    if not mime_type:
        return "other"
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    return "other"


def archive_filename(gallery_name: str, signature: str) -> str:
    sanitized = gallery_name.replace(" ", "_")
    # header values must stay printable ASCII
    sanitized = "".join(ch if 32 < ord(ch) < 127 and ch not in '"\\' else "_" for ch in sanitized)
    return f"gallery-{sanitized}-{signature[:8]}.zip"


def _etag_matches(if_none_match: str | None, etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = [candidate.strip() for candidate in if_none_match.split(",")]
    return etag in candidates


class MediaService:
    def __init__(
        self,
        store: MetadataStore,
        objects: ObjectStore,
        galleries: GalleryService,
        config: Settings,
    ) -> None:
        self.store = store
        self.objects = objects
        self.galleries = galleries
        self.config = config

    # listing

    async def list_media_for_owner(self, gallery_id: str, owner_id: str, offset: int, limit: int) -> MediaPage:
        gallery = await self.galleries.require_owner_gallery(gallery_id, owner_id)
        return await self._fetch_media(gallery, offset, limit, shared_only=False, owner_context=True)

    async def list_shared_media(self, share_slug: str, password: str, offset: int, limit: int) -> MediaPage:
        gallery = await self.galleries.verify_shared_gallery(share_slug, password)
        return await self._fetch_media(gallery, offset, limit, shared_only=True, owner_context=False)

    async def _fetch_media(
        self,
        gallery: Gallery,
        offset: int,
        limit: int,
        shared_only: bool,
        owner_context: bool,
    ) -> MediaPage:
        safe_limit = min(max(limit, 1), MAX_PAGE_SIZE)
        safe_offset = max(offset, 0)
        page_number, local_skip = divmod(safe_offset, safe_limit)

        content, total = await self.store.page_assets(gallery.id, page_number, safe_limit, shared_only)
        content = content[local_skip:][:safe_limit]

        returned = len(content)
        next_offset = safe_offset + returned if safe_offset + returned < total else None
        return MediaPage(
            gallery=gallery,
            items=content,
            total=total,
            next_offset=next_offset,
            owner_context=owner_context,
        )

    # ingest

    async def upload_files(self, gallery_id: str, owner_id: str, files: list[IncomingFile]) -> list[str]:
        gallery = await self.galleries.require_owner_gallery(gallery_id, owner_id)
        stored: list[str] = []

        for incoming in files:
            if incoming is None or not incoming.data:
                continue

            storage_name = generate_storage_name(incoming.filename)
            object_key = gallery_original_key(gallery.id, storage_name)
            content_type = resolve_content_type(incoming.filename, incoming.content_type)
            original_name = incoming.filename or storage_name
            uploaded_at = utcnow()

            await asyncio.to_thread(
                self.objects.put,
                self.config.BUCKET_MEDIA,
                object_key,
                incoming.data,
                content_type,
                {
                    # S3 user metadata must be ASCII
                    "original-name": quote(original_name, safe=""),
                    "uploaded-at": str(epoch_millis(uploaded_at)),
                },
            )

            if content_type.startswith("image/"):
                await self._create_thumbnail(gallery.id, storage_name, incoming.data)

            asset = MediaAsset(
                gallery_id=gallery.id,
                owner_id=gallery.owner_id,
                object_key=object_key,
                storage_name=storage_name,
                original_name=original_name,
                mime_type=content_type,
                size=incoming.size if incoming.size is not None else len(incoming.data),
                uploaded_at=uploaded_at,
                shared=False,
                share_slug=None,
            )
            await self.store.save(asset)
            stored.append(encode_id(asset.id))

        return stored

    async def _create_thumbnail(self, gallery_id: str, storage_name: str, data: bytes) -> None:
        bucket = self.config.BUCKET_THUMBNAILS
        key = gallery_thumbnail_key(gallery_id, storage_name)
        try:
            await asyncio.to_thread(self.objects.stat, bucket, key)
            return
        except ObjectNotFound:
            pass
        except StorageError as exc:
            logger.debug("Could not check thumbnail %s: %s", key, exc)

        try:
            thumbnail_bytes = await asyncio.to_thread(
                generate_thumbnail,
                data,
                self.config.THUMBNAIL_WIDTH,
                self.config.THUMBNAIL_HEIGHT,
                self.config.THUMBNAIL_QUALITY,
            )
            await asyncio.to_thread(self.objects.put, bucket, key, thumbnail_bytes, THUMBNAIL_CONTENT_TYPE)
        except (ThumbnailError, StorageError, ObjectNotFound) as exc:
            logger.warning("Failed to build thumbnail for %s: %s", storage_name, exc)

    # delete and sharing

    async def delete_media(self, gallery_id: str, owner_id: str, encoded_id: str) -> None:
        gallery = await self.galleries.require_owner_gallery(gallery_id, owner_id)
        asset = await self._resolve_owned_media(encoded_id, gallery)
        object_key = asset.object_key
        thumbnail_key = gallery_thumbnail_key(gallery.id, asset.storage_name)

        # metadata goes first so no live row ever points at a removed original
        await self.store.delete_asset(asset.id)

        try:
            await asyncio.to_thread(self.objects.remove, self.config.BUCKET_MEDIA, object_key)
        except ObjectNotFound:
            logger.debug("Original %s already gone", object_key)

        try:
            await asyncio.to_thread(self.objects.remove, self.config.BUCKET_THUMBNAILS, thumbnail_key)
        except ObjectNotFound:
            logger.debug("No thumbnail to delete for %s", asset.storage_name)
        except StorageError as exc:
            logger.warning("Failed to delete thumbnail %s: %s", thumbnail_key, exc)

    async def update_media_sharing(
        self,
        gallery_id: str,
        owner_id: str,
        encoded_id: str,
        shared: bool,
    ) -> tuple[Gallery, MediaAsset]:
        gallery = await self.galleries.require_owner_gallery(gallery_id, owner_id)
        if shared and not gallery.shared:
            raise MediaSharingRejected("Enable gallery sharing before sharing files")
        asset = await self._resolve_owned_media(encoded_id, gallery)
        asset_id, gallery_key = asset.id, gallery.id

        for attempt in range(1, SLUG_ATTEMPTS + 1):
            asset.shared = bool(shared)
            if shared and asset.share_slug is None:
                asset.share_slug = generate_share_slug()
            if not shared:
                asset.share_slug = None
            try:
                await self.store.save(asset)
                return gallery, asset
            except SlugCollision:
                if attempt == SLUG_ATTEMPTS:
                    raise
                logger.warning("Share slug collision on asset %s, retrying", asset_id)
                # the rollback expired every loaded row
                gallery = await self.store.get_gallery(gallery_key)
                asset = await self.store.get_asset(asset_id)
                if gallery is None or asset is None:
                    raise NotFound()
                asset.share_slug = None

    # reads

    async def stat_original_for_owner(self, gallery_id: str, owner_id: str, encoded_id: str) -> ObjectStat:
        asset = await self._owned_asset(gallery_id, owner_id, encoded_id)
        return await self._stat(self.config.BUCKET_MEDIA, asset.object_key)

    async def open_original_for_owner(self, gallery_id: str, owner_id: str, encoded_id: str) -> BinaryIO:
        asset = await self._owned_asset(gallery_id, owner_id, encoded_id)
        return await self._open(self.config.BUCKET_MEDIA, asset.object_key)

    async def stat_thumbnail_for_owner(self, gallery_id: str, owner_id: str, encoded_id: str) -> ObjectStat:
        asset = await self._owned_asset(gallery_id, owner_id, encoded_id)
        return await self._stat(self.config.BUCKET_THUMBNAILS, gallery_thumbnail_key(asset.gallery_id, asset.storage_name))

    async def open_thumbnail_for_owner(self, gallery_id: str, owner_id: str, encoded_id: str) -> BinaryIO:
        asset = await self._owned_asset(gallery_id, owner_id, encoded_id)
        return await self._open(self.config.BUCKET_THUMBNAILS, gallery_thumbnail_key(asset.gallery_id, asset.storage_name))

    async def stat_original_shared(self, share_slug: str, password: str, encoded_id: str) -> ObjectStat:
        asset = await self._shared_asset(share_slug, password, encoded_id)
        return await self._stat(self.config.BUCKET_MEDIA, asset.object_key)

    async def open_original_shared(self, share_slug: str, password: str, encoded_id: str) -> BinaryIO:
        asset = await self._shared_asset(share_slug, password, encoded_id)
        return await self._open(self.config.BUCKET_MEDIA, asset.object_key)

    async def stat_thumbnail_shared(self, share_slug: str, password: str, encoded_id: str) -> ObjectStat:
        asset = await self._shared_asset(share_slug, password, encoded_id)
        return await self._stat(self.config.BUCKET_THUMBNAILS, gallery_thumbnail_key(asset.gallery_id, asset.storage_name))

    async def open_thumbnail_shared(self, share_slug: str, password: str, encoded_id: str) -> BinaryIO:
        asset = await self._shared_asset(share_slug, password, encoded_id)
        return await self._open(self.config.BUCKET_THUMBNAILS, gallery_thumbnail_key(asset.gallery_id, asset.storage_name))

    # archive

    async def download_archive(self, gallery_id: str, owner_id: str, if_none_match: str | None = None) -> ArchiveDownload:
        """Serve the gallery as a zip, cached in the archives bucket by inventory signature.

        The signature is a sha1 over ``object_key|size|uploaded_at_ms`` of every
        asset, newest first, so an unchanged inventory always maps to the same
        archive key and the same ETag. A matching ``If-None-Match`` short-cuts
        to a not-modified result without touching the object store.
        """
        gallery = await self.galleries.require_owner_gallery(gallery_id, owner_id)
        inventory = await self.store.list_assets(gallery.id)
        signature = inventory_signature(inventory)
        etag = f'"{signature}"'

        if _etag_matches(if_none_match, etag):
            return ArchiveDownload(etag=etag, signature=signature, not_modified=True)

        archive_key = gallery_archive_key(gallery.id, signature)
        await self._ensure_archive_exists(archive_key, inventory)

        stat = await asyncio.to_thread(self.objects.stat, self.config.BUCKET_ARCHIVES, archive_key)
        body = await asyncio.to_thread(self.objects.get, self.config.BUCKET_ARCHIVES, archive_key)
        return ArchiveDownload(
            etag=etag,
            signature=signature,
            filename=archive_filename(gallery.name, signature),
            size=stat.size,
            body=body,
        )

    async def _ensure_archive_exists(self, archive_key: str, inventory: list[MediaAsset]) -> None:
        try:
            await asyncio.to_thread(self.objects.stat, self.config.BUCKET_ARCHIVES, archive_key)
            return
        except ObjectNotFound:
            logger.info("Archive %s missing, generating new version", archive_key)

        def open_original(asset: MediaAsset) -> BinaryIO:
            try:
                return self.objects.get(self.config.BUCKET_MEDIA, asset.object_key)
            except ObjectNotFound as exc:
                raise StorageError(f"Original missing for {asset.object_key}") from exc

        payload = await asyncio.to_thread(build_archive, inventory, open_original)
        await asyncio.to_thread(self.objects.put, self.config.BUCKET_ARCHIVES, archive_key, payload, ZIP_CONTENT_TYPE)
        logger.info("Stored archive %s (%d entries, %d bytes)", archive_key, len(inventory), len(payload))

    # helpers

    async def _owned_asset(self, gallery_id: str, owner_id: str, encoded_id: str) -> MediaAsset:
        gallery = await self.galleries.require_owner_gallery(gallery_id, owner_id)
        return await self._resolve_owned_media(encoded_id, gallery)

    async def _shared_asset(self, share_slug: str, password: str, encoded_id: str) -> MediaAsset:
        gallery = await self.galleries.verify_shared_gallery(share_slug, password)
        return await self._resolve_shared_media(encoded_id, gallery)

    async def _load_asset(self, encoded_id: str) -> MediaAsset | None:
        try:
            media_id = decode_id(encoded_id)
        except ValueError:
            return None
        return await self.store.get_asset(media_id)

    async def _resolve_owned_media(self, encoded_id: str, gallery: Gallery) -> MediaAsset:
        asset = await self._load_asset(encoded_id)
        if asset is None or asset.gallery_id != gallery.id:
            raise NotFound()
        return asset

    async def _resolve_shared_media(self, encoded_id: str, gallery: Gallery) -> MediaAsset:
        asset = await self._load_asset(encoded_id)
        if asset is None or not asset.shared or asset.gallery_id != gallery.id:
            raise NotFound()
        return asset

    async def _stat(self, bucket: str, key: str) -> ObjectStat:
        try:
            return await asyncio.to_thread(self.objects.stat, bucket, key)
        except ObjectNotFound as exc:
            raise NotFound() from exc

    async def _open(self, bucket: str, key: str) -> BinaryIO:
        try:
            return await asyncio.to_thread(self.objects.get, bucket, key)
        except ObjectNotFound as exc:
            raise NotFound() from exc
