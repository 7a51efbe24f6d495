from __future__ import annotations

import hashlib
import io
import shutil
import zipfile
from collections.abc import Callable, Iterable
from pathlib import PurePosixPath
from typing import BinaryIO

from lazygallery.models.media_asset import MediaAsset
from lazygallery.models.timestamps import epoch_millis

ZIP_CONTENT_TYPE = "application/zip"
# zip entries carry a fixed timestamp so identical inventories give identical bytes
ZIP_ENTRY_TIMESTAMP = (1980, 1, 1, 0, 0, 0)
COPY_CHUNK_SIZE = 64 * 1024


def inventory_fingerprint(assets: Iterable[MediaAsset]) -> str:
    return "\n".join(
        f"{asset.object_key}|{asset.size}|{epoch_millis(asset.uploaded_at)}" for asset in assets
    )


def inventory_signature(assets: Iterable[MediaAsset]) -> str:
    return hashlib.sha1(inventory_fingerprint(assets).encode("utf-8")).hexdigest()


def archive_entry_name(original_name: str | None) -> str:
    normalized = (original_name or "").replace("\\", "/")
    name = PurePosixPath(normalized).name
    return name or "file"


def build_archive(assets: Iterable[MediaAsset], open_original: Callable[[MediaAsset], BinaryIO]) -> bytes:
    """Zip the originals of ``assets`` in the given order.

    ``open_original`` returns a readable stream for an asset; each stream is
    copied into its entry and closed.
    """
    zip_buffer = io.BytesIO()
    with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for asset in assets:
            # equal basenames become separate entries; zipfile warns about the duplicate
            info = zipfile.ZipInfo(archive_entry_name(asset.original_name), date_time=ZIP_ENTRY_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            body = open_original(asset)
            try:
                with archive.open(info, "w") as entry:
                    shutil.copyfileobj(body, entry, COPY_CHUNK_SIZE)
            finally:
                body.close()
    return zip_buffer.getvalue()
