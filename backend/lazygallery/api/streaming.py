from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO

from fastapi.responses import StreamingResponse

from lazygallery.services.storage import ObjectStat

FILE_CACHE_CONTROL = "public, max-age=3600"
STREAM_CHUNK_SIZE = 64 * 1024


def iter_body(body: BinaryIO, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    try:
        while True:
            chunk = body.read(chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        body.close()


def file_response(stat: ObjectStat, body: BinaryIO, media_type: str | None = None) -> StreamingResponse:
    return StreamingResponse(
        iter_body(body),
        media_type=media_type or stat.content_type or "application/octet-stream",
        headers={
            "Cache-Control": FILE_CACHE_CONTROL,
            "ETag": stat.etag,
            "Content-Length": str(stat.size),
        },
    )


def preview_response(stat: ObjectStat, body: BinaryIO) -> StreamingResponse:
    return file_response(stat, body, media_type="image/jpeg")
