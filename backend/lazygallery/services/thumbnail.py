from __future__ import annotations

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512
DEFAULT_QUALITY = 80

_HEIF_REGISTERED = False


class ThumbnailError(Exception):
    pass


def register_optional_image_codecs() -> None:
    global _HEIF_REGISTERED
    if _HEIF_REGISTERED:
        return
    register_heif_opener()
    _HEIF_REGISTERED = True


def generate_thumbnail(
    image_bytes: bytes,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    quality: int = DEFAULT_QUALITY,
) -> bytes:
    """Fit ``image_bytes`` inside ``width`` x ``height`` and encode it as JPEG.

    The aspect ratio is preserved and images are never upscaled. ``quality`` is
    the JPEG quality in percent. Raises :class:`ThumbnailError` when the input
    cannot be decoded or declares more pixels than Pillow will open.
    """
    register_optional_image_codecs()
    input_buffer = BytesIO(image_bytes)
    output_buffer = BytesIO()

    # oversized headers raise DecompressionBombError and some decoders raise SyntaxError
    try:
        with Image.open(input_buffer) as image:
            image = ImageOps.exif_transpose(image)
            image.thumbnail((width, height))
            image.convert("RGB").save(output_buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as exc:
        raise ThumbnailError(str(exc) or exc.__class__.__name__) from exc

    return output_buffer.getvalue()
