from lazygallery.models.gallery import Gallery
from lazygallery.models.media_asset import MediaAsset

__all__ = [
    "Gallery",
    "MediaAsset",
]
