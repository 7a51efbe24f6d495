import uuid

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from lazygallery.core.database import Base
from lazygallery.models.timestamps import utcnow


class MediaAsset(Base):
    __tablename__ = "media_assets"
    __table_args__ = (
        Index("ix_media_assets_gallery_uploaded", "gallery_id", "uploaded_at"),
        Index("ix_media_assets_gallery_shared_uploaded", "gallery_id", "shared", "uploaded_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    gallery_id = Column(String(36), ForeignKey("galleries.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(String(255), nullable=False, index=True)
    object_key = Column(String(1024), nullable=False)
    storage_name = Column(String(255), nullable=False)
    original_name = Column(String(1024), nullable=False)
    mime_type = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    shared = Column(Boolean, nullable=False, default=False)
    # unique but nullable: only assets that are currently shared carry a slug
    share_slug = Column(String(32), nullable=True, unique=True)

    gallery = relationship("Gallery", back_populates="assets")
