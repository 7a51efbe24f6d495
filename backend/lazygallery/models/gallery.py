import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship

from lazygallery.core.database import Base
from lazygallery.models.timestamps import utcnow


class Gallery(Base):
    __tablename__ = "galleries"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    share_slug = Column(String(32), nullable=False, unique=True)
    shared = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    assets = relationship("MediaAsset", back_populates="gallery", passive_deletes=True)
