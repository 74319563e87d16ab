from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey
from datetime import datetime

from availsync.constants import MediaRequestStatus
from availsync.database import Base


class MediaRequest(Base):
    """Request rows are owned by the request workflow; the sync job only reads them"""
    __tablename__ = "media_request"

    id = Column(Integer, primary_key=True)
    media_id = Column(Integer, ForeignKey("media.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Integer, default=MediaRequestStatus.PENDING, nullable=False)
    is_alt = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<MediaRequest {self.id} media={self.media_id} [{self.status}]>"
