from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from availsync.constants import MediaStatus, Tier, AVAILABLE_STATUSES
from availsync.database import Base


class Season(Base):
    __tablename__ = "season"

    id = Column(Integer, primary_key=True)
    media_id = Column(Integer, ForeignKey("media.id", ondelete="CASCADE"), nullable=False, index=True)
    season_number = Column(Integer, nullable=False)

    status = Column(Integer, default=MediaStatus.UNKNOWN, nullable=False)
    status_alt = Column(Integer, default=MediaStatus.UNKNOWN, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    media = relationship("Media", back_populates="seasons")

    def __repr__(self):
        return f"<Season {self.season_number} [{self.status}/{self.status_alt}]>"

    def status_for(self, tier: Tier) -> int:
        if tier is Tier.ALT:
            return self.status_alt
        return self.status

    def set_status(self, tier: Tier, status: MediaStatus):
        if tier is Tier.ALT:
            self.status_alt = status
        else:
            self.status = status

    def is_available(self, tier: Tier) -> bool:
        return self.status_for(tier) in AVAILABLE_STATUSES
