from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from availsync.constants import MediaStatus, MediaType, MediaServerType, Tier, AVAILABLE_STATUSES
from availsync.database import Base


class Media(Base):
    """A tracked movie or show, with two independent quality tiers"""
    __tablename__ = "media"

    id = Column(Integer, primary_key=True)
    media_type = Column(String(10), nullable=False)  # "movie" | "tv"
    tmdb_id = Column(Integer, nullable=True, index=True)
    tvdb_id = Column(Integer, nullable=True, unique=True)

    status = Column(Integer, default=MediaStatus.UNKNOWN, nullable=False)
    status_alt = Column(Integer, default=MediaStatus.UNKNOWN, nullable=False)

    # Configured arr instance that owns the item
    service_id = Column(Integer, nullable=True)
    service_id_alt = Column(Integer, nullable=True)
    # Id of the item inside that arr instance
    external_service_id = Column(Integer, nullable=True)
    external_service_id_alt = Column(Integer, nullable=True)
    external_service_slug = Column(String, nullable=True)
    external_service_slug_alt = Column(String, nullable=True)

    # Media server keys: Plex rating keys, Jellyfin/Emby item ids
    rating_key = Column(String, nullable=True)
    rating_key_alt = Column(String, nullable=True)
    jellyfin_media_id = Column(String, nullable=True)
    jellyfin_media_id_alt = Column(String, nullable=True)

    media_added_at = Column(DateTime, nullable=True)
    media_added_at_alt = Column(DateTime, nullable=True)
    last_season_change = Column(DateTime, default=datetime.utcnow)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    seasons = relationship(
        "Season",
        back_populates="media",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Season.season_number",
    )

    def __repr__(self):
        return f"<Media {self.media_type} TMDB {self.tmdb_id} [{self.status}/{self.status_alt}]>"

    @property
    def is_movie(self) -> bool:
        return self.media_type == MediaType.MOVIE.value

    @property
    def is_show(self) -> bool:
        return self.media_type == MediaType.TV.value

    @property
    def kind_label(self) -> str:
        return "movie" if self.is_movie else "show"

    # Tier accessors

    def status_for(self, tier: Tier) -> int:
        if tier is Tier.ALT:
            return self.status_alt
        return self.status

    def set_status(self, tier: Tier, status: MediaStatus):
        if tier is Tier.ALT:
            self.status_alt = status
        else:
            self.status = status

    def arr_id_for(self, tier: Tier):
        if tier is Tier.ALT:
            return self.external_service_id_alt
        return self.external_service_id

    def media_server_key_for(self, tier: Tier, server_type: MediaServerType):
        if server_type == MediaServerType.PLEX:
            return self.rating_key_alt if tier is Tier.ALT else self.rating_key
        if server_type in (MediaServerType.JELLYFIN, MediaServerType.EMBY):
            return self.jellyfin_media_id_alt if tier is Tier.ALT else self.jellyfin_media_id
        return None

    def clear_linkage(self, tier: Tier, server_type: MediaServerType):
        """Drop all external identifiers of one tier"""
        if tier is Tier.ALT:
            self.service_id_alt = None
            self.external_service_id_alt = None
            self.external_service_slug_alt = None
        else:
            self.service_id = None
            self.external_service_id = None
            self.external_service_slug = None

        # Only the key of the active media server family is ours to drop
        if server_type == MediaServerType.PLEX:
            if tier is Tier.ALT:
                self.rating_key_alt = None
            else:
                self.rating_key = None
        elif server_type in (MediaServerType.JELLYFIN, MediaServerType.EMBY):
            if tier is Tier.ALT:
                self.jellyfin_media_id_alt = None
            else:
                self.jellyfin_media_id = None

    def is_available(self, tier: Tier) -> bool:
        return self.status_for(tier) in AVAILABLE_STATUSES

    def available_seasons(self, tier: Tier) -> list:
        return [season for season in self.seasons if season.is_available(tier)]
