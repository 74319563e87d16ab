"""
Shared enumerations for media state, requests, servers and quality tiers
"""
from enum import Enum, IntEnum


class MediaStatus(IntEnum):
    UNKNOWN = 1
    PENDING = 2
    PROCESSING = 3
    PARTIALLY_AVAILABLE = 4
    AVAILABLE = 5
    BLACKLISTED = 6
    DELETED = 7


# Statuses the sync job is allowed to take away
AVAILABLE_STATUSES = (MediaStatus.AVAILABLE, MediaStatus.PARTIALLY_AVAILABLE)


class MediaRequestStatus(IntEnum):
    PENDING = 1
    APPROVED = 2
    DECLINED = 3
    FAILED = 4
    COMPLETED = 5


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"


class MediaServerType(IntEnum):
    PLEX = 1
    JELLYFIN = 2
    EMBY = 3
    NOT_CONFIGURED = 4

    @classmethod
    def from_setting(cls, value) -> "MediaServerType":
        """Map the `media_server_type` config value ("plex", "2", "") to a member"""
        if value is None:
            return cls.NOT_CONFIGURED
        text = str(value).strip().lower()
        if text.isdigit():
            try:
                return cls(int(text))
            except ValueError:
                return cls.NOT_CONFIGURED
        return {
            "plex": cls.PLEX,
            "jellyfin": cls.JELLYFIN,
            "emby": cls.EMBY,
        }.get(text, cls.NOT_CONFIGURED)

    @property
    def label(self) -> str:
        return {
            MediaServerType.PLEX: "Plex",
            MediaServerType.JELLYFIN: "Jellyfin",
            MediaServerType.EMBY: "Emby",
        }.get(self, "media server")


class Tier(str, Enum):
    """Independently tracked quality variant of a catalog item"""
    STANDARD = "standard"
    ALT = "alt"

    @property
    def label(self) -> str:
        return "4K" if self is Tier.ALT else "non-4K"


class ExistencePolicy(str, Enum):
    """How arr and media-server answers combine into one existence verdict"""
    ANY_SOURCE = "any_source"      # media server OR arr
    ARR_PRIORITY = "arr_priority"  # arr only

    @property
    def removal_status(self) -> MediaStatus:
        # Arr-priority removals go back to UNKNOWN
        if self is ExistencePolicy.ARR_PRIORITY:
            return MediaStatus.UNKNOWN
        return MediaStatus.DELETED


# Radarr reports "3840x2160"; widths at or above this count as the alt tier
ALT_TIER_MIN_WIDTH = 2000

DEFAULT_PAGE_SIZE = 50
