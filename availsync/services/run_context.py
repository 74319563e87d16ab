"""
Per-run state: source clients and the season caches of one sync pass
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from availsync.constants import DEFAULT_PAGE_SIZE, ExistencePolicy, MediaServerType, Tier
from availsync.exceptions import MediaServerNotConfigured
from availsync.modules.sources import JellyfinSource, PlexSource, RadarrClient, SonarrClient
from availsync.modules.sources.base import MediaServerSource, SonarrSeries
from availsync.services.settings import SyncSettings


logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    server_type: MediaServerType
    policy: ExistencePolicy
    media_server: Optional[MediaServerSource] = None
    radarr: List[RadarrClient] = field(default_factory=list)
    sonarr: List[SonarrClient] = field(default_factory=list)
    page_size: int = DEFAULT_PAGE_SIZE

    # (instance id, series id) -> series
    sonarr_series: Dict[Tuple[int, int], SonarrSeries] = field(default_factory=dict)
    # media server key -> season numbers below it
    media_server_seasons: Dict[str, List[int]] = field(default_factory=dict)

    def radarr_for(self, tier: Tier) -> List[RadarrClient]:
        return [c for c in self.radarr if c.is_alt == (tier is Tier.ALT)]

    def sonarr_for(self, tier: Tier) -> List[SonarrClient]:
        return [c for c in self.sonarr if c.is_alt == (tier is Tier.ALT)]

    @property
    def consults_media_server(self) -> bool:
        return self.policy is ExistencePolicy.ANY_SOURCE and self.media_server is not None

    def searched_sources(self, is_movie: bool) -> str:
        """Human readable list of the sources a verdict was based on"""
        arr = "Radarr" if is_movie else "Sonarr"
        if self.consults_media_server:
            return f"{arr} and {self.server_type.label}"
        return arr

    async def close(self):
        if self.media_server is not None:
            await self.media_server.close()


def build_media_server(settings: SyncSettings) -> MediaServerSource:
    """Client for the active media server, using the stored admin credentials"""
    server_type = settings.media_server_type

    if server_type == MediaServerType.PLEX:
        if not settings.plex_url or not settings.plex_token:
            raise MediaServerNotConfigured("Plex admin URL or token is not configured")
        return PlexSource(settings.plex_url, settings.plex_token)

    if server_type in (MediaServerType.JELLYFIN, MediaServerType.EMBY):
        if not settings.jellyfin_url or not settings.jellyfin_api_key:
            raise MediaServerNotConfigured(f"{server_type.label} admin URL or API key is not configured")
        return JellyfinSource(
            settings.jellyfin_url,
            settings.jellyfin_api_key,
            user_id=settings.jellyfin_user_id,
            device_id=settings.jellyfin_device_id,
            name=server_type.label,
        )

    raise MediaServerNotConfigured("No media server is configured")


def build_run_context(settings: SyncSettings) -> RunContext:
    media_server = build_media_server(settings)

    radarr = [RadarrClient.from_instance(i) for i in settings.radarr if i.sync_enabled]
    sonarr = [SonarrClient.from_instance(i) for i in settings.sonarr if i.sync_enabled]

    if settings.policy is ExistencePolicy.ARR_PRIORITY and not (radarr or sonarr):
        logger.warning("⚠️ prioritize_arr is set but no Radarr/Sonarr instance has sync enabled")

    return RunContext(
        server_type=settings.media_server_type,
        policy=settings.policy,
        media_server=media_server,
        radarr=radarr,
        sonarr=sonarr,
        page_size=settings.page_size,
    )
