"""
Radarr / Sonarr v3 API clients used by the availability sync
"""
import httpx
import logging
from typing import Optional

from availsync.modules.sources.base import (
    RadarrMovie,
    SonarrSeason,
    SonarrSeries,
    SourceResult,
    TransientFailure,
    Value,
    result_for_status,
)
from availsync.utils.network import create_httpx_client


logger = logging.getLogger(__name__)


class ArrClient:
    """Shared request handling for the *arr family"""

    service_name = "arr"

    def __init__(self, instance_id: int, name: str, api_url: str, api_key: str,
                 is_alt: bool = False, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.instance_id = instance_id
        self.name = name
        self.is_alt = is_alt
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.headers = {"X-Api-Key": api_key}
        self.transport = transport

    @classmethod
    def from_instance(cls, instance, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(
            instance.id,
            instance.name,
            instance.api_url,
            instance.api_key,
            is_alt=instance.is_alt,
            transport=transport,
        )

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} ({self.api_url})>"

    async def _get_json(self, path: str) -> SourceResult:
        where = f"{self.service_name} '{self.name}' {path}"
        try:
            async with create_httpx_client(transport=self.transport) as client:
                resp = await client.get(f"{self.api_url}{path}", headers=self.headers)
        except httpx.HTTPError as e:
            logger.debug(f"{where} request failed: {e!r}")
            return TransientFailure(f"{where}: {type(e).__name__}")

        if resp.status_code != 200:
            return result_for_status(resp.status_code, where)

        try:
            return Value(resp.json())
        except ValueError:
            return TransientFailure(f"{where} returned invalid JSON")


class RadarrClient(ArrClient):
    service_name = "Radarr"

    async def get_movie(self, movie_id: int) -> SourceResult:
        """GET /movie/{id} -> Value(RadarrMovie)"""
        result = await self._get_json(f"/movie/{movie_id}")
        if not isinstance(result, Value):
            return result

        data = result.value
        if not isinstance(data, dict):
            return TransientFailure(f"Radarr '{self.name}' returned an unexpected movie payload")

        media_info = (data.get("movieFile") or {}).get("mediaInfo") or {}
        return Value(RadarrMovie(
            has_file=bool(data.get("hasFile")),
            resolution=media_info.get("resolution"),
        ))


class SonarrClient(ArrClient):
    service_name = "Sonarr"

    async def get_series_by_id(self, series_id: int) -> SourceResult:
        """GET /series/{id} -> Value(SonarrSeries)"""
        result = await self._get_json(f"/series/{series_id}")
        if not isinstance(result, Value):
            return result

        data = result.value
        if not isinstance(data, dict):
            return TransientFailure(f"Sonarr '{self.name}' returned an unexpected series payload")

        seasons = []
        for season in data.get("seasons") or []:
            if not isinstance(season, dict) or season.get("seasonNumber") is None:
                continue
            stats = season.get("statistics") or {}
            seasons.append(SonarrSeason(
                season_number=int(season["seasonNumber"]),
                episode_file_count=int(stats.get("episodeFileCount") or 0),
            ))

        stats = data.get("statistics") or {}
        return Value(SonarrSeries(
            episode_file_count=int(stats.get("episodeFileCount") or 0),
            seasons=seasons,
        ))

