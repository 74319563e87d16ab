"""
Jellyfin / Emby library lookups (item id based)
"""
import base64
from typing import Dict, Optional

from availsync import __version__
from availsync.modules.sources.base import (
    HttpMediaServerSource,
    MediaServerItem,
    NotFound,
    SourceResult,
    TransientFailure,
    Value,
)


class JellyfinSource(HttpMediaServerSource):
    """Jellyfin and Emby speak the same API for everything the sync needs"""

    name = "Jellyfin"

    def __init__(self, base_url: str, api_key: str, user_id: Optional[str] = None,
                 device_id: Optional[str] = None, name: Optional[str] = None):
        super().__init__(base_url)
        self.api_key = api_key
        self.user_id = user_id or None
        self.device_id = device_id or base64.b64encode(b"BOT_availsync").decode()
        if name:
            self.name = name

    def _headers(self) -> Dict[str, str]:
        auth = (
            f'MediaBrowser Client="availsync", Device="availsync", '
            f'DeviceId="{self.device_id}", Version="{__version__}", Token="{self.api_key}"'
        )
        return {"Accept": "application/json", "Authorization": auth}

    async def verify_session(self) -> SourceResult:
        result = await self._get_json("/System/Info")
        if isinstance(result, NotFound):
            # The probe endpoint always exists; a 404 means a wrong URL
            return TransientFailure(f"{self.name} /System/Info not found")
        return result

    async def get_item(self, key: str) -> SourceResult:
        result = await self._get_json(
            "/Items",
            params={"ids": key, "fields": "ProviderIds,MediaSources,DateCreated"},
        )
        if not isinstance(result, Value):
            return result

        payload = result.value
        if not isinstance(payload, dict):
            return TransientFailure(f"{self.name} returned an unexpected payload for {key}")

        items = payload.get("Items") or []
        if not items:
            return NotFound(f"{self.name} has no item {key}")

        return Value(MediaServerItem(key=str(items[0].get("Id", key)), title=items[0].get("Name")))

    async def get_seasons(self, key: str) -> SourceResult:
        params = {"userId": self.user_id} if self.user_id else None
        result = await self._get_json(f"/Shows/{key}/Seasons", params=params)
        if not isinstance(result, Value):
            return result

        payload = result.value
        if not isinstance(payload, dict):
            return TransientFailure(f"{self.name} returned an unexpected seasons payload for {key}")

        return Value([
            int(season["IndexNumber"])
            for season in payload.get("Items") or []
            if season.get("IndexNumber") is not None
        ])
