"""
Plex library lookups (rating key based)
"""
from typing import Dict, Optional

from availsync.modules.sources.base import (
    HttpMediaServerSource,
    MediaServerItem,
    NotFound,
    SourceResult,
    TransientFailure,
    Value,
)


class PlexSource(HttpMediaServerSource):
    name = "Plex"

    def __init__(self, base_url: str, token: str):
        super().__init__(base_url)
        self.token = token

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "X-Plex-Token": self.token}

    @staticmethod
    def _metadata(payload) -> Optional[list]:
        if not isinstance(payload, dict):
            return None
        container = payload.get("MediaContainer")
        if not isinstance(container, dict):
            return None
        return container.get("Metadata") or []

    async def get_item(self, key: str) -> SourceResult:
        result = await self._get_json(f"/library/metadata/{key}")
        if not isinstance(result, Value):
            return result

        metadata = self._metadata(result.value)
        if metadata is None:
            return TransientFailure(f"Plex returned an unexpected payload for {key}")
        if not metadata:
            return NotFound(f"Plex has no metadata for {key}")

        item = metadata[0]
        return Value(MediaServerItem(key=str(item.get("ratingKey", key)), title=item.get("title")))

    async def get_seasons(self, key: str) -> SourceResult:
        result = await self._get_json(f"/library/metadata/{key}/children")
        if not isinstance(result, Value):
            return result

        metadata = self._metadata(result.value)
        if metadata is None:
            return TransientFailure(f"Plex returned an unexpected children payload for {key}")

        return Value([int(child["index"]) for child in metadata if child.get("index") is not None])
