import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Generic, List, Optional, TypeVar, Union

import aiohttp

from availsync.utils.network import create_aiohttp_session

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Value(Generic[T]):
    """The source answered and returned a payload"""
    value: T


@dataclass(frozen=True)
class NotFound:
    """The source answered and confirmed the item is absent"""
    detail: str = ""


@dataclass(frozen=True)
class TransientFailure:
    """The source could not give a reliable answer (error status, timeout, bad payload)"""
    error: str
    status: Optional[int] = None


SourceResult = Union[Value, NotFound, TransientFailure]


def result_for_status(status: int, where: str) -> Union[NotFound, TransientFailure]:
    """Classify a non-200 HTTP status"""
    if status == 404:
        return NotFound(f"{where} returned 404")
    return TransientFailure(f"{where} returned HTTP {status}", status)


@dataclass
class RadarrMovie:
    has_file: bool
    resolution: Optional[str] = None  # "3840x2160"

    @property
    def width(self) -> Optional[int]:
        if not self.resolution:
            return None
        parts = self.resolution.lower().split("x")
        if len(parts) != 2:
            return None
        try:
            return int(parts[0])
        except ValueError:
            return None


@dataclass
class SonarrSeason:
    season_number: int
    episode_file_count: int = 0


@dataclass
class SonarrSeries:
    episode_file_count: int = 0
    seasons: List[SonarrSeason] = field(default_factory=list)


@dataclass
class MediaServerItem:
    key: str
    title: Optional[str] = None


class MediaServerSource(ABC):
    """Base class for library-facing media servers (Plex, Jellyfin, Emby)"""

    name: str = "media server"

    @abstractmethod
    async def get_item(self, key: str) -> SourceResult:
        """Fetch one library item by its server key"""
        pass

    @abstractmethod
    async def get_seasons(self, key: str) -> SourceResult:
        """Season numbers present below a show, as Value(list[int])"""
        pass

    async def verify_session(self) -> SourceResult:
        """Check that the administrative session can talk to the server"""
        return Value(None)

    async def close(self):
        pass


class HttpMediaServerSource(MediaServerSource):
    """Media server reached over HTTP with one aiohttp session per sync run"""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")
        self._session = None

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _get_session(self):
        if self._session is None or self._session.closed:
            self._session = create_aiohttp_session()
        return self._session

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> SourceResult:
        where = f"{self.name} {path}"
        try:
            session = self._get_session()
            async with session.get(f"{self.base_url}{path}", headers=self._headers(), params=params) as resp:
                if resp.status != 200:
                    return result_for_status(resp.status, where)
                return Value(await resp.json(content_type=None))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"{where} request failed: {e!r}")
            return TransientFailure(f"{where}: {type(e).__name__}")
        except ValueError:
            return TransientFailure(f"{where} returned invalid JSON")

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
