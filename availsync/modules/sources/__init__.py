from availsync.modules.sources.base import (
    MediaServerSource,
    NotFound,
    SourceResult,
    TransientFailure,
    Value,
)
from availsync.modules.sources.arr import RadarrClient, SonarrClient
from availsync.modules.sources.plex import PlexSource
from availsync.modules.sources.jellyfin import JellyfinSource

__all__ = [
    "MediaServerSource",
    "NotFound",
    "SourceResult",
    "TransientFailure",
    "Value",
    "RadarrClient",
    "SonarrClient",
    "PlexSource",
    "JellyfinSource",
]
