from availsync.models.config import Config
from availsync.models.media import Media
from availsync.models.season import Season
from availsync.models.media_request import MediaRequest
from availsync.models.service_instance import ServiceInstance

__all__ = [
    "Config",
    "Media",
    "Season",
    "MediaRequest",
    "ServiceInstance",
]
