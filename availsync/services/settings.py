"""
Settings provider: reads the Config table and configured arr instances
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from availsync.constants import DEFAULT_PAGE_SIZE, ExistencePolicy, MediaServerType
from availsync.exceptions import ConfigError
from availsync.models.config import Config
from availsync.models.service_instance import ServiceInstance


logger = logging.getLogger(__name__)


def get_config_value(db: Session, key: str, default=None):
    """Typed value of a config row, or `default` when the row is missing or empty"""
    config = db.query(Config).filter_by(key=key).first()
    if not config or config.value in (None, ""):
        return default
    try:
        return config.typed_value
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Config '{key}' has an invalid value: {e}") from e


@dataclass
class SyncSettings:
    media_server_type: MediaServerType = MediaServerType.NOT_CONFIGURED
    prioritize_arr: bool = False
    page_size: int = DEFAULT_PAGE_SIZE

    plex_url: Optional[str] = None
    plex_token: Optional[str] = None

    jellyfin_url: Optional[str] = None
    jellyfin_api_key: Optional[str] = None
    jellyfin_user_id: Optional[str] = None
    jellyfin_device_id: Optional[str] = None

    radarr: List[ServiceInstance] = field(default_factory=list)
    sonarr: List[ServiceInstance] = field(default_factory=list)

    @property
    def policy(self) -> ExistencePolicy:
        if self.prioritize_arr:
            return ExistencePolicy.ARR_PRIORITY
        return ExistencePolicy.ANY_SOURCE


def load_settings(db: Session) -> SyncSettings:
    """Snapshot everything one sync run needs"""
    page_size = get_config_value(db, "availability_sync_page_size", DEFAULT_PAGE_SIZE)
    if page_size < 1:
        raise ConfigError(f"availability_sync_page_size must be positive, got {page_size}")

    instances = db.query(ServiceInstance).order_by(ServiceInstance.id).all()

    settings = SyncSettings(
        media_server_type=MediaServerType.from_setting(get_config_value(db, "media_server_type")),
        prioritize_arr=bool(get_config_value(db, "prioritize_arr", False)),
        page_size=page_size,
        plex_url=get_config_value(db, "plex_url"),
        plex_token=get_config_value(db, "plex_token"),
        jellyfin_url=get_config_value(db, "jellyfin_url"),
        jellyfin_api_key=get_config_value(db, "jellyfin_api_key"),
        jellyfin_user_id=get_config_value(db, "jellyfin_user_id"),
        jellyfin_device_id=get_config_value(db, "jellyfin_device_id"),
        radarr=[i for i in instances if i.kind == "radarr"],
        sonarr=[i for i in instances if i.kind == "sonarr"],
    )

    logger.debug(
        f"Sync settings: server={settings.media_server_type.label}, policy={settings.policy.value}, "
        f"radarr={len(settings.radarr)}, sonarr={len(settings.sonarr)}, page_size={page_size}"
    )
    return settings
