import logging

from availsync.database import SessionLocal
from availsync.models.config import Config


logger = logging.getLogger(__name__)


def init_config():
    """Initialize default configs"""
    db = SessionLocal()

    configs = [
        # Media server
        ("media_server_type", "", "core", False, "string", "Active media server: plex, jellyfin, emby or empty"),
        ("plex_url", "", "plex", False, "string", "Plex URL (e.g. http://localhost:32400)"),
        ("plex_token", "", "plex", True, "string", "Plex admin token"),
        ("jellyfin_url", "", "jellyfin", False, "string", "Jellyfin/Emby URL (e.g. http://localhost:8096)"),
        ("jellyfin_api_key", "", "jellyfin", True, "string", "Jellyfin/Emby admin API key"),
        ("jellyfin_user_id", "", "jellyfin", False, "string", "Jellyfin/Emby admin user id"),
        ("jellyfin_device_id", "", "jellyfin", False, "string", "Device id sent in the MediaBrowser header"),

        # Availability sync
        ("prioritize_arr", "false", "sync", False, "boolean", "Trust Radarr/Sonarr alone and ignore the media server"),
        ("availability_sync_page_size", "50", "sync", False, "integer", "Media rows loaded per page"),
        ("availability_sync_schedule", "0 5 * * *", "sync", False, "string", "Crontab for the availability sync"),

        # System
        ("log_level", "INFO", "system", False, "string", "Log level (DEBUG, INFO, WARNING, ERROR)"),
        ("scheduler_enabled", "true", "system", False, "boolean", "Run the availability sync on its schedule"),
    ]

    try:
        for key, value, module, secret, data_type, description in configs:
            existing = db.query(Config).filter_by(key=key).first()
            if not existing:
                config = Config(
                    key=key,
                    value=value,
                    module=module,
                    secret=secret,
                    data_type=data_type,
                    description=description
                )
                db.add(config)
                logger.info(f"✓ Added config: {key}")

        db.commit()
    finally:
        db.close()
    logger.info("✅ Base config initialized")


def get_log_level_from_db() -> str:
    """Log level stored in the Config table, with fallback"""
    try:
        db = SessionLocal()
        try:
            config = db.query(Config).filter_by(key="log_level").first()
        finally:
            db.close()
        if config and config.value:
            return config.value.upper()
    except Exception as e:
        logger.warning(f"Could not read log_level from DB: {e}")

    return "INFO"
