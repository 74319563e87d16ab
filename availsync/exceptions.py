"""Exception hierarchy for availsync."""


class AvailSyncError(Exception):
    """Base exception for all availsync errors."""


class ConfigError(AvailSyncError):
    """Raised when a setting is missing or cannot be parsed."""


class MediaServerNotConfigured(ConfigError):
    """Raised when no media server or no admin credentials are configured."""


class MediaServerSessionError(AvailSyncError):
    """Raised when the administrative media-server session is not usable."""


class SyncCancelled(AvailSyncError):
    """Raised inside the sync loop after cancel() was called."""
