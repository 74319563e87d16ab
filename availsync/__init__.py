# availsync - availability reconciliation for media requests
__version__ = "0.1.0"
