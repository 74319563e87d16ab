from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime

from availsync.database import Base


class ServiceInstance(Base):
    """A configured Radarr or Sonarr server"""
    __tablename__ = "service_instance"

    id = Column(Integer, primary_key=True)
    kind = Column(String(10), nullable=False, index=True)  # "radarr" | "sonarr"
    name = Column(String, nullable=False)

    hostname = Column(String, nullable=False)
    port = Column(Integer, nullable=False)
    api_key = Column(String, nullable=False)
    use_ssl = Column(Boolean, default=False)
    base_url = Column(String, nullable=True)  # e.g. "/radarr" behind a reverse proxy

    is_alt = Column(Boolean, default=False)  # serves the 4K tier
    sync_enabled = Column(Boolean, default=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ServiceInstance {self.kind}:{self.name} [{'4K' if self.is_alt else 'std'}]>"

    @property
    def api_url(self) -> str:
        """Base URL of the v3 API, e.g. http://radarr:7878/radarr/api/v3"""
        scheme = "https" if self.use_ssl else "http"
        base = (self.base_url or "").strip().rstrip("/")
        if base and not base.startswith("/"):
            base = f"/{base}"
        return f"{scheme}://{self.hostname}:{self.port}{base}/api/v3"
