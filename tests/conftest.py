import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Must be set before availsync.database is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="availsync-logs-"))

import availsync.models  # noqa: E402,F401
from availsync.constants import ExistencePolicy, MediaServerType, MediaStatus, MediaType  # noqa: E402
from availsync.database import Base, SessionLocal, engine  # noqa: E402
from availsync.models import Media, Season  # noqa: E402
from availsync.modules.sources.base import MediaServerSource, NotFound, Value  # noqa: E402
from availsync.services.run_context import RunContext  # noqa: E402


@pytest.fixture()
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def reload(db, media_id: int) -> Media:
    db.expire_all()
    return db.query(Media).filter_by(id=media_id).one()


def make_movie(db, status=MediaStatus.AVAILABLE, status_alt=MediaStatus.UNKNOWN, **kwargs) -> Media:
    kwargs.setdefault("tmdb_id", 550)
    media = Media(media_type=MediaType.MOVIE.value, status=status, status_alt=status_alt, **kwargs)
    db.add(media)
    db.commit()
    return media


def make_show(db, seasons: Dict[int, MediaStatus], status=MediaStatus.AVAILABLE,
              status_alt=MediaStatus.UNKNOWN, seasons_alt: Optional[Dict[int, MediaStatus]] = None,
              **kwargs) -> Media:
    kwargs.setdefault("tmdb_id", 1399)
    media = Media(media_type=MediaType.TV.value, status=status, status_alt=status_alt, **kwargs)
    seasons_alt = seasons_alt or {}
    for number, season_status in seasons.items():
        media.seasons.append(Season(
            season_number=number,
            status=season_status,
            status_alt=seasons_alt.get(number, MediaStatus.UNKNOWN),
        ))
    db.add(media)
    db.commit()
    return media


@dataclass
class FakeRadarr:
    """Radarr stand-in: movie id -> SourceResult"""
    movies: Dict[int, object] = field(default_factory=dict)
    is_alt: bool = False
    instance_id: int = 1
    name: str = "radarr"
    calls: List[int] = field(default_factory=list)

    async def get_movie(self, movie_id):
        self.calls.append(movie_id)
        return self.movies.get(movie_id, NotFound())


@dataclass
class FakeSonarr:
    series: Dict[int, object] = field(default_factory=dict)
    is_alt: bool = False
    instance_id: int = 2
    name: str = "sonarr"
    calls: List[int] = field(default_factory=list)

    async def get_series_by_id(self, series_id):
        self.calls.append(series_id)
        return self.series.get(series_id, NotFound())


class FakeMediaServer(MediaServerSource):
    name = "Plex"

    def __init__(self, items=None, seasons=None, session=None, on_get_item=None):
        self.items = items or {}
        self.seasons = seasons or {}
        self.session = session if session is not None else Value(None)
        self.on_get_item = on_get_item
        self.item_calls = []
        self.season_calls = []
        self.closed = False

    async def verify_session(self):
        return self.session

    async def get_item(self, key):
        self.item_calls.append(key)
        if self.on_get_item:
            self.on_get_item(key)
        return self.items.get(key, NotFound())

    async def get_seasons(self, key):
        self.season_calls.append(key)
        return self.seasons.get(key, NotFound())

    async def close(self):
        self.closed = True


def make_context(media_server=None, radarr=(), sonarr=(), prioritize_arr=False, page_size=50) -> RunContext:
    return RunContext(
        server_type=MediaServerType.PLEX,
        policy=ExistencePolicy.ARR_PRIORITY if prioritize_arr else ExistencePolicy.ANY_SOURCE,
        media_server=media_server if media_server is not None else FakeMediaServer(),
        radarr=list(radarr),
        sonarr=list(sonarr),
        page_size=page_size,
    )
