import asyncio

from availsync.constants import MediaRequestStatus, MediaStatus
from availsync.models import Media, MediaRequest
from availsync.modules.sources.base import (
    MediaServerItem,
    NotFound,
    RadarrMovie,
    SonarrSeason,
    SonarrSeries,
    TransientFailure,
    Value,
)
from availsync.services.availability_sync import AvailabilitySync

from conftest import (
    FakeMediaServer,
    FakeRadarr,
    FakeSonarr,
    make_context,
    make_movie,
    make_show,
    reload,
)


def _run(ctx) -> AvailabilitySync:
    sync = AvailabilitySync(context_builder=lambda settings: ctx)
    asyncio.run(sync.run())
    return sync


def test_movie_missing_everywhere_is_deleted(db):
    movie = make_movie(db, external_service_id=10, service_id=1, rating_key="42")
    ctx = make_context(
        media_server=FakeMediaServer(items={"42": NotFound("404")}),
        radarr=[FakeRadarr(movies={10: NotFound("404")})],
    )

    sync = _run(ctx)

    movie = reload(db, movie.id)
    assert movie.status == MediaStatus.DELETED
    assert movie.external_service_id is None
    assert movie.service_id is None
    assert movie.rating_key is None
    assert sync.last_result == "completed"
    assert sync.running is False


def test_media_server_error_prevents_removal(db):
    movie = make_movie(db, external_service_id=10, rating_key="42")
    ctx = make_context(
        media_server=FakeMediaServer(items={"42": TransientFailure("HTTP 500", 500)}),
        radarr=[FakeRadarr(movies={10: NotFound("404")})],
    )

    _run(ctx)

    assert reload(db, movie.id).status == MediaStatus.AVAILABLE


def test_arr_priority_removes_missing_season_and_demotes_parent(db):
    show = make_show(db, {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE}, external_service_id=7)
    sonarr = FakeSonarr(series={7: Value(SonarrSeries(
        episode_file_count=10,
        seasons=[SonarrSeason(1, 10), SonarrSeason(2, 0)],
    ))})

    _run(make_context(sonarr=[sonarr], prioritize_arr=True))

    show = reload(db, show.id)
    seasons = {s.season_number: s.status for s in show.seasons}
    assert seasons == {1: MediaStatus.AVAILABLE, 2: MediaStatus.UNKNOWN}
    assert show.status == MediaStatus.PARTIALLY_AVAILABLE
    assert show.last_season_change is not None


def test_arr_priority_ignores_media_server(db):
    movie = make_movie(db, external_service_id=10, rating_key="42")
    server = FakeMediaServer(items={"42": Value(MediaServerItem("42"))})
    ctx = make_context(
        media_server=server,
        radarr=[FakeRadarr(movies={10: NotFound("404")})],
        prioritize_arr=True,
    )

    _run(ctx)

    movie = reload(db, movie.id)
    assert movie.status == MediaStatus.UNKNOWN
    assert server.item_calls == []


def test_second_run_changes_nothing(db):
    movie = make_movie(db, external_service_id=10)
    radarr = FakeRadarr(movies={10: NotFound("404")})
    ctx = make_context(radarr=[radarr])

    _run(ctx)
    first = reload(db, movie.id).status
    _run(ctx)

    assert reload(db, movie.id).status == first == MediaStatus.DELETED
    assert radarr.calls == [10]


def test_present_items_are_never_touched(db):
    movie = make_movie(db, status=MediaStatus.PARTIALLY_AVAILABLE, external_service_id=10)
    pending = make_movie(db, tmdb_id=551, status=MediaStatus.PENDING, external_service_id=11)
    ctx = make_context(radarr=[FakeRadarr(movies={10: Value(RadarrMovie(True, "1920x1080"))})])

    _run(ctx)

    assert reload(db, movie.id).status == MediaStatus.PARTIALLY_AVAILABLE
    assert reload(db, pending.id).status == MediaStatus.PENDING
    assert reload(db, movie.id).external_service_id == 10


def test_season_search_failure_keeps_all_seasons(db):
    show = make_show(db, {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE}, external_service_id=7, rating_key="9")
    server = FakeMediaServer(items={"9": Value(MediaServerItem("9"))}, seasons={"9": TransientFailure("timeout")})
    sonarr = FakeSonarr(series={7: Value(SonarrSeries(4, [SonarrSeason(1, 4)]))})

    _run(make_context(media_server=server, sonarr=[sonarr]))

    show = reload(db, show.id)
    assert show.status == MediaStatus.AVAILABLE
    assert all(s.status == MediaStatus.AVAILABLE for s in show.seasons)


def test_any_source_merges_media_server_and_sonarr_seasons(db):
    show = make_show(
        db,
        {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE, 3: MediaStatus.AVAILABLE},
        external_service_id=7,
        rating_key="9",
    )
    server = FakeMediaServer(items={"9": Value(MediaServerItem("9"))}, seasons={"9": Value([1])})
    sonarr = FakeSonarr(series={7: Value(SonarrSeries(4, [SonarrSeason(2, 4), SonarrSeason(3, 0)]))})

    _run(make_context(media_server=server, sonarr=[sonarr]))

    show = reload(db, show.id)
    seasons = {s.season_number: s.status for s in show.seasons}
    assert seasons == {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE, 3: MediaStatus.DELETED}
    assert show.status == MediaStatus.PARTIALLY_AVAILABLE


def test_approved_request_keeps_linkage(db):
    movie = make_movie(db, external_service_id=10, service_id=1, external_service_slug="fight-club")
    db.add(MediaRequest(media_id=movie.id, status=MediaRequestStatus.APPROVED, is_alt=False))
    db.commit()

    _run(make_context(radarr=[FakeRadarr()]))

    movie = reload(db, movie.id)
    assert movie.status == MediaStatus.DELETED
    assert movie.external_service_id == 10
    assert movie.external_service_slug == "fight-club"


def test_request_of_other_tier_does_not_keep_linkage(db):
    movie = make_movie(db, external_service_id=10)
    db.add(MediaRequest(media_id=movie.id, status=MediaRequestStatus.APPROVED, is_alt=True))
    db.commit()

    _run(make_context(radarr=[FakeRadarr()]))

    assert reload(db, movie.id).external_service_id is None


def test_tiers_are_reconciled_independently(db):
    movie = make_movie(
        db,
        status=MediaStatus.AVAILABLE,
        status_alt=MediaStatus.AVAILABLE,
        external_service_id=10,
        external_service_id_alt=20,
    )
    radarr = FakeRadarr(movies={10: Value(RadarrMovie(True, "1920x1080"))})
    radarr_alt = FakeRadarr(is_alt=True, instance_id=3)

    _run(make_context(radarr=[radarr, radarr_alt]))

    movie = reload(db, movie.id)
    assert movie.status == MediaStatus.AVAILABLE
    assert movie.status_alt == MediaStatus.DELETED
    assert movie.external_service_id == 10
    assert movie.external_service_id_alt is None


def test_cancel_stops_before_next_item(db):
    first = make_movie(db, tmdb_id=1, rating_key="a")
    second = make_movie(db, tmdb_id=2, rating_key="b")
    sync = AvailabilitySync()
    server = FakeMediaServer(on_get_item=lambda key: sync.cancel())
    ctx = make_context(media_server=server)
    sync.context_builder = lambda settings: ctx

    asyncio.run(sync.run())

    # The item in flight completes; nothing after it is touched
    assert reload(db, first.id).status == MediaStatus.DELETED
    assert reload(db, second.id).status == MediaStatus.AVAILABLE
    assert server.item_calls == ["a"]
    assert sync.last_result == "cancelled"
    assert sync.running is False
    assert server.closed is True


def test_session_failure_aborts_run(db):
    movie = make_movie(db, rating_key="42")
    server = FakeMediaServer(session=TransientFailure("401", 401))

    sync = _run(make_context(media_server=server))

    assert sync.last_result == "aborted"
    assert sync.running is False
    assert server.item_calls == []
    assert reload(db, movie.id).status == MediaStatus.AVAILABLE


def test_unconfigured_media_server_aborts_run(db):
    movie = make_movie(db)

    sync = AvailabilitySync()
    asyncio.run(sync.run())

    assert sync.last_result == "aborted"
    assert reload(db, movie.id).status == MediaStatus.AVAILABLE


def test_run_while_running_is_ignored(db):
    sync = AvailabilitySync(context_builder=lambda settings: make_context())
    sync.running = True

    asyncio.run(sync.run())

    assert sync.last_started is None


def test_persistence_failure_does_not_abort_run(db, monkeypatch):
    first = make_movie(db, tmdb_id=1)
    second = make_movie(db, tmdb_id=2)

    from availsync.services import state_updater

    calls = []
    real_lookup = state_updater.has_inflight_request

    def flaky(session, media_id, tier):
        calls.append(media_id)
        if media_id == first.id:
            raise RuntimeError("database is locked")
        return real_lookup(session, media_id, tier)

    monkeypatch.setattr(state_updater, "has_inflight_request", flaky)

    sync = _run(make_context())

    assert calls == [first.id, second.id]
    assert reload(db, first.id).status == MediaStatus.AVAILABLE
    assert reload(db, second.id).status == MediaStatus.DELETED
    assert sync.last_result == "completed"


def test_unexpected_item_error_skips_item(db, monkeypatch):
    first = make_movie(db, tmdb_id=1)
    second = make_movie(db, tmdb_id=2)

    sync = AvailabilitySync(context_builder=lambda settings: make_context())
    real_apply = sync.apply

    def broken(session, media, existence, ctx):
        if media.id == first.id:
            raise KeyError("boom")
        return real_apply(session, media, existence, ctx)

    monkeypatch.setattr(sync, "apply", broken)
    asyncio.run(sync.run())

    assert reload(db, first.id).status == MediaStatus.AVAILABLE
    assert reload(db, second.id).status == MediaStatus.DELETED
    assert sync.last_processed == 2


class SlowMediaServer(FakeMediaServer):
    """Tracks how many item lookups are in flight at once"""

    def __init__(self, delay=0.05):
        super().__init__()
        self.delay = delay
        self.active = 0
        self.max_active = 0

    async def get_item(self, key):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            return await super().get_item(key)
        finally:
            self.active -= 1


def test_run_after_cancel_does_not_overlap(db):
    make_movie(db, tmdb_id=1, rating_key="a")
    make_movie(db, tmdb_id=2, rating_key="b")
    make_movie(db, tmdb_id=3, rating_key="c")
    server = SlowMediaServer()
    sync = AvailabilitySync(context_builder=lambda settings: make_context(media_server=server))

    async def scenario():
        first = asyncio.create_task(sync.run())
        await asyncio.sleep(0.01)
        assert sync.cancel() is True
        assert sync.running is True
        await sync.run()
        await first

    asyncio.run(scenario())

    assert server.max_active == 1
    assert server.item_calls == ["a"]
    assert sync.last_result == "cancelled"
    assert sync.running is False
    assert sync.cancel_requested is False


def test_show_missing_everywhere_is_deleted_with_all_seasons(db):
    show = make_show(
        db,
        {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE},
        external_service_id=7,
        service_id=1,
        external_service_slug="severance",
        rating_key="9",
    )
    sonarr = FakeSonarr()
    ctx = make_context(media_server=FakeMediaServer(items={"9": NotFound("404")}), sonarr=[sonarr])

    _run(ctx)

    show = reload(db, show.id)
    assert show.status == MediaStatus.DELETED
    assert all(s.status == MediaStatus.DELETED for s in show.seasons)
    assert (show.service_id, show.external_service_id, show.external_service_slug, show.rating_key) == (
        None, None, None, None,
    )
    assert sonarr.calls == [7]


def test_show_with_only_an_available_season_is_downgraded(db):
    show = make_show(
        db,
        {1: MediaStatus.AVAILABLE, 2: MediaStatus.DELETED},
        status=MediaStatus.UNKNOWN,
        external_service_id=7,
    )

    _run(make_context(sonarr=[FakeSonarr()]))

    show = reload(db, show.id)
    assert show.status == MediaStatus.DELETED
    assert {s.season_number: s.status for s in show.seasons} == {
        1: MediaStatus.DELETED,
        2: MediaStatus.DELETED,
    }


def test_available_shows_never_keep_removed_seasons(db):
    complete = make_show(db, {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE}, tmdb_id=1, rating_key="full")
    gapped = make_show(db, {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE}, tmdb_id=2, rating_key="gap")
    server = FakeMediaServer(
        items={"full": Value(MediaServerItem("full")), "gap": Value(MediaServerItem("gap"))},
        seasons={"full": Value([1, 2]), "gap": Value([1])},
    )

    _run(make_context(media_server=server))

    assert reload(db, complete.id).status == MediaStatus.AVAILABLE
    assert reload(db, gapped.id).status == MediaStatus.PARTIALLY_AVAILABLE

    db.expire_all()
    for show in db.query(Media).filter_by(media_type="tv").all():
        if show.status == MediaStatus.AVAILABLE:
            assert all(
                s.status not in (MediaStatus.DELETED, MediaStatus.UNKNOWN) for s in show.seasons
            )


def test_sonarr_failure_in_arr_priority_mode_keeps_every_season(db):
    show = make_show(db, {1: MediaStatus.AVAILABLE, 2: MediaStatus.AVAILABLE}, external_service_id=7)
    sonarr = FakeSonarr(series={7: TransientFailure("HTTP 503", 503)})

    _run(make_context(sonarr=[sonarr], prioritize_arr=True))

    show = reload(db, show.id)
    assert show.status == MediaStatus.AVAILABLE
    assert all(s.status == MediaStatus.AVAILABLE for s in show.seasons)
    assert show.external_service_id == 7
