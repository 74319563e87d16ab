from availsync.constants import MediaStatus, MediaType
from availsync.models import Media
from availsync.services.candidate_loader import load_candidate_pages, load_candidates

from conftest import make_movie, make_show


def _bulk_movies(db, count, status=MediaStatus.AVAILABLE):
    db.add_all([
        Media(media_type=MediaType.MOVIE.value, tmdb_id=1000 + i, status=status, status_alt=MediaStatus.UNKNOWN)
        for i in range(count)
    ])
    db.commit()


def test_120_candidates_yield_three_pages(db):
    _bulk_movies(db, 120)

    sizes = [len(page) for page in load_candidate_pages(db, page_size=50)]

    assert sizes == [50, 50, 20]


def test_candidates_filter_on_any_tier_or_season(db):
    available = make_movie(db, tmdb_id=1)
    alt_only = make_movie(db, tmdb_id=2, status=MediaStatus.UNKNOWN, status_alt=MediaStatus.PARTIALLY_AVAILABLE)
    make_movie(db, tmdb_id=3, status=MediaStatus.DELETED)
    make_movie(db, tmdb_id=4, status=MediaStatus.PROCESSING)
    season_only = make_show(db, {1: MediaStatus.AVAILABLE}, status=MediaStatus.UNKNOWN, tmdb_id=5)
    make_show(db, {1: MediaStatus.DELETED}, status=MediaStatus.UNKNOWN, tmdb_id=6)

    ids = [m.id for m in load_candidates(db, page_size=2)]

    assert ids == [available.id, alt_only.id, season_only.id]


def test_each_call_restarts_from_the_beginning(db):
    _bulk_movies(db, 7)

    first = [m.id for m in load_candidates(db, page_size=3)]
    second = [m.id for m in load_candidates(db, page_size=3)]

    assert first == second
    assert len(first) == 7


def test_rows_downgraded_mid_scan_do_not_skip_later_rows(db):
    _bulk_movies(db, 6)

    seen = []
    for media in load_candidates(db, page_size=2):
        seen.append(media.tmdb_id)
        media.status = MediaStatus.DELETED
        db.commit()

    assert seen == [1000 + i for i in range(6)]


def test_empty_table_yields_nothing(db):
    assert list(load_candidate_pages(db)) == []
