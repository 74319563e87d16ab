"""
Pages through every media row that is (partially) available on any tier
"""
import logging
from typing import Iterator, List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from availsync.constants import AVAILABLE_STATUSES, DEFAULT_PAGE_SIZE
from availsync.models.media import Media
from availsync.models.season import Season


logger = logging.getLogger(__name__)


def candidate_filter():
    statuses = [int(s) for s in AVAILABLE_STATUSES]
    return or_(
        Media.status.in_(statuses),
        Media.status_alt.in_(statuses),
        Media.seasons.any(or_(Season.status.in_(statuses), Season.status_alt.in_(statuses))),
    )


def load_page(db: Session, after_id: int = 0, page_size: int = DEFAULT_PAGE_SIZE) -> List[Media]:
    """One page of candidates with `Media.id > after_id`"""
    return (
        db.query(Media)
        .filter(Media.id > after_id, candidate_filter())
        .order_by(Media.id)
        .limit(page_size)
        .all()
    )


def load_candidate_pages(db: Session, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[List[Media]]:
    # Keyset on id: rows downgraded while we iterate cannot shift later rows out of the window
    last_id = 0
    page_number = 0
    while True:
        page = load_page(db, last_id, page_size)
        if not page:
            logger.debug(f"Candidate scan finished after {page_number} page(s)")
            return
        page_number += 1
        last_id = page[-1].id
        yield page


def load_candidates(db: Session, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[Media]:
    """Lazy, restartable sequence of candidates; each call starts from the beginning"""
    for page in load_candidate_pages(db, page_size):
        yield from page
