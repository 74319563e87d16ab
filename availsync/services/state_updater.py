"""
Persists availability downgrades for one tier of a media item
"""
import logging
from datetime import datetime
from typing import Dict

from sqlalchemy.orm import Session

from availsync.constants import ExistencePolicy, MediaRequestStatus, MediaStatus, Tier
from availsync.models.media import Media
from availsync.models.media_request import MediaRequest
from availsync.services.run_context import RunContext


logger = logging.getLogger(__name__)


def has_inflight_request(db: Session, media_id: int, tier: Tier) -> bool:
    """An approved request of the same tier is still being processed"""
    request = db.query(MediaRequest).filter(
        MediaRequest.media_id == media_id,
        MediaRequest.is_alt == (tier is Tier.ALT),
        MediaRequest.status == MediaRequestStatus.APPROVED,
    ).first()
    return request is not None


def downgrade_media(db: Session, media: Media, tier: Tier, ctx: RunContext) -> bool:
    """Mark one tier as gone and drop its linkage unless a request still needs it"""
    removal = ctx.policy.removal_status
    kind = media.kind_label
    tmdb_id = media.tmdb_id
    sources = ctx.searched_sources(media.is_movie)

    try:
        keep_linkage = (
            ctx.policy is ExistencePolicy.ANY_SOURCE
            and has_inflight_request(db, media.id, tier)
        )

        media.set_status(tier, removal)
        if not keep_linkage:
            media.clear_linkage(tier, ctx.server_type)

        db.add(media)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning(f"✗ Failure updating the {tier.label} {kind} [TMDB ID {tmdb_id}]: {e}")
        return False

    logger.info(
        f"The {tier.label} {kind} [TMDB ID {tmdb_id}] was not found in {sources}. "
        f"Status changed to {removal.name.lower()}."
        + (" Linkage kept for an approved request." if keep_linkage else "")
    )
    return True


def downgrade_seasons(db: Session, media: Media, season_map: Dict[int, bool], tier: Tier, ctx: RunContext) -> bool:
    """Remove every season mapped to False on one tier"""
    missing = sorted(number for number, present in season_map.items() if not present)
    if not missing:
        return False

    removal = ctx.policy.removal_status
    tmdb_id = media.tmdb_id
    sources = ctx.searched_sources(is_movie=False)

    try:
        changed = []
        for season in media.seasons:
            if season.season_number in missing and season.is_available(tier):
                season.set_status(tier, removal)
                changed.append(season.season_number)

        if not changed:
            return False

        if media.status_for(tier) == MediaStatus.AVAILABLE:
            media.set_status(tier, MediaStatus.PARTIALLY_AVAILABLE)
            logger.info(
                f"Marking the {tier.label} show [TMDB ID {tmdb_id}] as partially available "
                f"because season removal has occurred."
            )

        media.last_season_change = datetime.utcnow()
        db.add(media)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning(f"✗ Failure updating seasons of the {tier.label} show [TMDB ID {tmdb_id}]: {e}")
        return False

    season_list = ", ".join(str(n) for n in changed)
    logger.info(
        f"Removing season(s) {season_list} of the {tier.label} show [TMDB ID {tmdb_id}], "
        f"not found in {sources}. Status changed to {removal.name.lower()}."
    )
    return True
