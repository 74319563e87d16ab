import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from availsync.constants import Tier
from availsync.database import SessionLocal
from availsync.exceptions import ConfigError, MediaServerSessionError, SyncCancelled
from availsync.models.media import Media
from availsync.modules.sources.base import TransientFailure
from availsync.services.candidate_loader import load_candidates
from availsync.services.existence_resolver import ExistenceResolver, TierExistence
from availsync.services.run_context import RunContext, build_run_context
from availsync.services.settings import load_settings
from availsync.services.state_updater import downgrade_media, downgrade_seasons


logger = logging.getLogger(__name__)


class AvailabilitySync:
    """Downgrades media whose files disappeared from the arr instances and the media server"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal,
                 context_builder: Callable = build_run_context):
        self.session_factory = session_factory
        self.context_builder = context_builder

        self.running = False
        self.cancel_requested = False
        self.last_started: Optional[datetime] = None
        self.last_finished: Optional[datetime] = None
        self.last_result: Optional[str] = None
        self.last_processed = 0

    async def run(self):
        if self.running:
            logger.warning("Availability sync is already running")
            return

        self.running = True
        self.cancel_requested = False
        self.last_started = datetime.utcnow()
        self.last_result = "running"
        self.last_processed = 0

        db = self.session_factory()
        ctx: Optional[RunContext] = None
        try:
            logger.info("🔄 Starting availability sync...")

            ctx = self.context_builder(load_settings(db))
            await self._verify_media_server(ctx)

            resolver = ExistenceResolver(ctx)
            for media in load_candidates(db, ctx.page_size):
                if self.cancel_requested:
                    raise SyncCancelled("Job aborted")

                media_id = media.id
                try:
                    await self.process_media(db, media, ctx, resolver)
                except Exception as e:
                    db.rollback()
                    logger.error(f"❌ Failed to process media {media_id}: {e}", exc_info=True)
                self.last_processed += 1

            self.last_result = "completed"
            logger.info(f"✅ Availability sync complete ({self.last_processed} item(s) checked)")

        except SyncCancelled as e:
            self.last_result = "cancelled"
            logger.warning(f"Availability sync cancelled: {e}")
        except (ConfigError, MediaServerSessionError) as e:
            self.last_result = "aborted"
            logger.error(f"✗ Availability sync interrupted: {e}")
        except Exception as e:
            self.last_result = "failed"
            logger.error(f"❌ Failed to complete availability sync: {e}", exc_info=True)
        finally:
            if ctx is not None:
                await ctx.close()
            db.close()
            self.running = False
            self.cancel_requested = False
            self.last_finished = datetime.utcnow()

    def cancel(self) -> bool:
        """Stop after the item currently in flight; returns whether a run was active

        `running` stays set until the loop has actually exited, so no second
        run can start while the cancelled one is finishing its current item.
        """
        if not self.running:
            return False
        self.cancel_requested = True
        return True

    async def _verify_media_server(self, ctx: RunContext):
        if ctx.media_server is None:
            return
        result = await ctx.media_server.verify_session()
        if isinstance(result, TransientFailure):
            raise MediaServerSessionError(f"{ctx.media_server.name} session check failed: {result.error}")

    async def process_media(self, db: Session, media: Media, ctx: RunContext,
                            resolver: Optional[ExistenceResolver] = None):
        resolver = resolver or ExistenceResolver(ctx)
        tiers = [tier for tier in Tier if self._tier_in_scope(media, tier)]
        if not tiers:
            return

        results = await asyncio.gather(*(resolver.resolve(media, tier) for tier in tiers))
        for existence in results:
            self.apply(db, media, existence, ctx)

    @staticmethod
    def _tier_in_scope(media: Media, tier: Tier) -> bool:
        return media.is_available(tier) or bool(media.available_seasons(tier))

    def apply(self, db: Session, media: Media, existence: TierExistence, ctx: RunContext):
        tier = existence.tier
        exists = existence.exists(ctx.policy)

        if exists:
            logger.debug(
                f"The {tier.label} {media.kind_label} [TMDB ID {media.tmdb_id}] still exists. "
                f"Preventing removal."
            )

        if media.is_movie:
            if not exists and media.is_available(tier):
                downgrade_media(db, media, tier, ctx)
            return

        if not exists and (media.is_available(tier) or media.available_seasons(tier)):
            downgrade_media(db, media, tier, ctx)

        if not existence.seasons_reliable(ctx.policy):
            logger.debug(
                f"Season search prevented for the {tier.label} show [TMDB ID {media.tmdb_id}], "
                f"keeping its seasons"
            )
            return

        season_map = existence.merged_seasons(ctx.policy)
        if not all(season_map.values()):
            downgrade_seasons(db, media, season_map, tier, ctx)


availability_sync = AvailabilitySync()
