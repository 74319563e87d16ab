"""
Asks the arr instances and the media server whether one tier of a media item
still exists, and which of its locally available seasons do.

Each source answers with Value / NotFound / TransientFailure. Only NotFound is
taken as proof of absence; a failing source counts as "still there" and blocks
season level removals for the item and tier.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

from availsync.constants import ALT_TIER_MIN_WIDTH, ExistencePolicy, Tier
from availsync.models.media import Media
from availsync.modules.sources.base import NotFound, TransientFailure, Value
from availsync.services.run_context import RunContext


logger = logging.getLogger(__name__)


@dataclass
class TierExistence:
    tier: Tier
    # season number -> False for every locally available season of the tier
    seeded: Dict[int, bool] = field(default_factory=dict)

    confirmed_in_arr: bool = False
    confirmed_in_media_server: bool = False
    media_server_consulted: bool = False

    arr_seasons: Dict[int, bool] = field(default_factory=dict)
    media_server_seasons: Dict[int, bool] = field(default_factory=dict)
    arr_seasons_checked: bool = True
    media_server_seasons_checked: bool = True

    def seeded_seasons(self) -> Dict[int, bool]:
        return dict(self.seeded)

    def exists(self, policy: ExistencePolicy) -> bool:
        if policy is ExistencePolicy.ARR_PRIORITY:
            return self.confirmed_in_arr
        return self.confirmed_in_arr or self.confirmed_in_media_server

    def seasons_reliable(self, policy: ExistencePolicy) -> bool:
        """False when a consulted source could not be searched for seasons"""
        if not self.arr_seasons_checked:
            return False
        if policy is ExistencePolicy.ANY_SOURCE and self.media_server_consulted:
            return self.media_server_seasons_checked
        return True

    def merged_seasons(self, policy: ExistencePolicy) -> Dict[int, bool]:
        merged = self.seeded_seasons()
        if policy is ExistencePolicy.ANY_SOURCE:
            for number, present in self.media_server_seasons.items():
                merged[number] = present
        # Arr season hits also rescue seasons the media server reported missing
        for number, present in self.arr_seasons.items():
            if not merged.get(number):
                merged[number] = present
        return merged


class ExistenceResolver:

    def __init__(self, ctx: RunContext):
        self.ctx = ctx

    async def resolve(self, media: Media, tier: Tier) -> TierExistence:
        existence = TierExistence(tier=tier)
        if media.is_show:
            existence.seeded = {s.season_number: False for s in media.available_seasons(tier)}

        checks = [self._check_arr(media, existence)]
        if self.ctx.consults_media_server:
            existence.media_server_consulted = True
            checks.append(self._check_media_server(media, existence))
        await asyncio.gather(*checks)
        return existence

    async def _check_arr(self, media: Media, existence: TierExistence):
        if media.is_movie:
            existence.confirmed_in_arr = await self.movie_exists_in_radarr(media, existence.tier)
            return
        confirmed, seasons, checked = await self.show_exists_in_sonarr(media, existence.tier)
        existence.confirmed_in_arr = confirmed
        existence.arr_seasons = seasons
        existence.arr_seasons_checked = checked

    async def _check_media_server(self, media: Media, existence: TierExistence):
        confirmed, seasons, checked = await self.media_exists_in_media_server(media, existence.tier)
        existence.confirmed_in_media_server = confirmed
        existence.media_server_seasons = seasons
        existence.media_server_seasons_checked = checked

    # Radarr

    async def movie_exists_in_radarr(self, media: Media, tier: Tier) -> bool:
        movie_id = media.arr_id_for(tier)
        if movie_id is None:
            return False

        exists = False
        for client in self.ctx.radarr_for(tier):
            result = await client.get_movie(movie_id)

            if isinstance(result, TransientFailure):
                logger.debug(
                    f"Failure retrieving the {tier.label} movie [TMDB ID {media.tmdb_id}] "
                    f"from Radarr '{client.name}': {result.error}"
                )
                exists = True
                continue
            if isinstance(result, NotFound):
                continue

            movie = result.value
            if not movie.has_file:
                continue
            width = movie.width
            is_alt_file = width is not None and width >= ALT_TIER_MIN_WIDTH
            if is_alt_file == (tier is Tier.ALT):
                exists = True

        return exists

    # Sonarr

    async def show_exists_in_sonarr(self, media: Media, tier: Tier) -> Tuple[bool, Dict[int, bool], bool]:
        """Returns (exists, {season: True}, seasons_checked)"""
        series_id = media.arr_id_for(tier)
        if series_id is None:
            return False, {}, True

        exists = False
        prevent_season_search = False
        clients = self.ctx.sonarr_for(tier)

        for client in clients:
            cache_key = (client.instance_id, series_id)
            series = self.ctx.sonarr_series.get(cache_key)

            if series is None:
                result = await client.get_series_by_id(series_id)
                if isinstance(result, TransientFailure):
                    logger.debug(
                        f"Failure retrieving the {tier.label} show [TMDB ID {media.tmdb_id}] "
                        f"from Sonarr '{client.name}': {result.error}"
                    )
                    exists = True
                    prevent_season_search = True
                    continue
                if isinstance(result, NotFound):
                    continue
                series = result.value
                self.ctx.sonarr_series[cache_key] = series

            if series.episode_file_count > 0:
                exists = True

        seasons: Dict[int, bool] = {}
        if not prevent_season_search:
            for season in media.available_seasons(tier):
                if self.season_exists_in_sonarr(series_id, season.season_number, tier):
                    seasons[season.season_number] = True

        return exists, seasons, not prevent_season_search

    def season_exists_in_sonarr(self, series_id: int, season_number: int, tier: Tier) -> bool:
        for client in self.ctx.sonarr_for(tier):
            series = self.ctx.sonarr_series.get((client.instance_id, series_id))
            if series is None:
                continue
            for season in series.seasons:
                if season.season_number == season_number and season.episode_file_count > 0:
                    return True
        return False

    # Media server

    async def media_exists_in_media_server(self, media: Media, tier: Tier) -> Tuple[bool, Dict[int, bool], bool]:
        """Returns (exists, {season: True}, seasons_checked)"""
        server = self.ctx.media_server
        key = media.media_server_key_for(tier, self.ctx.server_type)
        if server is None or not key:
            return False, {}, True

        exists = False
        prevent_season_search = False

        result = await server.get_item(key)
        if isinstance(result, TransientFailure):
            logger.debug(
                f"Failure retrieving the {tier.label} {media.kind_label} [TMDB ID {media.tmdb_id}] "
                f"from {server.name}: {result.error}"
            )
            exists = True
            prevent_season_search = True
        elif isinstance(result, Value):
            exists = True
            if media.is_show and key not in self.ctx.media_server_seasons:
                children = await server.get_seasons(key)
                if isinstance(children, TransientFailure):
                    logger.debug(f"Failure retrieving seasons of {key} from {server.name}: {children.error}")
                    prevent_season_search = True
                elif isinstance(children, Value):
                    self.ctx.media_server_seasons[key] = list(children.value)
                else:
                    self.ctx.media_server_seasons[key] = []

        seasons: Dict[int, bool] = {}
        if media.is_show and not prevent_season_search:
            present = self.ctx.media_server_seasons.get(key, [])
            for season in media.available_seasons(tier):
                if season.season_number in present:
                    seasons[season.season_number] = True

        return exists, seasons, not prevent_season_search
