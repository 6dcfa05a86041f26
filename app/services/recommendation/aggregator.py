import asyncio
import math
import random
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from app.core.config import settings
from app.core.exceptions import FetchError
from app.models.video import AggregationResult, SourceOutcome, Video
from app.services.recommendation.interests import InterestResolver
from app.services.recommendation.utils import dedupe_videos, fisher_yates_shuffle, paginate


class RecommendationAggregator:
    """
    Builds the "recommended" feed from a list of interests.

    Strategy:
    1. Resolve interests into chart categories and keyword-search interests
    2. Nothing resolved: return one page of the overall popular chart
    3. Otherwise fetch every source sequentially with a fixed pause between calls,
       each asking for ceil((max_results + offset + margin) / sources) videos
    4. Fold per-source outcomes, dropping failed sources
    5. Deduplicate by videoId, shuffle, and slice [offset, offset + max_results)

    The aggregator keeps no state between calls. The pause comes from
    SOURCE_FETCH_DELAY_MS; the `delay` argument is a test override and skips
    that setting's 100ms floor.
    """

    def __init__(
        self,
        youtube: Any,
        resolver: InterestResolver | None = None,
        delay: float | None = None,
        overfetch_margin: int | None = None,
        rng: random.Random | None = None,
    ):
        self.youtube = youtube
        self.resolver = resolver or InterestResolver()
        self.delay = delay if delay is not None else settings.SOURCE_FETCH_DELAY_MS / 1000
        self.overfetch_margin = overfetch_margin if overfetch_margin is not None else settings.OVERFETCH_MARGIN
        self.rng = rng

    async def get_recommended_popular(
        self,
        interests: list[str],
        language: str,
        max_results: int,
        offset: int = 0,
        cancel_event: asyncio.Event | None = None,
    ) -> AggregationResult:
        if max_results <= 0:
            raise ValueError("max_results must be greater than 0")
        if offset < 0:
            raise ValueError("offset must not be negative")

        region_code = language.upper()
        resolved = self.resolver.resolve(interests)

        if resolved.is_empty:
            logger.info(f"No interest resolved from {len(interests)} input(s); using overall popular chart")
            page = await self.youtube.get_most_popular(max_results, region_code)
            return AggregationResult(videos=page.videos[:max_results], hasMore=page.nextPageToken is not None)

        total_to_fetch = max_results + offset + self.overfetch_margin
        per_source = math.ceil(total_to_fetch / resolved.source_count)
        logger.info(
            f"Aggregating {resolved.source_count} source(s) for region {region_code}: "
            f"categories={resolved.categoryTokens} search={resolved.searchInterests} per_source={per_source}"
        )

        sources: list[tuple[str, Callable[[], Awaitable[list[Video]]]]] = []
        for category in resolved.categoryTokens:
            sources.append((f"category={category}", self._chart_fetch(category, per_source, region_code)))
        for interest in resolved.searchInterests:
            keywords = self.resolver.keywords_for(interest)
            sources.append(
                (f"keywords={interest}", self._keyword_fetch(keywords, per_source, region_code, language.lower()))
            )

        outcomes = await self._collect(sources, cancel_event)
        pool = self._fold(outcomes)

        unique = dedupe_videos(pool)
        shuffled = fisher_yates_shuffle(unique, self.rng)
        videos, has_more = paginate(shuffled, offset, max_results)
        logger.debug(f"Pool: {len(pool)} fetched, {len(unique)} unique, returning {len(videos)} (has_more={has_more})")
        return AggregationResult(videos=videos, hasMore=has_more)

    def _chart_fetch(self, category: str, count: int, region_code: str) -> Callable[[], Awaitable[list[Video]]]:
        async def fetch() -> list[Video]:
            page = await self.youtube.get_most_popular(count, region_code, category_id=category)
            return page.videos

        return fetch

    def _keyword_fetch(
        self, keywords: list[str], count: int, region_code: str, language: str
    ) -> Callable[[], Awaitable[list[Video]]]:
        async def fetch() -> list[Video]:
            return await self.youtube.search_popular_by_keywords(keywords, count, region_code, language=language)

        return fetch

    async def _collect(
        self,
        sources: list[tuple[str, Callable[[], Awaitable[list[Video]]]]],
        cancel_event: asyncio.Event | None,
    ) -> list[SourceOutcome]:
        """Run sources one after another, stopping early if cancelled."""
        outcomes: list[SourceOutcome] = []
        for index, (source, fetch) in enumerate(sources):
            if index > 0 and not await self._pause(cancel_event):
                break
            if cancel_event is not None and cancel_event.is_set():
                break
            outcome = await self._run_source(source, fetch, cancel_event)
            if outcome is None:
                break
            outcomes.append(outcome)

        if len(outcomes) < len(sources):
            logger.info(f"Aggregation cancelled after {len(outcomes)}/{len(sources)} source(s)")
        return outcomes

    async def _pause(self, cancel_event: asyncio.Event | None) -> bool:
        """Wait the inter-call delay. Returns False when cancelled meanwhile."""
        if cancel_event is None:
            await asyncio.sleep(self.delay)
            return True
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def _run_source(
        self,
        source: str,
        fetch: Callable[[], Awaitable[list[Video]]],
        cancel_event: asyncio.Event | None,
    ) -> SourceOutcome | None:
        """Run a single source fetch. Returns None if cancelled before it finished."""
        task = asyncio.ensure_future(fetch())
        try:
            if cancel_event is not None:
                waiter = asyncio.ensure_future(cancel_event.wait())
                try:
                    await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
                finally:
                    waiter.cancel()
                if not task.done():
                    task.cancel()
                    await asyncio.gather(task, return_exceptions=True)
                    logger.debug(f"Source {source} cancelled")
                    return None
            videos = await task
        except FetchError as e:
            logger.warning(f"Source {source} failed: {type(e).__name__}: {e}")
            return SourceOutcome(source=source, error=e)
        except asyncio.CancelledError:
            task.cancel()
            raise
        return SourceOutcome(source=source, videos=videos)

    @staticmethod
    def _fold(outcomes: list[SourceOutcome]) -> list[Video]:
        pool: list[Video] = []
        failed = []
        for outcome in outcomes:
            if outcome.ok:
                pool.extend(outcome.videos)
            else:
                failed.append(outcome.source)
        if failed:
            logger.warning(f"{len(failed)}/{len(outcomes)} source(s) contributed nothing: {failed}")
        return pool
