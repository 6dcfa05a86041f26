import asyncio
import random

import pytest

from app.core.config import settings
from app.core.exceptions import TransportError, UpstreamRejection
from app.services.recommendation.aggregator import RecommendationAggregator
from app.services.recommendation.utils import dedupe_videos, fisher_yates_shuffle, paginate
from tests.conftest import FakeYouTube, make_video, make_videos


class IdentityRandom(random.Random):
    """Random source whose Fisher-Yates shuffle leaves the order untouched."""

    def randint(self, a, b):
        return b


def make_aggregator(youtube, resolver, rng=None):
    return RecommendationAggregator(youtube, resolver=resolver, delay=0, rng=rng or random.Random(7))


async def test_single_category_scenario(resolver):
    youtube = FakeYouTube(charts={"20": make_videos("g", 40)})
    result = await make_aggregator(youtube, resolver).get_recommended_popular(["gaming"], "it", 12, 0)

    assert len(youtube.chart_calls) == 1
    call = youtube.chart_calls[0]
    assert call["category_id"] == "20"
    assert call["max_results"] == 32
    assert call["region_code"] == "IT"
    assert youtube.keyword_calls == []
    assert len(result.videos) == 12
    assert result.hasMore is True


async def test_budget_is_split_across_sources(resolver):
    youtube = FakeYouTube(charts={"20": make_videos("g", 5)}, keywords={"personal finance": make_videos("f", 5)})
    await make_aggregator(youtube, resolver).get_recommended_popular(["gaming", "finance"], "en", 12, 10)

    # ceil((12 + 10 + 20) / 2) == 21
    assert youtube.chart_calls[0]["max_results"] == 21
    assert youtube.keyword_calls == [
        {"keywords": ["personal finance", "investing"], "per_keyword_max": 21, "region_code": "EN"}
    ]


async def test_fallback_uses_overall_chart(resolver):
    popular = make_videos("p", 20)
    youtube = FakeYouTube(charts={None: popular}, next_page_token="NEXT")
    result = await make_aggregator(youtube, resolver).get_recommended_popular(["knitting", "origami"], "it", 12, 0)

    assert len(youtube.chart_calls) == 1
    assert youtube.chart_calls[0]["category_id"] is None
    assert result.videos == popular[:12]
    assert result.hasMore is True


async def test_fallback_without_next_page(resolver):
    youtube = FakeYouTube(charts={None: make_videos("p", 3)})
    result = await make_aggregator(youtube, resolver).get_recommended_popular([], "it", 12, 0)
    assert [v.videoId for v in result.videos] == ["p0", "p1", "p2"]
    assert result.hasMore is False


async def test_fallback_failure_propagates(resolver):
    youtube = FakeYouTube(chart_errors={None: UpstreamRejection("boom", status_code=403, reason="quotaExceeded")})
    with pytest.raises(UpstreamRejection):
        await make_aggregator(youtube, resolver).get_recommended_popular(["knitting"], "it", 12, 0)


async def test_results_are_deduplicated(resolver):
    shared = make_videos("s", 10)
    youtube = FakeYouTube(
        charts={"20": shared + make_videos("g", 5), "10": shared + make_videos("m", 5)},
        keywords={"personal finance": shared[:5] + [make_video("s0", title="Renamed")]},
    )
    result = await make_aggregator(youtube, resolver).get_recommended_popular(
        ["gaming", "music", "finance"], "it", 50, 0
    )
    ids = [v.videoId for v in result.videos]
    assert len(ids) == len(set(ids))
    assert len(ids) == 20
    assert result.hasMore is False


async def test_one_failing_source_is_tolerated(resolver):
    youtube = FakeYouTube(
        charts={"20": make_videos("g", 10), "10": make_videos("m", 10)},
        chart_errors={"10": TransportError("down")},
    )
    result = await make_aggregator(youtube, resolver).get_recommended_popular(["gaming", "music"], "it", 30, 0)

    assert len(youtube.chart_calls) == 2
    assert {v.videoId for v in result.videos} == {f"g{i}" for i in range(10)}
    assert result.hasMore is False


async def test_all_sources_failing_yields_empty_page(resolver):
    youtube = FakeYouTube(
        chart_errors={"20": TransportError("down")},
        keyword_errors={"personal finance": UpstreamRejection("nope", status_code=500)},
    )
    result = await make_aggregator(youtube, resolver).get_recommended_popular(["gaming", "finance"], "it", 12, 0)
    assert result.videos == []
    assert result.hasMore is False


async def test_pagination_slice_over_fixed_order(resolver):
    pool = make_videos("v", 30)
    youtube = FakeYouTube(charts={"20": pool})
    aggregator = make_aggregator(youtube, resolver, rng=IdentityRandom())

    page = await aggregator.get_recommended_popular(["gaming"], "it", 12, 10)
    assert page.videos == pool[10:22]
    assert page.hasMore is True

    page = await aggregator.get_recommended_popular(["gaming"], "it", 12, 25)
    assert page.videos == pool[25:30]
    assert page.hasMore is False


async def test_offset_past_pool_returns_empty(resolver):
    youtube = FakeYouTube(charts={"20": make_videos("g", 5)})
    result = await make_aggregator(youtube, resolver).get_recommended_popular(["gaming"], "it", 12, 40)
    assert result.videos == []
    assert result.hasMore is False


async def test_shuffle_order_depends_on_random_source(resolver):
    pool = make_videos("v", 30)
    first_agg = make_aggregator(FakeYouTube(charts={"20": pool}), resolver, rng=random.Random(1))
    second_agg = make_aggregator(FakeYouTube(charts={"20": pool}), resolver, rng=random.Random(2))
    first = await first_agg.get_recommended_popular(["gaming"], "it", 30, 0)
    second = await second_agg.get_recommended_popular(["gaming"], "it", 30, 0)
    assert {v.videoId for v in first.videos} == {v.videoId for v in second.videos}
    assert first.videos != second.videos


@pytest.mark.parametrize("max_results, offset", [(0, 0), (-1, 0), (12, -1)])
async def test_invalid_request_is_rejected(resolver, max_results, offset):
    with pytest.raises(ValueError):
        await make_aggregator(FakeYouTube(), resolver).get_recommended_popular(["gaming"], "it", max_results, offset)


async def test_cancel_between_sources_returns_partial(resolver):
    cancel = asyncio.Event()

    class CancellingYouTube(FakeYouTube):
        async def get_most_popular(self, max_results, region_code, page_token=None, category_id=None):
            page = await super().get_most_popular(max_results, region_code, page_token, category_id)
            cancel.set()
            return page

    youtube = CancellingYouTube(charts={"20": make_videos("g", 10), "10": make_videos("m", 10)})
    result = await make_aggregator(youtube, resolver).get_recommended_popular(
        ["gaming", "music"], "it", 30, 0, cancel_event=cancel
    )
    assert len(youtube.chart_calls) == 1
    assert {v.videoId for v in result.videos} == {f"g{i}" for i in range(10)}


async def test_cancel_aborts_inflight_fetch(resolver):
    cancel = asyncio.Event()
    started = asyncio.Event()

    class SlowYouTube(FakeYouTube):
        async def get_most_popular(self, max_results, region_code, page_token=None, category_id=None):
            if category_id == "10":
                started.set()
                await asyncio.sleep(30)
            return await super().get_most_popular(max_results, region_code, page_token, category_id)

    youtube = SlowYouTube(charts={"20": make_videos("g", 4), "10": make_videos("m", 4)})
    aggregator = make_aggregator(youtube, resolver)

    async def cancel_when_started():
        await started.wait()
        cancel.set()

    canceller = asyncio.create_task(cancel_when_started())
    result = await asyncio.wait_for(
        aggregator.get_recommended_popular(["gaming", "music"], "it", 12, 0, cancel_event=cancel), timeout=5
    )
    await canceller
    assert {v.videoId for v in result.videos} == {f"g{i}" for i in range(4)}


async def test_sources_are_separated_by_a_pause(resolver, sleep_log):
    class OrderedYouTube(FakeYouTube):
        async def get_most_popular(self, max_results, region_code, page_token=None, category_id=None):
            sleep_log.append(("chart", category_id))
            return await super().get_most_popular(max_results, region_code, page_token, category_id)

        async def search_popular_by_keywords(self, keywords, per_keyword_max, region_code, language=None):
            sleep_log.append(("keywords", keywords[0]))
            return await super().search_popular_by_keywords(keywords, per_keyword_max, region_code, language)

    youtube = OrderedYouTube(charts={"20": make_videos("g", 5), "10": make_videos("m", 5)})
    aggregator = RecommendationAggregator(youtube, resolver=resolver, delay=0.25, rng=random.Random(7))
    await aggregator.get_recommended_popular(["gaming", "music", "finance"], "it", 12, 0)

    assert sleep_log == [
        ("chart", "20"),
        ("sleep", 0.25),
        ("chart", "10"),
        ("sleep", 0.25),
        ("keywords", "personal finance"),
    ]


async def test_single_source_and_fallback_do_not_pause(resolver, sleep_log):
    youtube = FakeYouTube(charts={"20": make_videos("g", 5), None: make_videos("p", 5)})
    aggregator = RecommendationAggregator(youtube, resolver=resolver, delay=0.25, rng=random.Random(7))

    await aggregator.get_recommended_popular(["gaming"], "it", 12, 0)
    await aggregator.get_recommended_popular(["knitting"], "it", 12, 0)

    assert len(youtube.chart_calls) == 2
    assert sleep_log == []


def test_default_pause_comes_from_settings(resolver):
    aggregator = RecommendationAggregator(FakeYouTube(), resolver=resolver)
    assert aggregator.delay == settings.SOURCE_FETCH_DELAY_MS / 1000
    assert aggregator.delay >= 0.1


def test_dedupe_keeps_first_occurrence():
    videos = [make_video("a"), make_video("b"), make_video("a", title="Changed"), make_video("c")]
    unique = dedupe_videos(videos)
    assert [v.videoId for v in unique] == ["a", "b", "c"]
    assert unique[0].title == "Video a"


def test_fisher_yates_is_a_permutation(rng):
    items = list(range(50))
    shuffled = fisher_yates_shuffle(items, rng)
    assert sorted(shuffled) == items
    assert items == list(range(50))
    assert fisher_yates_shuffle([], rng) == []


def test_paginate_bounds():
    items = list(range(30))
    assert paginate(items, 10, 12) == (list(range(10, 22)), True)
    assert paginate(items, 25, 12) == (list(range(25, 30)), False)
    assert paginate(items, 18, 12) == (list(range(18, 30)), False)
