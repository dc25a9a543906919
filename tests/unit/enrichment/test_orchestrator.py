"""
Unit tests for EnrichmentOrchestrator.

Tests cover:
- Cache hit short-circuits generation
- Cache miss runs guide generation and image collection, then caches
- Guide failure → BaselineFallback with nothing cached
- Image/unexpected failures → BaselineFallback, never raised
- Cache write failure still returns the result
- Both tasks run concurrently
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from tarkovguide.api.models import Objective, Quest
from tarkovguide.enrichment.base import BaselineFallback, EnrichmentResult, Guide, ImageSet
from tarkovguide.enrichment.cache import QuestGuideCache
from tarkovguide.enrichment.images import ImageCollector
from tarkovguide.enrichment.orchestrator import (
    ENRICHMENT_ERROR,
    GUIDE_UNAVAILABLE,
    EnrichmentOrchestrator,
)


def _quest(quest_id: str = "q1") -> Quest:
    return Quest(
        id=quest_id,
        name="Checkpoint",
        objectives=[Objective(description="Locate the relay station")],
    )


def _guide() -> Guide:
    return Guide(overview="Go to Customs.", objectives=["Head to the relay."], raw="...")


@pytest.fixture
def cache():
    return QuestGuideCache()


@pytest.fixture
def guide_generator():
    generator = MagicMock()
    generator.generate = AsyncMock(return_value=_guide())
    return generator


@pytest.fixture
def image_collector():
    collector = MagicMock()
    collector.collect = AsyncMock(return_value=ImageSet(total_images=0))
    return collector


@pytest.fixture
def orchestrator(cache, guide_generator, image_collector):
    return EnrichmentOrchestrator(
        cache=cache,
        guide_generator=guide_generator,
        image_collector=image_collector,
    )


class TestEnrichSuccess:
    """Tests for the happy path."""

    @pytest.mark.asyncio
    async def test_returns_guide_and_images(self, orchestrator):
        outcome = await orchestrator.enrich(_quest())

        assert isinstance(outcome, EnrichmentResult)
        assert outcome.guide == _guide()
        assert outcome.images == ImageSet(total_images=0)

    @pytest.mark.asyncio
    async def test_result_is_cached(self, orchestrator, cache):
        quest = _quest()
        outcome = await orchestrator.enrich(quest)

        assert cache.get(quest.id, quest.objectives) is outcome

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, orchestrator, guide_generator, image_collector):
        quest = _quest()
        first = await orchestrator.enrich(quest)
        second = await orchestrator.enrich(quest)

        assert second is first
        guide_generator.generate.assert_awaited_once()
        image_collector.collect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_changed_objectives_regenerate(self, orchestrator, guide_generator):
        await orchestrator.enrich(_quest())
        edited = Quest(
            id="q1",
            name="Checkpoint",
            objectives=[Objective(description="Locate the relay station and survive")],
        )
        await orchestrator.enrich(edited)

        assert guide_generator.generate.await_count == 2

    @pytest.mark.asyncio
    async def test_malformed_wiki_link_keeps_generated_guide(self, cache, guide_generator):
        orchestrator = EnrichmentOrchestrator(
            cache=cache,
            guide_generator=guide_generator,
            image_collector=ImageCollector(),
        )
        quest = Quest(
            id="q1",
            name="Checkpoint",
            wiki_link="https://escapefromtarkov.fandom.com/wiki/Check\x00point",
            objectives=[Objective(description="Locate the relay station")],
        )

        outcome = await orchestrator.enrich(quest)

        assert isinstance(outcome, EnrichmentResult)
        assert outcome.guide == _guide()
        assert outcome.images.wiki_images == ()

    @pytest.mark.asyncio
    async def test_tasks_run_concurrently(self, cache):
        """Image collection starts before guide generation finishes."""
        images_started = asyncio.Event()

        async def generate(quest):
            await asyncio.wait_for(images_started.wait(), timeout=1)
            return _guide()

        async def collect(quest):
            images_started.set()
            return ImageSet()

        generator, collector = MagicMock(), MagicMock()
        generator.generate = generate
        collector.collect = collect
        orchestrator = EnrichmentOrchestrator(cache, generator, collector)

        outcome = await orchestrator.enrich(_quest())

        assert isinstance(outcome, EnrichmentResult)


class TestEnrichFallback:
    """Tests for degraded outcomes."""

    @pytest.mark.asyncio
    async def test_guide_failure_returns_fallback_without_caching(
        self, orchestrator, guide_generator, cache
    ):
        guide_generator.generate.return_value = None

        outcome = await orchestrator.enrich(_quest())

        assert outcome == BaselineFallback(reason=GUIDE_UNAVAILABLE)
        assert cache.stats()["entry_count"] == 0

    @pytest.mark.asyncio
    async def test_failed_guide_retried_on_next_request(self, orchestrator, guide_generator):
        guide_generator.generate.return_value = None
        await orchestrator.enrich(_quest())

        guide_generator.generate.return_value = _guide()
        outcome = await orchestrator.enrich(_quest())

        assert isinstance(outcome, EnrichmentResult)
        assert guide_generator.generate.await_count == 2

    @pytest.mark.asyncio
    async def test_image_exception_returns_fallback(self, orchestrator, image_collector, cache):
        image_collector.collect.side_effect = RuntimeError("collector crashed")

        outcome = await orchestrator.enrich(_quest())

        assert outcome == BaselineFallback(reason=ENRICHMENT_ERROR)
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_guide_exception_returns_fallback(self, orchestrator, guide_generator):
        guide_generator.generate.side_effect = RuntimeError("unexpected")

        outcome = await orchestrator.enrich(_quest())

        assert isinstance(outcome, BaselineFallback)

    @pytest.mark.asyncio
    async def test_cache_write_failure_still_returns_result(self, guide_generator, image_collector):
        cache = MagicMock()
        cache.get.return_value = None
        cache.set.return_value = False
        orchestrator = EnrichmentOrchestrator(cache, guide_generator, image_collector)

        outcome = await orchestrator.enrich(_quest())

        assert isinstance(outcome, EnrichmentResult)
        cache.set.assert_called_once()

    @pytest.mark.asyncio
    async def test_full_cache_still_returns_result(self, guide_generator, image_collector):
        cache = QuestGuideCache(max_entries=1)
        orchestrator = EnrichmentOrchestrator(cache, guide_generator, image_collector)
        await orchestrator.enrich(_quest("q1"))

        outcome = await orchestrator.enrich(_quest("q2"))

        assert isinstance(outcome, EnrichmentResult)
        assert len(cache) == 1
