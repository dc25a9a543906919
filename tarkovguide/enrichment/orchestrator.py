"""
Enrichment Orchestrator — the façade of the quest-guide pipeline.

Per request:

    cache lookup ──hit──▶ return cached result (no generation)
         │
        miss
         ▼
    GuideGenerator.generate(quest)  ∥  ImageCollector.collect(quest)
         │                                   (two tasks, one join point)
         ▼
    guide is None?  ──yes──▶ BaselineFallback (nothing cached)
         │
         no
         ▼
    cache write (best effort) ──▶ return EnrichmentResult

The two tasks read the same frozen Quest and produce disjoint outputs, so
they share no mutable state. Nothing raises past ``enrich()``: any
unexpected error becomes a BaselineFallback and the caller renders the
plain quest view.
"""

from __future__ import annotations

import asyncio

from tarkovguide.api.models import Quest
from tarkovguide.config.logging import get_logger
from tarkovguide.enrichment.base import BaselineFallback, EnrichmentResult
from tarkovguide.enrichment.cache import QuestGuideCache
from tarkovguide.enrichment.guide import GuideGenerator
from tarkovguide.enrichment.images import ImageCollector

logger = get_logger(__name__)

GUIDE_UNAVAILABLE = "guide_generation_failed"
ENRICHMENT_ERROR = "enrichment_error"


class EnrichmentOrchestrator:
    """
    Produces cached, AI-enriched quest guides.

    The cache is passed in rather than created here so one store can be
    shared by every request for the process lifetime.

    Args:
        cache: Content cache shared across requests
        guide_generator: Produces the segmented LLM guide
        image_collector: Produces the quest's ImageSet

    Example:
        >>> outcome = await orchestrator.enrich(quest)
        >>> if isinstance(outcome, BaselineFallback):
        ...     embeds = [create_quest_embed(quest)]
        ... else:
        ...     embeds = create_enhanced_embeds(quest, outcome)
    """

    def __init__(
        self,
        cache: QuestGuideCache,
        guide_generator: GuideGenerator,
        image_collector: ImageCollector,
    ):
        self.cache = cache
        self.guide_generator = guide_generator
        self.image_collector = image_collector

    async def enrich(self, quest: Quest) -> EnrichmentResult | BaselineFallback:
        """
        Return the enrichment for ``quest``, from cache when possible.

        Returns:
            EnrichmentResult, or BaselineFallback when the guide couldn't be
            generated or anything unexpected went wrong
        """
        cached = self.cache.get(quest.id, quest.objectives)
        if cached is not None:
            logger.info(f"Using cached guide for {quest.name!r}")
            return cached

        try:
            return await self._enrich_uncached(quest)
        except Exception as e:
            logger.exception(f"Enrichment failed for {quest.name!r}, falling back: {e}")
            return BaselineFallback(reason=ENRICHMENT_ERROR)

    async def _enrich_uncached(self, quest: Quest) -> EnrichmentResult | BaselineFallback:
        logger.info(f"Cache miss for {quest.name!r} - generating guide and fetching images")

        guide_task = asyncio.create_task(self.guide_generator.generate(quest))
        images_task = asyncio.create_task(self.image_collector.collect(quest))

        # Join point: wait for both regardless of completion order or failure
        guide, images = await asyncio.gather(guide_task, images_task, return_exceptions=True)

        if isinstance(guide, BaseException):
            raise guide
        if isinstance(images, BaseException):
            raise images

        if guide is None:
            logger.warning(f"Guide generation failed for {quest.name!r}; using baseline view")
            return BaselineFallback(reason=GUIDE_UNAVAILABLE)

        result = EnrichmentResult(guide=guide, images=images)
        if not self.cache.set(quest.id, quest.objectives, result):
            logger.warning(f"Could not cache guide for {quest.name!r}; continuing uncached")
        return result
