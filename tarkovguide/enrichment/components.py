"""
Enrichment component factory.

Centralises the construction of the enrichment pipeline from settings so
the bot, the CLI and tests wire it the same way.
"""

from __future__ import annotations

import httpx

from tarkovguide.config.settings import EnrichmentSettings, LLMSettings
from tarkovguide.enrichment.cache import QuestGuideCache
from tarkovguide.enrichment.guide import GuideGenerator
from tarkovguide.enrichment.images import ImageCollector
from tarkovguide.enrichment.orchestrator import EnrichmentOrchestrator
from tarkovguide.llm.client import LiteLLMTextModel, TextModel


class EnrichmentComponents:
    """
    Factory for building enrichment components from settings.

    Example::

        factory = EnrichmentComponents(settings.enrichment, settings.llm)
        orchestrator = factory.create_orchestrator()
        outcome = await orchestrator.enrich(quest)
    """

    def __init__(self, settings: EnrichmentSettings, llm_settings: LLMSettings):
        self.settings = settings
        self.llm_settings = llm_settings

    def create_cache(self) -> QuestGuideCache:
        """Create an empty QuestGuideCache from settings."""
        return QuestGuideCache(
            default_ttl=self.settings.cache_ttl_seconds,
            max_entries=self.settings.cache_max_entries,
            check_period=self.settings.cache_check_period_seconds,
        )

    def create_text_model(self) -> LiteLLMTextModel:
        return LiteLLMTextModel(self.llm_settings)

    def create_guide_generator(self, model: TextModel | None = None) -> GuideGenerator:
        """Create a GuideGenerator (LiteLLM-backed unless a model is given)."""
        return GuideGenerator(
            model=model if model is not None else self.create_text_model(),
            max_attempts=self.settings.max_attempts,
            retry_delay=self.settings.retry_delay_seconds,
        )

    def create_image_collector(self, client: httpx.AsyncClient | None = None) -> ImageCollector:
        """Create an ImageCollector; pass a shared httpx client to reuse connections."""
        return ImageCollector(
            timeout=self.settings.scrape_timeout_seconds,
            min_image_size=self.settings.min_image_size,
            relevance_threshold=self.settings.relevance_threshold,
            max_wiki_images=self.settings.max_wiki_images,
            user_agent=self.settings.user_agent,
            client=client,
        )

    def create_orchestrator(
        self,
        cache: QuestGuideCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> EnrichmentOrchestrator:
        """Wire a full EnrichmentOrchestrator; a fresh cache is created if none is given."""
        return EnrichmentOrchestrator(
            cache=cache if cache is not None else self.create_cache(),
            guide_generator=self.create_guide_generator(),
            image_collector=self.create_image_collector(client),
        )
