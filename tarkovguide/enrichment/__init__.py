"""
Quest-guide enrichment pipeline.

Turns a Quest into an AI-written, objective-by-objective guide with
relevant images, cached by quest content and falling back to the baseline
quest view whenever generation fails.
"""

from tarkovguide.enrichment.base import (
    BaselineFallback,
    EnrichmentResult,
    Guide,
    ImageKind,
    ImageRef,
    ImageSet,
    ImageSource,
    ScoredImageRef,
    quest_fingerprint,
)
from tarkovguide.enrichment.cache import QuestGuideCache
from tarkovguide.enrichment.components import EnrichmentComponents
from tarkovguide.enrichment.guide import GuideGenerator, GuideSegmenter
from tarkovguide.enrichment.images import ImageCollector, calculate_relevance, match_image
from tarkovguide.enrichment.orchestrator import EnrichmentOrchestrator

__all__ = [
    "BaselineFallback",
    "EnrichmentComponents",
    "EnrichmentOrchestrator",
    "EnrichmentResult",
    "Guide",
    "GuideGenerator",
    "GuideSegmenter",
    "ImageCollector",
    "ImageKind",
    "ImageRef",
    "ImageSet",
    "ImageSource",
    "QuestGuideCache",
    "ScoredImageRef",
    "calculate_relevance",
    "match_image",
    "quest_fingerprint",
]
