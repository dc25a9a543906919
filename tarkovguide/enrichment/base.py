"""
Data structures for the quest-guide enrichment pipeline.

- Guide: the segmented LLM guide (overview, per-objective text, tips, raw)
- ImageRef / ScoredImageRef: an image found for a quest, with provenance
- ImageSet: every image collected for a quest
- EnrichmentResult: guide + images, the unit the cache stores
- BaselineFallback: returned instead of a result when enrichment is unusable
- quest_fingerprint(): the content-addressed cache key

Everything here is frozen, collections included (tuples and read-only
mappings). Once a result is cached it is shared by every later request for
the same quest, so nobody may mutate it.
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class ImageSource(str, Enum):
    """Where an image reference came from."""

    API_STRUCTURED = "api-structured"
    WIKI_SCRAPED = "wiki-scraped"


class ImageKind(str, Enum):
    ICON = "icon"
    FULL_IMAGE = "full-image"


class ImageRef(BaseModel):
    """An image attached to a quest or one of its objectives."""

    url: str = Field(description="Absolute image URL")
    description: str = Field(default="", description="Short human-readable description")
    source: ImageSource
    kind: ImageKind = ImageKind.FULL_IMAGE

    model_config = ConfigDict(frozen=True)


class ScoredImageRef(ImageRef):
    """
    A scraped wiki image with its relevance to the quest.

    ``description`` holds the first 100 characters of the surrounding page
    text; ``alt`` and ``title`` are the raw element attributes.
    """

    relevance_score: float = Field(ge=0.0, le=1.0)
    alt: str = ""
    title: str = ""


class ImageSet(BaseModel):
    """
    All images collected for one quest.

    Example:
        >>> images.objective_images[0][0].url
        'https://assets.tarkov.dev/5c12613b86f7743bbe2c3f76-icon.webp'
        >>> images.total_images
        4
    """

    map_image: ImageRef | None = None
    objective_images: Mapping[int, tuple[ImageRef, ...]] = Field(
        default_factory=dict,
        validate_default=True,
        description="Structural (API-provided) images keyed by objective index",
    )
    wiki_images: tuple[ScoredImageRef, ...] = Field(
        default=(), description="Scraped images, best relevance first"
    )
    total_images: int = 0

    model_config = ConfigDict(frozen=True)

    @field_validator("objective_images", mode="after")
    @classmethod
    def _read_only_objective_images(cls, value: Mapping[int, tuple[ImageRef, ...]]):
        return MappingProxyType(dict(value))

    @field_serializer("objective_images")
    def _serialize_objective_images(self, value: Mapping[int, tuple[ImageRef, ...]]):
        return dict(value)


class Guide(BaseModel):
    """
    An LLM-generated quest guide split into sections.

    ``objectives`` has exactly one slot per quest objective (in quest order);
    a slot is "" when no guidance could be attributed to that objective.
    ``raw`` is the unmodified model output, kept for diagnostics.
    """

    overview: str = ""
    tips: str = ""
    objectives: tuple[str, ...] = ()
    raw: str = ""

    model_config = ConfigDict(frozen=True)


class EnrichmentResult(BaseModel):
    """A generated guide plus its images; what the content cache stores."""

    guide: Guide
    images: ImageSet

    model_config = ConfigDict(frozen=True)


class BaselineFallback(BaseModel):
    """
    Marker telling the caller to render the plain (non-AI) quest view.

    ``reason`` is for logs and footers, never a raw exception message meant
    for end users.
    """

    reason: str

    model_config = ConfigDict(frozen=True)


def _serialize_objective(objective: Any) -> Any:
    if isinstance(objective, BaseModel):
        return objective.model_dump(mode="json", by_alias=True)
    return objective


def quest_fingerprint(quest_id: str, objectives: Iterable[Any] | None) -> str:
    """
    Build the cache key for a quest.

    The key covers the quest id *and* the full objective list, so a quest
    whose objectives are edited upstream gets a fresh key even though its id
    is unchanged.

    Args:
        quest_id: Stable quest identifier
        objectives: Objective models or plain dicts, in quest order

    Returns:
        Key of the form ``quest:<id>:<16 hex chars>``
    """
    serialized = json.dumps(
        [_serialize_objective(o) for o in (objectives or [])],
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:16]
    return f"quest:{quest_id}:{digest}"
