"""
Image collection for quest guides.

Two sources, in order of authority:

1. Structural images — icons and item renders referenced directly by the
   quest's objectives in the tarkov.dev data (marker items, required items,
   quest items). Always preferred when present.
2. Wiki images — scraped from the quest's wiki page and scored by how well
   the text around each image matches the quest (name, map, and the longer
   words of its objective descriptions).

Wiki pages are sparse in genuinely on-topic images, so the acceptance rule
favours recall: an image is kept if it scores above a low threshold OR looks
like a content image at all. Ranking then puts the relevant ones first.

Collection never raises: a slow, missing or malformed wiki page just means
no wiki images.
"""

from __future__ import annotations

import asyncio
import re
from typing import Iterable
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from tarkovguide.api.models import ItemRef, Objective, Quest
from tarkovguide.config.logging import get_logger
from tarkovguide.enrichment.base import (
    ImageKind,
    ImageRef,
    ImageSet,
    ImageSource,
    ScoredImageRef,
)

logger = get_logger(__name__)

# Block-level ancestors whose text is used as an image's context
_CONTEXT_CONTAINERS = ["p", "div", "td", "li", "table"]
_MIN_KEYWORD_LENGTH = 5
_OBJECTIVE_MATCH_THRESHOLD = 0.5
_PUNCTUATION = ".,;:!?()[]{}\"'“”‘’"


# ---------------------------------------------------------------------------
# Relevance scoring
# ---------------------------------------------------------------------------


def _long_words(text: str) -> list[str]:
    words = (word.strip(_PUNCTUATION) for word in text.split())
    return [w for w in words if len(w) >= _MIN_KEYWORD_LENGTH]


def _dedupe(keywords: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for keyword in keywords:
        folded = keyword.strip().lower()
        if folded and folded not in seen:
            seen.add(folded)
            unique.append(keyword.strip())
    return unique


def build_keywords(quest: Quest) -> list[str]:
    """Keywords for a quest: its name, its map, and long words from every objective."""
    keywords = [quest.name]
    if quest.map_name:
        keywords.append(quest.map_name)
    for objective in quest.objectives:
        keywords.extend(_long_words(objective.description))
    return _dedupe(keywords)


def objective_keywords(objective: Objective) -> list[str]:
    """Keywords for a single objective: the long words of its description."""
    return _dedupe(_long_words(objective.description))


def calculate_relevance(context: str | None, keywords: list[str]) -> float:
    """
    Score how well ``context`` matches ``keywords``.

    Each keyword found in the context (case-insensitive) earns 2 points for
    a whole-word match or 1 point for a substring-only match. The sum is
    normalized by ``2 * len(keywords)``.

    Returns:
        Score in [0, 1]; 0 when nothing matches

    Example:
        >>> calculate_relevance("Find the relay station near the checkpoint", ["relay", "checkpoint"])
        1.0
        >>> calculate_relevance("Go north", ["relay", "checkpoint"])
        0.0
    """
    if not context or not keywords:
        return 0.0

    context_lower = context.lower()
    score = 0
    for keyword in keywords:
        keyword_lower = keyword.lower()
        if not keyword_lower or keyword_lower not in context_lower:
            continue
        if re.search(rf"(?<!\w){re.escape(keyword_lower)}(?!\w)", context_lower):
            score += 2
        else:
            score += 1

    return score / (2 * len(keywords))


# ---------------------------------------------------------------------------
# Structural (API-provided) images
# ---------------------------------------------------------------------------


def _item_image(item: ItemRef) -> ImageRef | None:
    if item.image_link:
        return ImageRef(
            url=item.image_link,
            description=item.name,
            source=ImageSource.API_STRUCTURED,
            kind=ImageKind.FULL_IMAGE,
        )
    if item.icon_link:
        return ImageRef(
            url=item.icon_link,
            description=item.name,
            source=ImageSource.API_STRUCTURED,
            kind=ImageKind.ICON,
        )
    return None


def extract_structural_images(quest: Quest) -> tuple[ImageRef | None, dict[int, list[ImageRef]]]:
    """
    Collect images referenced directly by the quest data.

    Returns:
        (map image or None, {objective index: images in reference order})
    """
    map_image = None
    if quest.map and quest.map.image_link:
        map_image = ImageRef(
            url=quest.map.image_link,
            description=f"{quest.map.name} map",
            source=ImageSource.API_STRUCTURED,
            kind=ImageKind.FULL_IMAGE,
        )

    objective_images: dict[int, list[ImageRef]] = {}
    for index, objective in enumerate(quest.objectives):
        referenced = [objective.item, *objective.items, objective.marker_item, objective.quest_item]
        refs: list[ImageRef] = []
        seen_urls: set[str] = set()
        for item in referenced:
            if item is None:
                continue
            ref = _item_image(item)
            if ref is not None and ref.url not in seen_urls:
                seen_urls.add(ref.url)
                refs.append(ref)
        if refs:
            objective_images[index] = refs

    return map_image, objective_images


# ---------------------------------------------------------------------------
# Wiki scraping
# ---------------------------------------------------------------------------


def normalize_image_url(url: str | None, page_url: str) -> str | None:
    """
    Make an image URL absolute.

    Protocol-relative URLs get ``https:``; relative URLs are resolved against
    the page's origin. ``data:`` URIs can't be embedded and return None.
    """
    if not url:
        return None
    url = url.strip()
    if url.startswith("data:"):
        return None
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return "https:" + url

    parsed = urlparse(page_url)
    if not parsed.scheme or not parsed.netloc:
        logger.warning(f"Can't resolve relative image URL {url!r} against {page_url!r}")
        return None
    return urljoin(f"{parsed.scheme}://{parsed.netloc}/", url)


def _declared_size(value: str | None) -> int | None:
    if not value:
        return None
    match = re.match(r"\s*(\d+)", str(value))
    return int(match.group(1)) if match else None


def _is_ui_icon(src: str, alt: str) -> bool:
    src_lower = src.lower()
    return "icon" in alt.lower() or "/icon" in src_lower or "_icon" in src_lower


def _is_content_image(src: str) -> bool:
    return "advertisements" not in src and "/thumb/" not in src


class ImageCollector:
    """
    Collects structural and wiki images for a quest.

    Args:
        timeout: Hard limit in seconds for fetching the wiki page
        min_image_size: Images declaring a width or height below this are skipped
        relevance_threshold: Wiki images scoring above this are always accepted
        max_wiki_images: Number of wiki images kept (best first)
        user_agent: User-Agent header for the wiki request
        client: Optional shared httpx client; when None a client is created per fetch

    Example:
        >>> collector = ImageCollector()
        >>> images = await collector.collect(quest)
        >>> match_image(quest.objectives[0], 0, images)
        'https://assets.tarkov.dev/5991b51486f77447b112d44f-icon.webp'
    """

    def __init__(
        self,
        timeout: float = 5.0,
        min_image_size: int = 50,
        relevance_threshold: float = 0.1,
        max_wiki_images: int = 10,
        user_agent: str = "Mozilla/5.0 (compatible; TarkovGuide/0.1)",
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout = timeout
        self.min_image_size = min_image_size
        self.relevance_threshold = relevance_threshold
        self.max_wiki_images = max_wiki_images
        self.user_agent = user_agent
        self._client = client

    async def collect(self, quest: Quest) -> ImageSet:
        """Gather every image for ``quest``. Never raises."""
        try:
            map_image, objective_images = extract_structural_images(quest)
        except Exception as e:
            logger.warning(f"Structural image extraction failed for {quest.name!r}: {e}")
            map_image, objective_images = None, {}

        wiki_images: list[ScoredImageRef] = []
        if quest.wiki_link:
            wiki_images = await self.scrape_wiki_images(quest.wiki_link, quest)

        total = (
            (1 if map_image else 0)
            + sum(len(images) for images in objective_images.values())
            + len(wiki_images)
        )
        return ImageSet(
            map_image=map_image,
            objective_images=objective_images,
            wiki_images=wiki_images,
            total_images=total,
        )

    async def scrape_wiki_images(self, wiki_link: str, quest: Quest) -> list[ScoredImageRef]:
        """
        Fetch ``wiki_link`` and return its relevant images, best first.

        Any failure (timeout, HTTP error, malformed URL, bad markup) yields an
        empty list.
        """
        logger.info(f"Scraping images from wiki: {wiki_link}")
        try:
            html = await asyncio.wait_for(self._fetch_page(wiki_link), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Wiki scraping timed out after {self.timeout}s: {wiki_link}")
            return []
        except httpx.HTTPError as e:
            logger.warning(f"Wiki fetch failed for {wiki_link}: {e}")
            return []
        except Exception as e:
            # httpx.InvalidURL and UnicodeEncodeError are not HTTPErrors
            logger.warning(f"Could not fetch wiki page {wiki_link!r}: {e}")
            return []

        if html is None:
            return []

        try:
            images = self.parse_wiki_images(html, wiki_link, build_keywords(quest))
        except Exception as e:
            logger.warning(f"Error parsing wiki page {wiki_link}: {e}")
            return []

        logger.info(f"Scraped {len(images)} relevant images from wiki")
        if images:
            top = images[0]
            logger.debug(f"Top image: {top.url[:80]} (score: {top.relevance_score:.2f})")
        return images

    def parse_wiki_images(
        self,
        html: str,
        page_url: str,
        keywords: list[str],
    ) -> list[ScoredImageRef]:
        """
        Extract, filter, score and rank the ``<img>`` elements of a page.

        Args:
            html: Raw page markup
            page_url: URL the markup was fetched from (for resolving relative URLs)
            keywords: Quest keywords from build_keywords()

        Returns:
            At most ``max_wiki_images`` images, sorted by descending relevance
        """
        soup = BeautifulSoup(html, "html.parser")
        candidates: list[ScoredImageRef] = []
        seen_urls: set[str] = set()

        for element in soup.find_all("img"):
            src = element.get("src") or ""
            # Lazy-loading wikis put a data: placeholder in src and the real URL in data-src
            if (not src or src.startswith("data:")) and element.get("data-src"):
                src = element["data-src"]
            if not src:
                continue

            alt = element.get("alt") or ""
            title = element.get("title") or ""

            width = _declared_size(element.get("width"))
            height = _declared_size(element.get("height"))
            if (width is not None and width < self.min_image_size) or (
                height is not None and height < self.min_image_size
            ):
                continue

            if _is_ui_icon(src, alt):
                continue

            container = element.find_parent(_CONTEXT_CONTAINERS)
            context = container.get_text(" ", strip=True) if container else ""
            context = context or alt or title

            score = calculate_relevance(context, keywords)
            if not (score > self.relevance_threshold or _is_content_image(src)):
                continue

            url = normalize_image_url(src, page_url)
            if url is None or url in seen_urls:
                continue
            seen_urls.add(url)

            candidates.append(
                ScoredImageRef(
                    url=url,
                    description=context[:100],
                    source=ImageSource.WIKI_SCRAPED,
                    kind=ImageKind.FULL_IMAGE,
                    relevance_score=score,
                    alt=alt,
                    title=title,
                )
            )

        ranked = sorted(candidates, key=lambda image: image.relevance_score, reverse=True)
        return ranked[: self.max_wiki_images]

    async def _fetch_page(self, url: str) -> str | None:
        headers = {"User-Agent": self.user_agent}
        if self._client is not None:
            return await self._get(self._client, url, headers)
        async with httpx.AsyncClient(follow_redirects=True, timeout=self.timeout) as client:
            return await self._get(client, url, headers)

    @staticmethod
    async def _get(client: httpx.AsyncClient, url: str, headers: dict[str, str]) -> str | None:
        response = await client.get(url, headers=headers)
        if response.status_code != 200:
            logger.warning(f"Wiki fetch failed: HTTP {response.status_code} for {url}")
            return None
        return response.text


# ---------------------------------------------------------------------------
# Per-objective matching
# ---------------------------------------------------------------------------


def match_image(objective: Objective, index: int, images: ImageSet) -> str | None:
    """
    Pick the best image URL for one objective.

    Preference order:
        1. structural full image for this objective
        2. structural icon for this objective
        3. the wiki image whose description/alt/title best matches the
           objective's keywords, if that match scores above 0.5
        4. the top-ranked wiki image
        5. None

    Args:
        objective: The quest objective
        index: Its position in the quest's objective list
        images: Images collected for the quest
    """
    structural = images.objective_images.get(index, ())
    for kind in (ImageKind.FULL_IMAGE, ImageKind.ICON):
        for ref in structural:
            if ref.kind == kind:
                return ref.url

    if not images.wiki_images:
        return None

    keywords = objective_keywords(objective)
    best_url, best_score = None, _OBJECTIVE_MATCH_THRESHOLD
    for image in images.wiki_images:
        score = calculate_relevance(f"{image.description} {image.alt} {image.title}", keywords)
        if score > best_score:
            best_url, best_score = image.url, score

    return best_url or images.wiki_images[0].url
