"""
Quest guide generation.

Builds a prompt from quest data, asks the text model for a markdown guide
(with bounded retry), and splits the free-text answer into an overview,
one guidance block per objective, and priority tips.

The model output is unstructured, so segmentation is a chain of heuristics
tried in order, first success wins:

    per objective:  heading-anchored  →  description-anchored
    all slots empty:  positional split of the Step-by-Step block
    still nothing (or any parsing error):  full text in every slot

Every objective therefore ends up with *some* text whenever the model
answered at all.

Generation never raises. A failed generation returns None, which the
orchestrator treats as "render the baseline quest view".
"""

from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Callable, Sequence

from tarkovguide.api.client import format_number
from tarkovguide.api.models import Objective, Quest
from tarkovguide.config.logging import get_logger
from tarkovguide.enrichment.base import Guide
from tarkovguide.llm.client import TextModel
from tarkovguide.llm.models import LLMError

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Prompt construction
# ---------------------------------------------------------------------------

_WEAPON_BUILD_INSTRUCTIONS = """
IMPORTANT: This is a GUNSMITH (weapon modification) quest. Please provide:
1. List ALL required attachments with exact names
2. Weapon build order (which parts to install first to avoid incompatibilities)
3. Note common mistakes (wrong variants, incompatible parts)
4. Suggest where to buy or find each attachment (traders vs flea market)
"""

# Quest-name keywords that call for extra category-specific instructions
SPECIAL_CATEGORIES: dict[str, str] = {
    "gunsmith": _WEAPON_BUILD_INSTRUCTIONS,
}

_RESPONSE_INSTRUCTIONS = """
Please provide, using exactly these markdown headings:

## Brief Overview
2-3 sentences summarizing what this quest involves.

## Step-by-Step Guide
One "### Objective N" subsection per objective above (same numbering), covering:
   - Specific location details and landmarks
   - Recommended approach and tactics
   - Tips for survival and efficiency
   - Common mistakes to avoid
   - Recommended gear/loadout if relevant
   - For each step where an IMAGE would be helpful (map location, item picture, etc.), add [IMAGE: brief description]

## Priority Tips
   - What objectives to do first and why
   - Which objectives are optional and worth skipping
   - Best approach for new vs experienced players

Be concise but informative. Focus on practical advice that helps players complete the quest efficiently."""


def special_category_instructions(quest: Quest) -> str | None:
    """Return extra instructions for quests that need them (e.g. Gunsmith builds)."""
    name = quest.name.lower()
    for keyword, instructions in SPECIAL_CATEGORIES.items():
        if keyword in name:
            return instructions
    return None


def format_requirements(quest: Quest) -> str:
    reqs = []

    if quest.min_player_level:
        reqs.append(f"Player Level {quest.min_player_level}")

    if quest.task_requirements:
        names = ", ".join(req.task.name for req in quest.task_requirements)
        reqs.append(f"Previous quests: {names}")

    if quest.trader_level_requirements:
        levels = ", ".join(
            f"{req.trader.name} Level {req.level}" for req in quest.trader_level_requirements
        )
        reqs.append(f"Trader levels: {levels}")

    return "\n".join(reqs) if reqs else "None"


def format_rewards(quest: Quest) -> str:
    rewards = []

    if quest.experience:
        rewards.append(f"{format_number(quest.experience)} XP")

    finish = quest.finish_rewards
    if finish:
        if finish.items:
            items = ", ".join(
                f"{reward.item.short_name or reward.item.name} (x{reward.count})"
                for reward in finish.items[:5]
            )
            rewards.append(f"Items: {items}")

        if finish.trader_standing:
            standing = ", ".join(
                f"{s.trader.name} {s.standing:+g}" for s in finish.trader_standing
            )
            rewards.append(f"Reputation: {standing}")

        if finish.offer_unlock:
            unlocks = ", ".join(unlock.item.name for unlock in finish.offer_unlock[:3])
            rewards.append(f"Unlocks: {unlocks}")

    return "\n".join(rewards) if rewards else "None"


def build_quest_prompt(quest: Quest) -> str:
    """Build the full guide-generation prompt for ``quest``."""
    objectives = "\n".join(
        f"{i}. {obj.description}{' (Optional)' if obj.optional else ''}"
        for i, obj in enumerate(quest.objectives, start=1)
    )

    prompt = (
        "You are an expert Escape from Tarkov guide writer. "
        "Create a concise, step-by-step quest guide for players.\n"
        "\n"
        f"Quest: {quest.name}\n"
        f"Trader: {quest.trader_name}\n"
        f"Map: {quest.map_name or 'Multiple/Various'}\n"
        f"Min Level: {quest.min_player_level or 'None'}\n"
        "\n"
        f"Requirements:\n{format_requirements(quest)}\n"
        "\n"
        f"Objectives:\n{objectives}\n"
        "\n"
        f"Rewards:\n{format_rewards(quest)}\n"
    )

    extra = special_category_instructions(quest)
    if extra:
        prompt += f"\n{extra}"

    return prompt + "\n" + _RESPONSE_INSTRUCTIONS


# ---------------------------------------------------------------------------
# Response segmentation
# ---------------------------------------------------------------------------

_FLAGS = re.IGNORECASE | re.MULTILINE


def _heading(names: str) -> re.Pattern[str]:
    """A line opening with ``names`` after optional markdown (##, 1., **)."""
    return re.compile(
        rf"^[ \t]*(?:#{{1,6}}[ \t]*)?(?:\d+\.[ \t]*)?[*_]{{0,2}}[ \t]*(?:{names})\b(?P<rest>[^\n]*)$",
        _FLAGS,
    )


_OVERVIEW_HEADING = _heading(r"Brief\s+Overview|Overview")
_GUIDE_HEADING = _heading(r"Step[- ]by[- ]Step(?:\s+Guide)?")
_PRIORITY_TIPS_HEADING = _heading(r"Priority\s+Tips")
_TIPS_HEADING = _heading(r"Tips")
_SECTION_HEADING = _heading(
    r"Brief\s+Overview|Overview|Step[- ]by[- ]Step(?:\s+Guide)?|Priority\s+Tips"
)
# "# Title" / "## Title" lines, except objective headings
_MAJOR_HEADING = re.compile(r"^#{1,2}[ \t]+(?![*_]*(?:Objective\b|\d+\.))", _FLAGS)
_ANY_OBJECTIVE_HEADING = re.compile(r"^[ \t>#*_-]*Objective[ \t]+\d+", _FLAGS)
_POSITIONAL_SPLIT = re.compile(r"\n[ \t]*\n+|\n(?=[ \t]*\d+\.)")
_LEADING_MARKUP = re.compile(r"^[\s*_:.)\-–—]+")

_DESCRIPTION_ANCHOR_LENGTH = 30
_DESCRIPTION_WINDOW = 500


def _objective_heading(number: int) -> re.Pattern[str]:
    return re.compile(rf"^[ \t>#*_-]*Objective[ \t]+{number}(?!\d)", _FLAGS)


def _numbered_heading(number: int) -> re.Pattern[str]:
    return re.compile(rf"^[ \t>#*_]*{number}\.(?!\d)", _FLAGS)


def _clean(text: str) -> str:
    return _LEADING_MARKUP.sub("", text).strip()


def _first_stop(text: str, start: int, stops: Sequence[re.Pattern[str]]) -> int:
    """Position of the earliest match of any ``stops`` pattern at or after ``start``."""
    end = len(text)
    for stop in stops:
        match = stop.search(text, start)
        if match and match.start() < end:
            end = match.start()
    return end


class GuideSegmenter:
    """
    Splits a model's markdown guide into overview, per-objective text and tips.

    Example:
        >>> guide = GuideSegmenter().segment(text, quest.objectives)
        >>> len(guide.objectives) == len(quest.objectives)
        True
    """

    def segment(self, text: str, objectives: Sequence[Objective]) -> Guide:
        """
        Segment ``text``. Never raises: on any parsing error every objective
        slot receives the full text.
        """
        try:
            return Guide(
                overview=self.extract_overview(text),
                tips=self.extract_tips(text),
                objectives=self.segment_objectives(text, objectives),
                raw=text,
            )
        except Exception as e:
            logger.warning(f"Error parsing guide response, using full text per objective: {e}")
            return Guide(objectives=[text] * len(objectives), raw=text)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def extract_overview(self, text: str) -> str:
        """Text between the Overview heading and the next section heading."""
        return self._section(
            text,
            _OVERVIEW_HEADING,
            stops=[_SECTION_HEADING, _MAJOR_HEADING, _ANY_OBJECTIVE_HEADING],
        ) or ""

    def extract_tips(self, text: str) -> str:
        """Text from the Priority Tips heading (or a bare Tips heading) to the end."""
        for heading in (_PRIORITY_TIPS_HEADING, _TIPS_HEADING):
            tips = self._section(text, heading, stops=[])
            if tips:
                return tips
        return ""

    def guide_block(self, text: str) -> str | None:
        """The Step-by-Step Guide section, up to the next known section heading."""
        return self._section(text, _GUIDE_HEADING, stops=[_SECTION_HEADING, _MAJOR_HEADING])

    @staticmethod
    def _section(
        text: str,
        heading: re.Pattern[str],
        stops: Sequence[re.Pattern[str]],
    ) -> str | None:
        match = heading.search(text)
        if not match:
            return None
        end = _first_stop(text, match.end(), stops)
        body = f"{_clean(match.group('rest'))}\n{text[match.end():end]}"
        return body.strip() or None

    # ------------------------------------------------------------------
    # Objectives
    # ------------------------------------------------------------------

    def segment_objectives(self, text: str, objectives: Sequence[Objective]) -> list[str]:
        """One guidance string per objective, via the fallback chain."""
        scope = self.guide_block(text) or text
        slots = [
            self.match_objective(scope, index, objective) or ""
            for index, objective in enumerate(objectives)
        ]
        if any(slots):
            return slots

        positional = self.split_positionally(text, len(objectives))
        if positional is not None:
            logger.info("No per-objective sections found; assigned guide chunks by position")
            return positional

        logger.info("No guide structure found; using full text for every objective")
        return [text] * len(objectives)

    def match_objective(self, text: str, index: int, objective: Objective) -> str | None:
        """Try the per-objective strategies in order; first non-empty match wins."""
        strategies: list[Callable[[str, int, Objective], str | None]] = [
            self._by_objective_heading,
            self._by_numbered_heading,
            self._by_description,
        ]
        for strategy in strategies:
            found = strategy(text, index, objective)
            if found:
                return found
        return None

    def split_positionally(self, text: str, count: int) -> list[str] | None:
        """
        Split the Step-by-Step block on blank lines / numbered items and align
        chunk i with objective i.

        Objectives beyond the number of chunks get ""; chunks beyond the number
        of objectives are dropped.

        Returns:
            The slots, or None when there is no guide block or it is empty
        """
        block = self.guide_block(text)
        if not block:
            return None
        chunks = [chunk.strip() for chunk in _POSITIONAL_SPLIT.split(block) if chunk.strip()]
        if not chunks:
            return None
        return [chunks[i] if i < len(chunks) else "" for i in range(count)]

    @staticmethod
    def _by_objective_heading(text: str, index: int, objective: Objective) -> str | None:
        match = _objective_heading(index + 1).search(text)
        if not match:
            return None
        end = _first_stop(
            text, match.end(), [_ANY_OBJECTIVE_HEADING, _SECTION_HEADING, _MAJOR_HEADING]
        )
        return _clean(text[match.end():end]) or None

    @staticmethod
    def _by_numbered_heading(text: str, index: int, objective: Objective) -> str | None:
        match = _numbered_heading(index + 1).search(text)
        if not match:
            return None
        end = _first_stop(
            text, match.end(), [_numbered_heading(index + 2), _SECTION_HEADING, _MAJOR_HEADING]
        )
        return _clean(text[match.end():end]) or None

    @staticmethod
    def _by_description(text: str, index: int, objective: Objective) -> str | None:
        description = objective.description.strip()
        if not description:
            return None
        for anchor in (description, description[:_DESCRIPTION_ANCHOR_LENGTH]):
            match = re.search(re.escape(anchor), text, re.IGNORECASE)
            if match:
                window = text[match.end():match.end() + _DESCRIPTION_WINDOW]
                end = _first_stop(window, 0, [_SECTION_HEADING, _MAJOR_HEADING])
                return _clean(window[:end]) or None
        return None


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class GuideGenerator:
    """
    Generates a segmented Guide for a quest.

    Args:
        model: Text model used for completion (LiteLLMTextModel in production)
        max_attempts: Model calls before giving up (default: 2)
        retry_delay: Seconds to wait between attempts (default: 1.0)
        segmenter: Response segmenter (default: GuideSegmenter())
        sleep: Async sleep function, injectable so tests don't wait
    """

    def __init__(
        self,
        model: TextModel,
        max_attempts: int = 2,
        retry_delay: float = 1.0,
        segmenter: GuideSegmenter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._model = model
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.segmenter = segmenter or GuideSegmenter()
        self._sleep = sleep

    async def generate(self, quest: Quest) -> Guide | None:
        """
        Generate a guide for ``quest``.

        Returns:
            The segmented Guide, or None if the model never produced usable text
        """
        try:
            prompt = build_quest_prompt(quest)
            logger.info(f"Generating quest guide for {quest.name!r}...")

            text = await self._complete_with_retry(prompt)
            if text is None:
                logger.error(f"Guide generation for {quest.name!r} failed after {self.max_attempts} attempt(s)")
                return None

            logger.info(f"Generated guide for {quest.name!r} ({len(text)} characters)")
            return self.segmenter.segment(text, quest.objectives)
        except Exception as e:
            logger.exception(f"Error generating quest guide for {quest.name!r}: {e}")
            return None

    async def _complete_with_retry(self, prompt: str) -> str | None:
        """Call the model up to ``max_attempts`` times, sequentially."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await self._model.complete(prompt)
                if not response.text.strip():
                    raise LLMError("Model returned an empty completion")
                return response.text
            except Exception as e:
                logger.warning(f"Guide attempt {attempt}/{self.max_attempts} failed: {e}")
                if attempt < self.max_attempts:
                    await self._sleep(self.retry_delay)
        return None
