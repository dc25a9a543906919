"""
Unit tests for guide prompt building, generation retry, and segmentation.

Tests cover:
- Prompt contents (quest facts, requirements, rewards, Gunsmith instructions)
- Bounded retry with a delay between attempts (sleep is injected, never real)
- Empty completions counted as failures
- Segmentation strategies: objective headings, numbered items, description
  anchors, positional split, full-text fallback, parse-error fallback
"""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from tarkovguide.api.models import (
    ItemRef,
    ItemReward,
    Map,
    Objective,
    Quest,
    QuestRewards,
    TaskRef,
    TaskRequirement,
    Trader,
    TraderLevelRequirement,
    TraderStanding,
)
from tarkovguide.enrichment.guide import (
    GuideGenerator,
    GuideSegmenter,
    build_quest_prompt,
    special_category_instructions,
)
from tarkovguide.llm.models import LLMError, LLMResponse

STRUCTURED_RESPONSE = """## Brief Overview
Go to the relay station on Customs and mark it.

## Step-by-Step Guide
### Objective 1: Find the relay
Head to the relay station near the checkpoint.

### Objective 2: Mark the relay
Use an MS2000 marker on the relay box.

## Priority Tips
Bring a marker and a backup."""


def _objectives(*descriptions: str) -> list[Objective]:
    return [Objective(id=f"o{i}", description=d) for i, d in enumerate(descriptions, start=1)]


def _quest(name: str = "Checkpoint", objectives: list[Objective] | None = None) -> Quest:
    return Quest(
        id="q1",
        name=name,
        trader=Trader(name="Prapor"),
        map=Map(name="Customs"),
        min_player_level=10,
        experience=12500,
        objectives=objectives or _objectives("Locate the relay station", "Mark the relay station"),
        task_requirements=[TaskRequirement(task=TaskRef(name="Debut"), status=["complete"])],
        trader_level_requirements=[TraderLevelRequirement(trader=Trader(name="Prapor"), level=2)],
        finish_rewards=QuestRewards(
            items=[ItemReward(item=ItemRef(name="Roubles", short_name="RUB"), count=20000)],
            trader_standing=[TraderStanding(trader=Trader(name="Prapor"), standing=0.03)],
        ),
    )


def _response(text: str) -> LLMResponse:
    return LLMResponse(text=text, model="gemini/gemini-2.5-flash")


def _generator(model, **kwargs):
    sleep = AsyncMock()
    return GuideGenerator(model=model, sleep=sleep, **kwargs), sleep


class TestPrompt:
    """Tests for build_quest_prompt."""

    def test_contains_quest_facts(self):
        prompt = build_quest_prompt(_quest())
        assert "Quest: Checkpoint" in prompt
        assert "Trader: Prapor" in prompt
        assert "Map: Customs" in prompt
        assert "Min Level: 10" in prompt

    def test_numbered_objectives(self):
        prompt = build_quest_prompt(_quest())
        assert "1. Locate the relay station" in prompt
        assert "2. Mark the relay station" in prompt

    def test_optional_objective_flagged(self):
        objectives = [Objective(description="Find the stash", optional=True)]
        prompt = build_quest_prompt(_quest(objectives=objectives))
        assert "1. Find the stash (Optional)" in prompt

    def test_requirements_and_rewards(self):
        prompt = build_quest_prompt(_quest())
        assert "Previous quests: Debut" in prompt
        assert "Prapor Level 2" in prompt
        assert "12,500 XP" in prompt
        assert "RUB (x20000)" in prompt
        assert "Prapor +0.03" in prompt

    def test_requests_section_headings(self):
        prompt = build_quest_prompt(_quest())
        assert "## Brief Overview" in prompt
        assert "## Step-by-Step Guide" in prompt
        assert "### Objective N" in prompt
        assert "## Priority Tips" in prompt

    def test_missing_map_and_requirements(self):
        quest = Quest(id="q2", name="Anywhere", objectives=_objectives("Survive"))
        prompt = build_quest_prompt(quest)
        assert "Map: Multiple/Various" in prompt
        assert "Trader: Unknown" in prompt
        assert "Requirements:\nNone" in prompt

    def test_gunsmith_instructions_added(self):
        prompt = build_quest_prompt(_quest(name="Gunsmith - Part 1"))
        assert "GUNSMITH" in prompt
        assert "build order" in prompt

    def test_no_special_instructions_for_regular_quest(self):
        assert special_category_instructions(_quest()) is None
        assert "GUNSMITH" not in build_quest_prompt(_quest())


class TestGenerationRetry:
    """Tests for GuideGenerator's bounded retry."""

    @pytest.mark.asyncio
    async def test_always_failing_model_called_twice_then_none(self):
        model = AsyncMock()
        model.complete.side_effect = LLMError("rate limited")
        generator, sleep = _generator(model)

        guide = await generator.generate(_quest())

        assert guide is None
        assert model.complete.await_count == 2
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self):
        model = AsyncMock()
        model.complete.return_value = _response(STRUCTURED_RESPONSE)
        generator, sleep = _generator(model)

        guide = await generator.generate(_quest())

        assert guide is not None
        assert guide.raw == STRUCTURED_RESPONSE
        assert model.complete.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_attempt_succeeds(self):
        model = AsyncMock()
        model.complete.side_effect = [LLMError("timeout"), _response(STRUCTURED_RESPONSE)]
        generator, sleep = _generator(model)

        guide = await generator.generate(_quest())

        assert guide is not None
        assert model.complete.await_count == 2
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_empty_completion_counts_as_failure(self):
        model = AsyncMock()
        model.complete.return_value = _response("   ")
        generator, _ = _generator(model)

        assert await generator.generate(_quest()) is None
        assert model.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_configurable_attempts_and_delay(self):
        model = AsyncMock()
        model.complete.side_effect = RuntimeError("boom")
        generator, sleep = _generator(model, max_attempts=3, retry_delay=0.5)

        assert await generator.generate(_quest()) is None
        assert model.complete.await_count == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            GuideGenerator(model=AsyncMock(), max_attempts=0)

    @pytest.mark.asyncio
    async def test_prompt_sent_to_model(self):
        model = AsyncMock()
        model.complete.return_value = _response(STRUCTURED_RESPONSE)
        generator, _ = _generator(model)

        await generator.generate(_quest())

        prompt = model.complete.await_args.args[0]
        assert "Quest: Checkpoint" in prompt


class TestSegmentation:
    """Tests for GuideSegmenter."""

    def test_objective_headings(self):
        objectives = _objectives("Locate the relay station", "Mark the relay station")
        guide = GuideSegmenter().segment(STRUCTURED_RESPONSE, objectives)

        assert guide.overview == "Go to the relay station on Customs and mark it."
        assert guide.tips == "Bring a marker and a backup."
        assert guide.objectives == (
            "Find the relay\nHead to the relay station near the checkpoint.",
            "Mark the relay\nUse an MS2000 marker on the relay box.",
        )
        assert guide.raw == STRUCTURED_RESPONSE

    def test_one_slot_per_objective(self):
        objectives = _objectives("One", "Two", "Three")
        guide = GuideSegmenter().segment(STRUCTURED_RESPONSE, objectives)
        assert len(guide.objectives) == 3
        assert guide.objectives[2] == ""

    def test_segmented_guide_is_immutable(self):
        guide = GuideSegmenter().segment(STRUCTURED_RESPONSE, _objectives("One", "Two"))

        assert isinstance(guide.objectives, tuple)
        with pytest.raises(ValidationError):
            guide.overview = "edited"

    def test_numbered_items(self):
        text = (
            "## Step-by-Step Guide\n"
            "1. Go to the dorms and check room 214.\n"
            "2. Take the key to the gas station.\n"
            "\n"
            "## Priority Tips\n"
            "Go early in the raid."
        )
        objectives = _objectives("Obtain the key", "Hand over the key")
        guide = GuideSegmenter().segment(text, objectives)

        assert guide.objectives == (
            "Go to the dorms and check room 214.",
            "Take the key to the gas station.",
        )

    def test_description_anchor(self):
        text = (
            "## Step-by-Step Guide\n"
            "For Eliminate 5 Scavs on Customs: camp near the construction site.\n"
            "\n"
            "## Priority Tips\n"
            "Bring armor."
        )
        objectives = _objectives("Eliminate 5 Scavs on Customs")
        guide = GuideSegmenter().segment(text, objectives)

        assert guide.objectives == ("camp near the construction site.",)

    def test_positional_split(self):
        text = (
            "## Brief Overview\n"
            "A three-part quest.\n"
            "\n"
            "## Step-by-Step Guide\n"
            "Start at the dorms and clear the second floor.\n"
            "\n"
            "Move to the gas station and wait for scavs.\n"
            "\n"
            "Extract through the bridge.\n"
            "\n"
            "## Priority Tips\n"
            "Go fast."
        )
        objectives = _objectives("Locate the hidden stash", "Eliminate 5 Scavs", "Survive and leave")
        guide = GuideSegmenter().segment(text, objectives)

        assert guide.objectives == (
            "Start at the dorms and clear the second floor.",
            "Move to the gas station and wait for scavs.",
            "Extract through the bridge.",
        )

    def test_positional_split_fewer_chunks_than_objectives(self):
        text = (
            "## Step-by-Step Guide\n"
            "Start at the dorms.\n"
            "\n"
            "Move to the gas station.\n"
        )
        objectives = _objectives("Locate the stash", "Eliminate Scavs", "Survive", "Hand over the drive")
        guide = GuideSegmenter().segment(text, objectives)

        assert guide.objectives == ("Start at the dorms.", "Move to the gas station.", "", "")

    def test_positional_split_drops_extra_chunks(self):
        text = "## Step-by-Step Guide\nFirst.\n\nSecond.\n\nThird.\n"
        guide = GuideSegmenter().segment(text, _objectives("Survive"))
        assert guide.objectives == ("First.",)

    def test_no_structure_uses_full_text(self):
        text = "Just go in, grab it, and get out. Good luck."
        objectives = _objectives("Locate the stash", "Survive")
        guide = GuideSegmenter().segment(text, objectives)

        assert guide.objectives == (text, text)
        assert guide.overview == ""
        assert guide.tips == ""

    def test_parse_error_uses_full_text(self):
        objectives = _objectives("Locate the relay station", "Mark the relay station")
        segmenter = GuideSegmenter()

        with patch.object(segmenter, "segment_objectives", side_effect=RuntimeError("bad regex")):
            guide = segmenter.segment(STRUCTURED_RESPONSE, objectives)

        assert guide.objectives == (STRUCTURED_RESPONSE, STRUCTURED_RESPONSE)
        assert guide.raw == STRUCTURED_RESPONSE

    def test_no_objectives(self):
        guide = GuideSegmenter().segment(STRUCTURED_RESPONSE, [])
        assert guide.objectives == ()
        assert guide.overview
