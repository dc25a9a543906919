"""
QuestsCog — quest lookups via /quest and /guide.

Two views of the same search:
  - /quest name:<str>  plain quest card straight from tarkov.dev
  - /guide name:<str>  AI-enriched, objective-by-objective guide with images

/guide runs the quest through the EnrichmentOrchestrator. When enrichment
falls back, or Discord rejects the enriched reply, the plain /quest card is
sent instead with a footer saying so, so the user always gets an answer.
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from tarkovguide.api.client import TarkovAPIError
from tarkovguide.api.models import Quest
from tarkovguide.bot.embeds import create_enhanced_embeds, create_quest_embed, other_results_note
from tarkovguide.config.logging import get_logger
from tarkovguide.enrichment.base import BaselineFallback

logger = get_logger(__name__)

AI_UNAVAILABLE = "AI enhancement unavailable"


def _error_embed(title: str, description: str) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=description,
        color=discord.Color.red(),
    )


class QuestsCog(commands.Cog):
    """Handles quest lookups and AI quest guides."""

    def __init__(self, bot) -> None:
        self.bot = bot

    # ------------------------------------------------------------------
    # Slash commands
    # ------------------------------------------------------------------

    @app_commands.command(name="quest", description="Look up a quest's objectives and rewards")
    @app_commands.describe(name="Quest name, e.g. 'Delivery from the Past'")
    async def quest(self, interaction: discord.Interaction, name: str) -> None:
        if not self.bot.is_allowed_channel(interaction.channel_id):
            await interaction.response.send_message(
                "I'm not configured to respond in this channel.", ephemeral=True
            )
            return

        await interaction.response.defer()
        embeds = await self._baseline(name)
        await interaction.followup.send(embeds=embeds)

    @app_commands.command(name="guide", description="Get an AI-written guide for a quest")
    @app_commands.describe(name="Quest name, e.g. 'Gunsmith - Part 1'")
    async def guide(self, interaction: discord.Interaction, name: str) -> None:
        """
        /guide name:<quest name>

        Generates (or serves from cache) a step-by-step guide with images
        for each objective. Falls back to the /quest card on failure,
        including when Discord rejects the enriched reply.
        """
        if not self.bot.is_allowed_channel(interaction.channel_id):
            await interaction.response.send_message(
                "I'm not configured to respond in this channel.", ephemeral=True
            )
            return

        # Defer immediately — LLM generation takes well over Discord's 3s limit
        await interaction.response.defer()

        quests, error = await self._search(name)
        if error is not None:
            await interaction.followup.send(embeds=[error])
            return

        quest = quests[0]
        others = [other.name for other in quests[1:]]
        embeds = await self._enhanced(quest, others)

        try:
            await interaction.followup.send(embeds=embeds)
        except discord.HTTPException as e:
            logger.warning(f"Discord rejected the guide for {quest.name!r}, sending baseline view: {e}")
            await interaction.followup.send(embeds=[self._fallback_embed(quest, others)])

    # ------------------------------------------------------------------
    # Shared pipelines
    # ------------------------------------------------------------------

    async def _search(self, name: str) -> tuple[list[Quest] | None, discord.Embed | None]:
        """Return (quests, None) on success or (None, error_embed) when there's nothing to show."""
        try:
            quests = await self.bot.api.search_quests(name)
        except TarkovAPIError as e:
            logger.warning(f"Quest search failed for {name!r}: {e}")
            return None, _error_embed("tarkov.dev Error", "Couldn't reach tarkov.dev. Please try again.")
        except Exception as e:
            logger.exception(f"Unexpected error searching quest {name!r}: {e}")
            return None, _error_embed("Error", "Something went wrong. Please try again.")

        if not quests:
            return None, _error_embed("No Results", f"No quests found matching \"{name}\".")
        return quests, None

    async def _baseline(self, name: str) -> list[discord.Embed]:
        quests, error = await self._search(name)
        if error is not None:
            return [error]

        embed = create_quest_embed(quests[0])
        note = other_results_note([other.name for other in quests[1:]])
        if note:
            embed.set_footer(text=note)
        return [embed]

    @staticmethod
    def _fallback_embed(quest: Quest, others: list[str]) -> discord.Embed:
        """The /quest card, footed with a note that AI enhancement was unavailable."""
        embed = create_quest_embed(quest)
        note = other_results_note(others)
        embed.set_footer(text=f"AI unavailable. {note}" if note else AI_UNAVAILABLE)
        return embed

    async def _enhanced(self, quest: Quest, others: list[str]) -> list[discord.Embed]:
        """
        Enrich ``quest`` and build the reply embeds.

        Never raises: enrichment failures become the baseline card.
        """
        outcome = await self.bot.orchestrator.enrich(quest)

        if isinstance(outcome, BaselineFallback):
            logger.info(f"Sending baseline view for {quest.name!r} ({outcome.reason})")
            return [self._fallback_embed(quest, others)]

        return create_enhanced_embeds(
            quest,
            outcome,
            other_quests=others,
            max_objective_embeds=self.bot.settings.bot.max_objective_embeds,
        )
