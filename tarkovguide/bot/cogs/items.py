"""
ItemsCog — /item price and quest-usage lookup.
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from tarkovguide.api.client import TarkovAPIError
from tarkovguide.bot.embeds import create_item_embed, other_results_note
from tarkovguide.config.logging import get_logger

logger = get_logger(__name__)


def _error_embed(title: str, description: str) -> discord.Embed:
    return discord.Embed(title=title, description=description, color=discord.Color.red())


class ItemsCog(commands.Cog):
    """Handles item lookups."""

    def __init__(self, bot) -> None:
        self.bot = bot

    @app_commands.command(name="item", description="Look up an item's prices and quest usage")
    @app_commands.describe(name="Item name, e.g. 'bitcoin' or 'graphics card'")
    async def item(self, interaction: discord.Interaction, name: str) -> None:
        if not self.bot.is_allowed_channel(interaction.channel_id):
            await interaction.response.send_message(
                "I'm not configured to respond in this channel.", ephemeral=True
            )
            return

        await interaction.response.defer()
        embed = await self._lookup(name)
        await interaction.followup.send(embed=embed)

    async def _lookup(self, name: str) -> discord.Embed:
        """Search for ``name`` and build the reply embed; never raises."""
        try:
            items = await self.bot.api.search_items(name)
        except TarkovAPIError as e:
            logger.warning(f"Item search failed for {name!r}: {e}")
            return _error_embed("tarkov.dev Error", "Couldn't reach tarkov.dev. Please try again.")
        except Exception as e:
            logger.exception(f"Unexpected error searching item {name!r}: {e}")
            return _error_embed("Error", "Something went wrong. Please try again.")

        if not items:
            return _error_embed("No Results", f"No items found matching \"{name}\".")

        embed = create_item_embed(items[0])
        note = other_results_note([other.short_name for other in items[1:]])
        if note:
            embed.set_footer(text=note)
        return embed
