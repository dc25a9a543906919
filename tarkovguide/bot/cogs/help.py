"""
HelpCog — /help command reference.
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from tarkovguide.bot.embeds import create_help_embed


class HelpCog(commands.Cog):
    """Lists the bot's slash commands."""

    def __init__(self, bot) -> None:
        self.bot = bot

    @app_commands.command(name="help", description="List the available commands")
    async def show_help(self, interaction: discord.Interaction) -> None:
        if not self.bot.is_allowed_channel(interaction.channel_id):
            await interaction.response.send_message(
                "I'm not configured to respond in this channel.", ephemeral=True
            )
            return

        await interaction.response.send_message(embed=create_help_embed())
