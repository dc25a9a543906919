"""
Tests for HelpCog.
"""

from __future__ import annotations

import pytest
from unittest.mock import AsyncMock, MagicMock

import discord

from tarkovguide.bot.cogs.help import HelpCog


def _make_interaction(channel_id=100):
    interaction = MagicMock(spec=discord.Interaction)
    interaction.channel_id = channel_id
    interaction.response = MagicMock()
    interaction.response.send_message = AsyncMock()
    return interaction


class TestHelpCog:
    @pytest.mark.asyncio
    async def test_lists_commands(self):
        bot = MagicMock()
        bot.is_allowed_channel.return_value = True
        cog = HelpCog(bot)
        interaction = _make_interaction()

        await cog.show_help.callback(cog, interaction)

        embed = interaction.response.send_message.call_args[1]["embed"]
        names = [field.name for field in embed.fields]
        assert names == ["/item <name>", "/quest <name>", "/guide <name>", "/help"]

    @pytest.mark.asyncio
    async def test_blocked_channel_sends_ephemeral(self):
        bot = MagicMock()
        bot.is_allowed_channel.return_value = False
        cog = HelpCog(bot)
        interaction = _make_interaction()

        await cog.show_help.callback(cog, interaction)

        call_kwargs = interaction.response.send_message.call_args[1]
        assert call_kwargs.get("ephemeral") is True
        assert "embed" not in call_kwargs
