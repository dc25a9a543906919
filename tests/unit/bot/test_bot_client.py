"""
Tests for TarkovGuideBot.

The channel-restriction method is tested in isolation, and setup_hook is
run with every external service patched, so no Discord connection is made.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tarkovguide.bot.client import TarkovGuideBot
from tarkovguide.config.settings import BotSettings, Settings


def _make_bot(allowed_channel_ids: list[int]) -> TarkovGuideBot:
    """Create a TarkovGuideBot with the given channel restriction list."""
    settings = MagicMock(spec=Settings)
    settings.bot = MagicMock(spec=BotSettings)
    settings.bot.command_prefix = "!"
    settings.bot.allowed_channel_ids = allowed_channel_ids
    # Skip discord internals so __init__ doesn't require a real connection
    bot = TarkovGuideBot.__new__(TarkovGuideBot)
    bot.settings = settings
    return bot


class TestBotChannelRestriction:
    def test_empty_list_allows_all_channels(self):
        """When allowed_channel_ids is empty the bot responds everywhere."""
        bot = _make_bot([])
        assert bot.is_allowed_channel(111) is True
        assert bot.is_allowed_channel(999999) is True

    def test_listed_channel_is_allowed(self):
        bot = _make_bot([111, 222, 333])
        assert bot.is_allowed_channel(111) is True
        assert bot.is_allowed_channel(333) is True

    def test_unlisted_channel_is_blocked(self):
        bot = _make_bot([111, 222])
        assert bot.is_allowed_channel(999) is False


class TestSetupHook:
    @pytest.mark.asyncio
    async def test_services_and_cogs_initialized(self):
        settings = Settings(bot=BotSettings(token="x", dev_guild_id=None))
        bot = TarkovGuideBot(settings)
        bot.add_cog = AsyncMock()
        bot.tree.sync = AsyncMock()

        api = MagicMock()
        api.__aenter__ = AsyncMock(return_value=api)
        api.__aexit__ = AsyncMock(return_value=None)

        with patch("tarkovguide.bot.client.TarkovAPIClient", return_value=api):
            await bot.setup_hook()

        assert bot.api is api
        assert bot.orchestrator is not None
        cog_names = [type(call.args[0]).__name__ for call in bot.add_cog.await_args_list]
        assert cog_names == ["HelpCog", "ItemsCog", "QuestsCog"]
        bot.tree.sync.assert_awaited_once_with()

        await bot._exit_stack.aclose()
        api.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_orchestrator_cache_shared_across_requests(self):
        settings = Settings(bot=BotSettings(token="x"))
        bot = TarkovGuideBot(settings)
        bot.add_cog = AsyncMock()
        bot.tree.sync = AsyncMock()

        api = MagicMock()
        api.__aenter__ = AsyncMock(return_value=api)
        api.__aexit__ = AsyncMock(return_value=None)

        with patch("tarkovguide.bot.client.TarkovAPIClient", return_value=api):
            await bot.setup_hook()

        assert bot.orchestrator.cache.max_entries == settings.enrichment.cache_max_entries
        assert len(bot.orchestrator.cache) == 0

        await bot._exit_stack.aclose()
