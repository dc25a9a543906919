"""
TarkovGuideBot — discord.py bot client.

Manages the full bot lifecycle:
- Initializes shared services (tarkov.dev client, enrichment pipeline) once at startup
- Loads command cogs (HelpCog, ItemsCog, QuestsCog)
- Syncs slash commands (guild-local for dev, global for production)
- Cleans up all resources on shutdown via AsyncExitStack
"""

from __future__ import annotations

from contextlib import AsyncExitStack

import discord
import httpx
from discord.ext import commands

from tarkovguide.api.client import TarkovAPIClient
from tarkovguide.config.logging import get_logger
from tarkovguide.config.settings import Settings
from tarkovguide.enrichment.components import EnrichmentComponents
from tarkovguide.enrichment.orchestrator import EnrichmentOrchestrator

logger = get_logger(__name__)


class TarkovGuideBot(commands.Bot):
    """
    Discord bot for Escape from Tarkov item lookups and quest guides.

    Holds shared application state (API client, enrichment orchestrator and
    its process-wide guide cache) and exposes it to cogs.

    Args:
        settings: Full application settings (bot token, LLM config, enrichment config, etc.)
    """

    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(
            command_prefix=settings.bot.command_prefix,
            intents=intents,
        )
        self.settings = settings
        self.api: TarkovAPIClient | None = None
        self.orchestrator: EnrichmentOrchestrator | None = None
        self._exit_stack = AsyncExitStack()

    async def setup_hook(self) -> None:
        """
        Called after login, before connecting to the Gateway.

        Initializes all services, loads cogs, and syncs slash commands.
        """
        # --- 1. tarkov.dev API client ---
        self.api = await self._exit_stack.enter_async_context(
            TarkovAPIClient(self.settings.tarkov_api)
        )

        # --- 2. Enrichment pipeline (cache lives for the bot's lifetime) ---
        logger.info("Initializing enrichment pipeline...")
        scrape_client = await self._exit_stack.enter_async_context(
            httpx.AsyncClient(follow_redirects=True)
        )
        factory = EnrichmentComponents(self.settings.enrichment, self.settings.llm)
        self.orchestrator = factory.create_orchestrator(client=scrape_client)
        logger.info(f"Enrichment pipeline ready (model: {self.settings.llm.model})")

        # --- 3. Load cogs ---
        from tarkovguide.bot.cogs.help import HelpCog
        from tarkovguide.bot.cogs.items import ItemsCog
        from tarkovguide.bot.cogs.quests import QuestsCog
        await self.add_cog(HelpCog(self))
        await self.add_cog(ItemsCog(self))
        await self.add_cog(QuestsCog(self))
        logger.info("Cogs loaded")

        # --- 4. Sync slash commands ---
        try:
            if self.settings.bot.dev_guild_id:
                guild = discord.Object(id=self.settings.bot.dev_guild_id)
                self.tree.copy_global_to(guild=guild)
                await self.tree.sync(guild=guild)
                logger.info(f"Slash commands synced to dev guild {self.settings.bot.dev_guild_id} (instant)")
            else:
                await self.tree.sync()
                logger.info("Slash commands synced globally (may take up to 1 hour to propagate)")
        except discord.errors.Forbidden:
            logger.warning(
                "Could not sync slash commands (403 Forbidden). "
                "Re-invite the bot with both the 'bot' and 'applications.commands' OAuth2 scopes."
            )
        except Exception as e:
            logger.warning(f"Slash command sync failed: {e}. The bot will still start.")

    async def on_ready(self) -> None:
        """Called when the bot successfully connects to Discord."""
        logger.info(f"Logged in as {self.user} (id: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")
        await self.change_presence(activity=discord.Game(name="Escape from Tarkov | /guide"))

    async def close(self) -> None:
        """Graceful shutdown — clean up all async resources before disconnecting."""
        logger.info("Shutting down TarkovGuide...")
        await self._exit_stack.aclose()
        await super().close()

    def is_allowed_channel(self, channel_id: int) -> bool:
        """
        Return True if the bot should respond in this channel.

        If `allowed_channel_ids` is empty (the default), the bot responds everywhere.
        """
        allowed = self.settings.bot.allowed_channel_ids
        return not allowed or channel_id in allowed
