"""
Discord Bot Layer.

Slash command handling (/item, /quest, /guide), embed formatting, and the
bot lifecycle that owns the shared API client and enrichment pipeline.
"""

from tarkovguide.bot.client import TarkovGuideBot

__all__ = ["TarkovGuideBot"]
