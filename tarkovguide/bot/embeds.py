"""
Discord embed builders.

Pure functions from API models / enrichment results to ``discord.Embed``.
No network access here, so everything is unit-testable without a client.

Discord limits respected throughout: 256-char titles, 4096-char
descriptions, 1024-char field values, 10 embeds and 6000 characters per
message.
"""

from __future__ import annotations

from typing import Sequence

import discord

from tarkovguide.api.client import currency_symbol, format_number
from tarkovguide.api.models import Item, Objective, Quest
from tarkovguide.enrichment.base import EnrichmentResult, Guide, ImageSet
from tarkovguide.enrichment.images import match_image

MAX_EMBEDS = 10
MAX_MESSAGE_CHARS = 6000
MAX_OBJECTIVE_TEXT = 3800
DEFAULT_LINK = "https://tarkov.dev"

_OBJECTIVE_COLORS = {
    "plantItem": 0x2ECC71,
    "plantQuestItem": 0x2ECC71,
    "pickupItem": 0x2ECC71,
    "findItem": 0x2ECC71,
    "findQuestItem": 0x2ECC71,
    "giveItem": 0x2ECC71,
    "giveQuestItem": 0x2ECC71,
    "shoot": 0xE74C3C,
    "kill": 0xE74C3C,
    "mark": 0xF39C12,
    "place": 0xF39C12,
    "buildWeapon": 0x3498DB,
    "build": 0x3498DB,
    "visit": 0x9B59B6,
}
_DEFAULT_OBJECTIVE_COLOR = 0x95A5A6


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[: max(limit, 0)]
    return text[: limit - 3] + "..."


def objective_color(objective_type: str | None) -> int:
    """Embed color for an objective type (green items, red kills, orange marks...)."""
    return _OBJECTIVE_COLORS.get(objective_type or "", _DEFAULT_OBJECTIVE_COLOR)


def other_results_note(names: Sequence[str]) -> str | None:
    """Footer text naming up to three other search matches, or None if there were none."""
    if not names:
        return None
    shown = ", ".join(names[:3])
    return f"{len(names)} other result(s): {shown}"


def _reward_lines(quest: Quest) -> list[str]:
    lines = []
    if quest.experience:
        lines.append(f"**XP:** {format_number(quest.experience)}")

    finish = quest.finish_rewards
    if finish is None:
        return lines

    if finish.items:
        items = ", ".join(
            f"{reward.item.short_name or reward.item.name} (x{reward.count})"
            for reward in finish.items[:5]
        )
        lines.append(f"**Items:** {items}")
    if finish.offer_unlock:
        unlocks = ", ".join(
            f"{unlock.item.name} ({unlock.trader.name})" if unlock.trader else unlock.item.name
            for unlock in finish.offer_unlock[:3]
        )
        lines.append(f"**Unlocks:** {unlocks}")
    if finish.trader_standing:
        standing = ", ".join(f"{s.trader.name} {s.standing:+g}" for s in finish.trader_standing)
        lines.append(f"**Reputation:** {standing}")
    return lines


# ---------------------------------------------------------------------------
# Help
# ---------------------------------------------------------------------------


def create_help_embed() -> discord.Embed:
    """Command reference shown by /help."""
    embed = discord.Embed(
        title="Tarkov Guide Commands",
        description="Escape from Tarkov item prices and quest guides",
        color=0x00FF00,
    )
    embed.add_field(
        name="/item <name>",
        value="Flea market price, best trader sell prices, quest usage and categories",
        inline=False,
    )
    embed.add_field(
        name="/quest <name>",
        value="Trader, level, objectives, required quests and rewards",
        inline=False,
    )
    embed.add_field(
        name="/guide <name>",
        value="AI-written step-by-step guide with images for each objective",
        inline=False,
    )
    embed.add_field(name="/help", value="Show this message", inline=False)
    embed.set_footer(text="Data from tarkov.dev")
    return embed


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def create_item_embed(item: Item) -> discord.Embed:
    """Prices, best trader offers, quest usage and categories for an item."""
    embed = discord.Embed(
        title=_truncate(f"{item.name} ({item.short_name})", 256),
        url=item.wiki_link or DEFAULT_LINK,
        color=0x0099FF,
        timestamp=discord.utils.utcnow(),
    )
    if item.icon_link:
        embed.set_thumbnail(url=item.icon_link)

    if item.avg24h_price:
        embed.add_field(
            name="Flea Market Price (24h avg)",
            value=f"{format_number(item.avg24h_price)} ₽",
            inline=True,
        )
    if item.base_price:
        embed.add_field(name="Base Price", value=f"{format_number(item.base_price)} ₽", inline=True)

    if item.sell_for:
        best = sorted(item.sell_for, key=lambda offer: offer.price_rub or 0, reverse=True)[:5]
        sell_text = "\n".join(
            f"**{offer.vendor.name}**: {format_number(offer.price)} "
            f"{currency_symbol(offer.currency)} ({format_number(offer.price_rub)} ₽)"
            for offer in best
        )
        embed.add_field(name="Best Sell Prices", value=sell_text, inline=False)

    if item.used_in_tasks:
        quest_blocks = []
        for task in item.used_in_tasks[:5]:
            objectives = "\n  - ".join(
                f"~~{obj.description}~~" if obj.optional else obj.description
                for obj in task.objectives_with_item
            )
            trader = task.trader.name if task.trader else "Unknown"
            block = f"**{task.name}** ({trader}, Lvl {task.min_player_level or '?'})"
            if objectives:
                block += f"\n  - {objectives}"
            quest_blocks.append(block)
        embed.add_field(
            name=f"Needed for Quests ({len(item.used_in_tasks)})",
            value=_truncate("\n\n".join(quest_blocks), 1024),
            inline=False,
        )
    else:
        embed.add_field(name="Quest Status", value="Not needed for any quests", inline=False)

    if item.types:
        embed.add_field(name="Categories", value=_truncate(", ".join(item.types), 1024), inline=False)

    return embed


# ---------------------------------------------------------------------------
# Baseline quest view
# ---------------------------------------------------------------------------


def create_quest_embed(quest: Quest) -> discord.Embed:
    """The plain (non-AI) quest view, also used when enrichment falls back."""
    embed = discord.Embed(
        title=_truncate(quest.name, 256),
        url=quest.wiki_link or DEFAULT_LINK,
        color=0xE67E22,
        timestamp=discord.utils.utcnow(),
    )

    description = f"**Trader:** {quest.trader_name}\n**Min Level:** {quest.min_player_level or '-'}"
    if quest.map_name:
        description += f"\n**Map:** {quest.map_name}"
    embed.description = description

    if quest.objectives:
        lines = [
            f"{i}. {'~~' + obj.description + '~~ (optional)' if obj.optional else obj.description}"
            for i, obj in enumerate(quest.objectives, start=1)
        ]
        embed.add_field(name="Objectives", value=_truncate("\n".join(lines), 1024), inline=False)

    if quest.task_requirements:
        required = ", ".join(req.task.name for req in quest.task_requirements)
        embed.add_field(name="Required Quests", value=_truncate(required, 1024), inline=False)

    rewards = _reward_lines(quest)
    if rewards:
        embed.add_field(name="Rewards", value=_truncate("\n".join(rewards), 1024), inline=False)

    return embed


# ---------------------------------------------------------------------------
# Enriched quest view
# ---------------------------------------------------------------------------


def create_overview_embed(quest: Quest, images: ImageSet) -> discord.Embed:
    embed = discord.Embed(
        title=_truncate(quest.name, 256),
        url=quest.wiki_link or DEFAULT_LINK,
        color=0x9B59B6,
        timestamp=discord.utils.utcnow(),
    )

    description = f"**Trader:** {quest.trader_name}\n**Min Level:** {quest.min_player_level or '-'}"
    if quest.map_name:
        description += f"\n**Map:** {quest.map_name}"
    if quest.experience:
        description += f"\n**XP Reward:** {format_number(quest.experience)}"
    embed.description = description

    if images.map_image:
        embed.set_image(url=images.map_image.url)

    if quest.task_requirements:
        names = [req.task.name for req in quest.task_requirements]
        value = ", ".join(names[:3]) + ("..." if len(names) > 3 else "")
        embed.add_field(name="Required Quests", value=value, inline=False)

    embed.set_footer(text="Enhanced with AI")
    return embed


def create_guide_embed(guide: Guide) -> discord.Embed:
    embed = discord.Embed(title="Quest Guide", color=0x3498DB)
    if guide.overview:
        embed.description = _truncate(guide.overview, 4096)
    if guide.tips:
        embed.add_field(name="Priority Tips", value=_truncate(guide.tips, 1024), inline=False)
    return embed


def create_objective_embed(
    objective: Objective,
    index: int,
    guide_text: str,
    images: ImageSet,
    max_text: int = MAX_OBJECTIVE_TEXT,
) -> discord.Embed:
    embed = discord.Embed(
        title=f"Objective {index + 1}{' (Optional)' if objective.optional else ''}",
        color=objective_color(objective.type),
    )

    description = f"**{objective.description}**\n\n"
    if guide_text and max_text > 0:
        description += _truncate(guide_text, min(max_text, MAX_OBJECTIVE_TEXT))
    else:
        description += "_No detailed guide available for this objective._"
    embed.description = _truncate(description, 4096)

    image_url = match_image(objective, index, images)
    if image_url:
        embed.set_image(url=image_url)
    return embed


def create_rewards_embed(quest: Quest) -> discord.Embed | None:
    if quest.finish_rewards is None:
        return None
    lines = _reward_lines(quest)
    if not lines:
        return None
    return discord.Embed(title="Rewards", description="\n".join(lines), color=0xF1C40F)


def _objective_header_length(objective: Objective, index: int) -> int:
    title = f"Objective {index + 1}{' (Optional)' if objective.optional else ''}"
    return len(title) + len(f"**{objective.description}**\n\n")


def create_enhanced_embeds(
    quest: Quest,
    result: EnrichmentResult,
    other_quests: Sequence[str] = (),
    max_objective_embeds: int = 6,
) -> list[discord.Embed]:
    """
    Build the full enriched reply: overview, guide, one embed per objective
    (up to ``max_objective_embeds``), and rewards if there is room.

    Objective text shares whatever is left of the per-message character
    limit after the overview and guide embeds, so a guide whose full text
    landed in every objective slot still fits in one message.
    """
    guide, images = result.guide, result.images

    overview = create_overview_embed(quest, images)
    note = other_results_note(other_quests)
    if note:
        overview.set_footer(text=f"Enhanced with AI | {note}")
    embeds = [overview]

    if guide.overview or guide.tips:
        embeds.append(create_guide_embed(guide))

    shown = min(len(quest.objectives), max_objective_embeds, MAX_EMBEDS - len(embeds))
    remaining = len(quest.objectives) - shown
    more_note = (
        f"{remaining} more objective(s) not shown. Check the wiki for full details."
        if remaining > 0
        else ""
    )

    if shown > 0:
        budget = MAX_MESSAGE_CHARS - sum(len(embed) for embed in embeds) - len(more_note)
        share = budget // shown
        for index in range(shown):
            objective = quest.objectives[index]
            text = guide.objectives[index] if index < len(guide.objectives) else ""
            max_text = share - _objective_header_length(objective, index)
            embeds.append(create_objective_embed(objective, index, text, images, max_text=max_text))

    if more_note:
        embeds[-1].set_footer(text=more_note)

    rewards = create_rewards_embed(quest)
    if rewards and len(embeds) < MAX_EMBEDS:
        embeds.append(rewards)

    embeds = embeds[:MAX_EMBEDS]
    # Oversized headers can still overflow; drop trailing embeds until it fits
    while len(embeds) > 1 and sum(len(embed) for embed in embeds) > MAX_MESSAGE_CHARS:
        embeds.pop()
    return embeds
