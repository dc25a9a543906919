"""
TarkovGuide CLI entry point.

Provides command-line interface for running the bot and utility commands.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from tarkovguide import __version__
from tarkovguide.config.logging import get_logger, setup_logging
from tarkovguide.config.settings import Settings, load_settings


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="tarkovguide",
        description="Discord bot for Escape from Tarkov item prices and AI quest guides",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"TarkovGuide {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Run the Discord bot")
    subparsers.add_parser("config", help="Show current configuration")

    guide_parser = subparsers.add_parser(
        "guide",
        help="Generate an AI quest guide and print it to the console",
    )
    guide_parser.add_argument(
        "quest",
        help='Quest name to search for, e.g. "Gunsmith - Part 1"',
    )
    guide_parser.add_argument(
        "--show-images",
        action="store_true",
        help="Also list the images matched to each objective",
    )

    item_parser = subparsers.add_parser(
        "item",
        help="Look up an item's prices and quest usage",
    )
    item_parser.add_argument(
        "name",
        help='Item name to search for, e.g. "bitcoin"',
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    logger.info("\n=== TarkovGuide Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"\nBot Name: {settings.bot.name}")
    logger.info(f"Command Prefix: {settings.bot.command_prefix}")
    logger.info(f"Bot Token: {'Set' if settings.bot.token else 'Not set'}")
    logger.info(f"\nLLM Model: {settings.llm.model}")
    logger.info(f"LLM API Key: {'Set' if settings.llm.api_key else 'Not set'}")
    logger.info(f"\ntarkov.dev URL: {settings.tarkov_api.url}")
    logger.info(f"\nCache TTL: {settings.enrichment.cache_ttl_seconds}s")
    logger.info(f"Cache Max Entries: {settings.enrichment.cache_max_entries}")
    logger.info(f"Generation Attempts: {settings.enrichment.max_attempts}")
    logger.info(f"Wiki Scrape Timeout: {settings.enrichment.scrape_timeout_seconds}s")

    return 0


def cmd_run(settings: Settings) -> int:
    """Start the Discord bot."""
    logger = get_logger(__name__)

    if not settings.bot.token:
        logger.error(
            "Discord bot token not set. Add BOT__TOKEN=<your-token> to your .env file."
        )
        return 1

    if not settings.llm.api_key:
        logger.warning(
            "LLM API key not set (LLM_API_KEY). "
            "The bot will start but /guide will fall back to the plain quest view."
        )

    from tarkovguide.bot import TarkovGuideBot

    bot = TarkovGuideBot(settings)
    logger.info(f"Starting {settings.bot.name}...")
    # log_handler=None: disable discord.py's default logging setup and use ours
    bot.run(settings.bot.token, log_handler=None)
    return 0


async def cmd_guide(args, settings: Settings) -> int:
    """
    Search a quest, enrich it, and print the guide.

    Runs the same pipeline as /guide (search → enrichment → fallback) and
    prints the result instead of building embeds. Useful for checking
    prompt and segmentation quality before spending Discord round-trips.
    """
    import httpx

    from tarkovguide.api.client import TarkovAPIClient, TarkovAPIError
    from tarkovguide.enrichment.base import BaselineFallback
    from tarkovguide.enrichment.components import EnrichmentComponents
    from tarkovguide.enrichment.images import match_image

    logger = get_logger(__name__)

    try:
        async with TarkovAPIClient(settings.tarkov_api) as api, \
                   httpx.AsyncClient(follow_redirects=True) as scrape_client:
            try:
                quests = await api.search_quests(args.quest)
            except TarkovAPIError as e:
                print(f"\ntarkov.dev error: {e}", file=sys.stderr)
                return 1

            if not quests:
                print(f"No quests found matching {args.quest!r}.")
                return 0

            quest = quests[0]
            if len(quests) > 1:
                logger.info(f"{len(quests) - 1} other match(es): "
                            f"{', '.join(q.name for q in quests[1:4])}")

            factory = EnrichmentComponents(settings.enrichment, settings.llm)
            orchestrator = factory.create_orchestrator(client=scrape_client)

            logger.info(f"Generating guide for {quest.name!r} with {settings.llm.model}...")
            outcome = await orchestrator.enrich(quest)

            print(f"\n=== {quest.name} ===")
            print(f"Trader: {quest.trader_name}  |  Min Level: {quest.min_player_level or '-'}"
                  + (f"  |  Map: {quest.map_name}" if quest.map_name else ""))

            if isinstance(outcome, BaselineFallback):
                print(f"\n(AI enhancement unavailable: {outcome.reason})\n")
                for i, objective in enumerate(quest.objectives, start=1):
                    print(f"  {i}. {objective.description}")
                return 0

            guide, images = outcome.guide, outcome.images
            if guide.overview:
                print(f"\n--- Overview ---\n{guide.overview}")

            for index, objective in enumerate(quest.objectives):
                print(f"\n--- Objective {index + 1}: {objective.description} ---")
                text = guide.objectives[index] if index < len(guide.objectives) else ""
                print(text or "(no guide text)")
                if args.show_images:
                    print(f"  image: {match_image(objective, index, images) or '-'}")

            if guide.tips:
                print(f"\n--- Priority Tips ---\n{guide.tips}")

            print(f"\nImages: {images.total_images} "
                  f"({len(images.wiki_images)} from the wiki)")
            return 0

    except Exception as e:
        logger.error(f"Guide failed: {e}", exc_info=True)
        return 1


async def cmd_item(args, settings: Settings) -> int:
    """Search an item and print prices and quest usage."""
    from tarkovguide.api.client import TarkovAPIClient, TarkovAPIError, format_number

    logger = get_logger(__name__)

    try:
        async with TarkovAPIClient(settings.tarkov_api) as api:
            items = await api.search_items(args.name)
    except TarkovAPIError as e:
        logger.error(f"Item search failed: {e}")
        return 1

    if not items:
        print(f"No items found matching {args.name!r}.")
        return 0

    item = items[0]
    print(f"\n=== {item.name} ({item.short_name}) ===")
    print(f"Flea (24h avg): {format_number(item.avg24h_price)} ₽")
    print(f"Base price:     {format_number(item.base_price)} ₽")

    if item.sell_for:
        print("\n--- Sell ---")
        for offer in sorted(item.sell_for, key=lambda o: o.price_rub or 0, reverse=True)[:5]:
            print(f"  {offer.vendor.name}: {format_number(offer.price_rub)} ₽")

    if item.used_in_tasks:
        print(f"\n--- Needed for {len(item.used_in_tasks)} quest(s) ---")
        for task in item.used_in_tasks:
            print(f"  {task.name}")
    else:
        print("\nNot needed for any quests.")

    if len(items) > 1:
        print(f"\nOther results: {', '.join(other.name for other in items[1:])}")
    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    # Load settings
    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Override log level if specified
    if args.log_level:
        settings.log_level = args.log_level

    # Setup logging
    setup_logging(settings)

    # Execute command
    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "run":
        return cmd_run(settings)
    elif args.command == "guide":
        return asyncio.run(cmd_guide(args, settings))
    elif args.command == "item":
        return asyncio.run(cmd_item(args, settings))
    else:
        # Default: show help
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
