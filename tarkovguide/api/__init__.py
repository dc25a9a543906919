"""
tarkov.dev API Layer.

GraphQL client plus the pydantic models its responses validate into.
"""

from tarkovguide.api.client import TarkovAPIClient, TarkovAPIError, currency_symbol, format_number
from tarkovguide.api.models import Item, Map, Objective, Quest, QuestRewards, Trader

__all__ = [
    "TarkovAPIClient",
    "TarkovAPIError",
    "Item",
    "Map",
    "Objective",
    "Quest",
    "QuestRewards",
    "Trader",
    "currency_symbol",
    "format_number",
]
