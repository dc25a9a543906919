"""
tarkov.dev GraphQL client.

Thin async wrapper around the public tarkov.dev API. Two queries are
supported: a name search over items (prices, trader offers, quest usage)
and a name search over quests ("tasks") with everything the quest views and
the enrichment pipeline read.

Example:
    >>> async with TarkovAPIClient(settings.tarkov_api) as api:
    ...     quests = await api.search_quests("spa tour")
    ...     items = await api.search_items("bitcoin")
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from tarkovguide.api.models import Item, Quest
from tarkovguide.config.logging import get_logger
from tarkovguide.config.settings import TarkovAPISettings

logger = get_logger(__name__)

ITEM_SEARCH_QUERY = """
query SearchItem($name: String!, $limit: Int) {
  items(name: $name, limit: $limit) {
    id
    name
    shortName
    description
    basePrice
    avg24hPrice
    updated
    types
    wikiLink
    iconLink
    sellFor { vendor { name } price currency priceRUB }
    buyFor { vendor { name } price currency priceRUB }
    usedInTasks {
      id
      name
      trader { name }
      minPlayerLevel
      objectives { description optional }
    }
  }
}
"""

_ITEM_FIELDS = "name shortName iconLink image512pxLink"

QUEST_SEARCH_QUERY = f"""
query SearchQuest($name: String!) {{
  tasks(name: $name) {{
    id
    name
    trader {{ name }}
    map {{ name }}
    experience
    wikiLink
    minPlayerLevel
    taskRequirements {{ task {{ name }} status }}
    traderLevelRequirements {{ trader {{ name }} level }}
    objectives {{
      id
      type
      description
      optional
      ... on TaskObjectiveItem {{
        count
        foundInRaid
        item {{ {_ITEM_FIELDS} }}
        items {{ {_ITEM_FIELDS} }}
      }}
      ... on TaskObjectiveMark {{
        markerItem {{ {_ITEM_FIELDS} }}
      }}
      ... on TaskObjectiveQuestItem {{
        count
        questItem {{ name shortName iconLink }}
      }}
    }}
    finishRewards {{
      items {{ item {{ name shortName }} count }}
      traderStanding {{ trader {{ name }} standing }}
      offerUnlock {{ trader {{ name }} level item {{ name shortName }} }}
    }}
  }}
}}
"""


class TarkovAPIError(Exception):
    """Raised when the tarkov.dev API can't be reached or returns GraphQL errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class TarkovAPIClient:
    """
    Async client for the tarkov.dev GraphQL endpoint.

    The underlying ``httpx.AsyncClient`` is created in ``initialize()`` (or
    on entering the async context) unless one is injected, in which case the
    caller owns its lifecycle.

    Args:
        settings: Endpoint URL, timeout and search limit
        client: Optional pre-built httpx client (tests pass one with a MockTransport)
    """

    def __init__(self, settings: TarkovAPISettings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    async def initialize(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout)
            logger.info(f"tarkov.dev client ready ({self.settings.url})")

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TarkovAPIClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search_items(self, name: str) -> list[Item]:
        """
        Search items by (partial) name.

        Returns:
            Matching items, most relevant first (API order)

        Raises:
            TarkovAPIError: On transport failure or GraphQL errors
        """
        data = await self._execute(
            ITEM_SEARCH_QUERY, {"name": name, "limit": self.settings.search_limit}
        )
        raw_items = data.get("items") or []
        try:
            return [Item.model_validate(self._rename_item_usage(raw)) for raw in raw_items]
        except ValidationError as e:
            raise TarkovAPIError(f"Unexpected item payload: {e}", cause=e) from e

    async def search_quests(self, name: str) -> list[Quest]:
        """
        Search quests by (partial) name.

        Returns:
            Matching quests, most relevant first (API order)

        Raises:
            TarkovAPIError: On transport failure or GraphQL errors
        """
        data = await self._execute(QUEST_SEARCH_QUERY, {"name": name})
        raw_quests = data.get("tasks") or []
        try:
            return [Quest.model_validate(raw) for raw in raw_quests]
        except ValidationError as e:
            raise TarkovAPIError(f"Unexpected quest payload: {e}", cause=e) from e

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a GraphQL query and return its ``data`` object."""
        if self._client is None:
            await self.initialize()

        try:
            response = await self._client.post(
                self.settings.url,
                json={"query": query, "variables": variables},
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching from tarkov.dev: {e}")
            raise TarkovAPIError(f"tarkov.dev request failed: {e}", cause=e) from e

        if payload.get("errors"):
            logger.error(f"GraphQL errors: {payload['errors']}")
            messages = "; ".join(err.get("message", "unknown error") for err in payload["errors"])
            raise TarkovAPIError(f"tarkov.dev returned errors: {messages}")

        return payload.get("data") or {}

    @staticmethod
    def _rename_item_usage(raw: dict[str, Any]) -> dict[str, Any]:
        """Expose each usedInTasks entry's objective list under ``objectivesWithItem``."""
        tasks = []
        for task in raw.get("usedInTasks") or []:
            task = dict(task)
            task["objectivesWithItem"] = task.pop("objectives", None) or []
            tasks.append(task)
        return {**raw, "usedInTasks": tasks}


def format_number(value: float | int | None) -> str:
    """Format a number with thousands separators (``None`` renders as ``0``)."""
    if value is None:
        return "0"
    return f"{value:,}"


def currency_symbol(currency: str | None) -> str:
    """Map a currency code to its symbol, falling back to the code itself."""
    symbols = {"RUB": "₽", "USD": "$", "EUR": "€"}
    return symbols.get(currency or "", currency or "")
