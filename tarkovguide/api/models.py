"""
Data models for tarkov.dev GraphQL responses.

The API speaks camelCase; every model here uses snake_case attributes with a
camelCase alias generator so responses validate directly:

    >>> quest = Quest.model_validate(payload["data"]["tasks"][0])
    >>> quest.min_player_level
    15

Quest-side models are frozen: the enrichment pipeline hands the same quest
snapshot to concurrent tasks and must be able to rely on it not changing.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TarkovModel(BaseModel):
    """Base model: camelCase aliases, construction by field name allowed, immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Trader(TarkovModel):
    name: str


class Vendor(TarkovModel):
    name: str


class Map(TarkovModel):
    """A game map. ``image_link`` is only set when the data source provides one."""

    name: str
    image_link: str | None = None


class ItemRef(TarkovModel):
    """An item as referenced from a quest objective or reward."""

    name: str
    short_name: str | None = None
    icon_link: str | None = None
    image_link: str | None = Field(default=None, alias="image512pxLink")


class Objective(TarkovModel):
    """
    A single quest objective.

    ``item``, ``items``, ``marker_item`` and ``quest_item`` are the structural
    references tarkov.dev exposes on the TaskObjectiveItem / TaskObjectiveMark /
    TaskObjectiveQuestItem variants; the image collector turns them into images.
    """

    id: str | None = None
    type: str | None = None
    description: str
    optional: bool = False
    count: int | None = None
    found_in_raid: bool | None = None
    item: ItemRef | None = None
    items: list[ItemRef] = Field(default_factory=list)
    marker_item: ItemRef | None = None
    quest_item: ItemRef | None = None


class TaskRef(TarkovModel):
    name: str


class TaskRequirement(TarkovModel):
    task: TaskRef
    status: list[str] = Field(default_factory=list)


class TraderLevelRequirement(TarkovModel):
    trader: Trader
    level: int


class ItemReward(TarkovModel):
    item: ItemRef
    count: int = 1


class TraderStanding(TarkovModel):
    trader: Trader
    standing: float


class OfferUnlock(TarkovModel):
    item: ItemRef
    trader: Trader | None = None
    level: int | None = None


class QuestRewards(TarkovModel):
    items: list[ItemReward] = Field(default_factory=list)
    trader_standing: list[TraderStanding] = Field(default_factory=list)
    offer_unlock: list[OfferUnlock] = Field(default_factory=list)


class Quest(TarkovModel):
    """A quest ("task" in the tarkov.dev schema)."""

    id: str
    name: str
    trader: Trader | None = None
    map: Map | None = None
    min_player_level: int | None = None
    experience: int | None = None
    wiki_link: str | None = None
    objectives: list[Objective] = Field(default_factory=list)
    task_requirements: list[TaskRequirement] = Field(default_factory=list)
    trader_level_requirements: list[TraderLevelRequirement] = Field(default_factory=list)
    finish_rewards: QuestRewards | None = None

    @property
    def trader_name(self) -> str:
        return self.trader.name if self.trader else "Unknown"

    @property
    def map_name(self) -> str | None:
        return self.map.name if self.map else None


# ---------------------------------------------------------------------------
# Item search
# ---------------------------------------------------------------------------


class ItemPrice(TarkovModel):
    vendor: Vendor
    price: int | None = None
    currency: str | None = None
    price_rub: int | None = Field(default=None, alias="priceRUB")


class ObjectiveSummary(TarkovModel):
    description: str
    optional: bool = False


class ItemTaskUsage(TarkovModel):
    """A quest that needs the searched item."""

    id: str
    name: str
    trader: Trader | None = None
    min_player_level: int | None = None
    objectives_with_item: list[ObjectiveSummary] = Field(default_factory=list)


class Item(TarkovModel):
    """An item returned by the item search query."""

    id: str
    name: str
    short_name: str
    description: str | None = None
    base_price: int | None = None
    avg24h_price: int | None = Field(default=None, alias="avg24hPrice")
    updated: str | None = None
    types: list[str] = Field(default_factory=list)
    wiki_link: str | None = None
    icon_link: str | None = None
    sell_for: list[ItemPrice] = Field(default_factory=list)
    buy_for: list[ItemPrice] = Field(default_factory=list)
    used_in_tasks: list[ItemTaskUsage] = Field(default_factory=list)
