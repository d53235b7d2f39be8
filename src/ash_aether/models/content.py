"""Schemas for the static content bundle.

Every category of game-design data (items, enemies, loot tables, quests,
dialogues, perks, recipes, regions) has one model here. The validator parses
raw TOML rows through these models and reports pydantic's errors per record.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ash_aether.models.inventory import InventoryTag
from ash_aether.models.quest import QuestStatus

NonEmptyStr = Annotated[str, Field(min_length=1)]
FlagValue = Union[bool, int, float, str]


class ItemType(str, Enum):
    CONSUMABLE = "consumable"
    MATERIAL = "material"
    WEAPON = "weapon"
    ARMOR = "armor"
    QUEST = "quest"
    KEY = "key"


class Rarity(str, Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    RELIC = "Relic"


class ObjectiveType(str, Enum):
    KILL = "kill"
    COLLECT = "collect"
    TALK = "talk"
    ENTER_ZONE = "enter_zone"
    SOLVE_PUZZLE = "solve_puzzle"


class QuestCategory(str, Enum):
    MAIN = "main"
    SIDE = "side"
    FACTION = "faction"
    BOUNTY = "bounty"
    EXPLORATION = "exploration"


class PerkBranch(str, Enum):
    WARDEN = "Warden"
    ECHO = "Echo"
    FOUNDRY = "Foundry"


class CraftStation(str, Enum):
    FOUNDRY = "foundry"
    CAMP = "camp"


class Biome(str, Enum):
    HUB = "hub"
    FOREST = "forest"
    QUARRY = "quarry"
    MARSH = "marsh"
    DUNGEON = "dungeon"


# -- Items --

class StatsModifiers(BaseModel):
    attack: Optional[int] = None
    defense: Optional[int] = None
    crit: Optional[float] = Field(default=None, ge=0)
    move_speed: Optional[float] = Field(default=None, ge=0)


class UseEffect(BaseModel):
    heal: Optional[int] = Field(default=None, ge=0)
    stamina: Optional[int] = Field(default=None, ge=0)
    buff_id: Optional[str] = None
    duration_seconds: Optional[float] = Field(default=None, gt=0)


class ItemData(BaseModel):
    id: NonEmptyStr
    name: NonEmptyStr
    description: NonEmptyStr
    icon: NonEmptyStr
    type: ItemType
    rarity: Rarity
    stack_size: int = Field(ge=1, le=999)
    value: int = Field(ge=0)
    stats_modifiers: Optional[StatsModifiers] = None
    tags: list[str] = Field(default_factory=list)
    use_effect: Optional[UseEffect] = None


# -- Enemies and loot --

class EnemyAnimations(BaseModel):
    idle: NonEmptyStr
    walk: NonEmptyStr
    attack: NonEmptyStr
    hurt: NonEmptyStr
    death: NonEmptyStr


class Hitbox(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    offset_x: float
    offset_y: float


class EnemyData(BaseModel):
    id: NonEmptyStr
    name: NonEmptyStr
    hp: int = Field(gt=0)
    attack: int = Field(ge=0)
    defense: int = Field(ge=0)
    speed: float = Field(gt=0)
    loot_table_id: NonEmptyStr
    ai_profile_id: NonEmptyStr
    animations: EnemyAnimations
    hitbox: Hitbox


class LootEntry(BaseModel):
    item_id: NonEmptyStr
    chance: float = Field(ge=0, le=1)
    min_amount: int = Field(ge=1)
    max_amount: int = Field(ge=1)

    @field_validator("max_amount")
    @classmethod
    def _max_not_below_min(cls, value: int, info: ValidationInfo) -> int:
        min_amount = info.data.get("min_amount")
        if min_amount is not None and value < min_amount:
            raise ValueError("max_amount must be greater than or equal to min_amount")
        return value


class LootTableData(BaseModel):
    id: NonEmptyStr
    entries: list[LootEntry] = Field(min_length=1)


# -- Quests --

class QuestFlagPrerequisite(BaseModel):
    id: NonEmptyStr
    equals: bool


class QuestPrerequisiteData(BaseModel):
    flags: list[QuestFlagPrerequisite] = Field(default_factory=list)
    quests: list[NonEmptyStr] = Field(default_factory=list)


class QuestObjectiveData(BaseModel):
    id: NonEmptyStr
    type: ObjectiveType
    target_id: NonEmptyStr
    required: int = Field(gt=0)


class RewardItem(BaseModel):
    item_id: NonEmptyStr
    amount: int = Field(gt=0)


class RewardReputation(BaseModel):
    faction_id: NonEmptyStr
    amount: int


class QuestRewards(BaseModel):
    items: list[RewardItem] = Field(default_factory=list)
    cinders: int = Field(ge=0)
    xp: int = Field(ge=0)
    reputation: list[RewardReputation] = Field(default_factory=list)


class FlagAssignment(BaseModel):
    id: NonEmptyStr
    value: bool


class QuestCompletion(BaseModel):
    set_flags: list[FlagAssignment] = Field(default_factory=list)
    unlock_regions: list[NonEmptyStr] = Field(default_factory=list)


class QuestData(BaseModel):
    id: NonEmptyStr
    title: NonEmptyStr
    description: NonEmptyStr
    category: QuestCategory
    prerequisites: Optional[QuestPrerequisiteData] = None
    objectives: list[QuestObjectiveData] = Field(min_length=1)
    rewards: QuestRewards
    on_complete: Optional[QuestCompletion] = None


# -- Dialogue conditions and effects --

class FlagEqualsCondition(BaseModel):
    type: Literal["flag_equals"] = "flag_equals"
    flag_id: NonEmptyStr
    equals: FlagValue


class StatAtLeastCondition(BaseModel):
    type: Literal["stat_at_least"] = "stat_at_least"
    stat_id: NonEmptyStr
    value: float


class ItemCountAtLeastCondition(BaseModel):
    type: Literal["item_count_at_least"] = "item_count_at_least"
    item_id: NonEmptyStr
    value: int = Field(ge=0)


class ReputationAtLeastCondition(BaseModel):
    type: Literal["reputation_at_least"] = "reputation_at_least"
    faction_id: NonEmptyStr
    value: int


class QuestStatusCondition(BaseModel):
    type: Literal["quest_status"] = "quest_status"
    quest_id: NonEmptyStr
    status: QuestStatus


DialogueCondition = Annotated[
    Union[
        FlagEqualsCondition,
        StatAtLeastCondition,
        ItemCountAtLeastCondition,
        ReputationAtLeastCondition,
        QuestStatusCondition,
    ],
    Field(discriminator="type"),
]


class SetFlagEffect(BaseModel):
    type: Literal["set_flag"] = "set_flag"
    flag_id: NonEmptyStr
    value: FlagValue


class AddReputationEffect(BaseModel):
    type: Literal["add_reputation"] = "add_reputation"
    faction_id: NonEmptyStr
    value: int


class AddItemEffect(BaseModel):
    type: Literal["add_item"] = "add_item"
    item_id: NonEmptyStr
    amount: int = Field(gt=0)


class StartQuestEffect(BaseModel):
    type: Literal["start_quest"] = "start_quest"
    quest_id: NonEmptyStr


class CompleteQuestEffect(BaseModel):
    type: Literal["complete_quest"] = "complete_quest"
    quest_id: NonEmptyStr


DialogueEffect = Annotated[
    Union[
        SetFlagEffect,
        AddReputationEffect,
        AddItemEffect,
        StartQuestEffect,
        CompleteQuestEffect,
    ],
    Field(discriminator="type"),
]


class DialogueChoice(BaseModel):
    id: NonEmptyStr
    text: NonEmptyStr
    next_node_id: NonEmptyStr
    conditions: list[DialogueCondition] = Field(default_factory=list)
    effects: list[DialogueEffect] = Field(default_factory=list)


class DialogueNode(BaseModel):
    id: NonEmptyStr
    speaker_id: NonEmptyStr
    portrait: Optional[str] = None
    text: NonEmptyStr
    tags: list[str] = Field(default_factory=list)
    conditions: list[DialogueCondition] = Field(default_factory=list)
    effects: list[DialogueEffect] = Field(default_factory=list)
    choices: list[DialogueChoice] = Field(default_factory=list)


class DialogueData(BaseModel):
    conversation_id: NonEmptyStr
    nodes: list[DialogueNode] = Field(min_length=1)


# -- Perks, recipes, regions --

class PerkData(BaseModel):
    id: NonEmptyStr
    branch: PerkBranch
    name: NonEmptyStr
    description: NonEmptyStr
    max_rank: int = Field(gt=0)
    effects: dict[str, float]


class RecipeOutput(BaseModel):
    item_id: NonEmptyStr
    amount: int = Field(gt=0)
    max_stack: int = Field(gt=0)
    tags: list[InventoryTag]


class RecipeCost(BaseModel):
    item_id: NonEmptyStr
    amount: int = Field(gt=0)


class RecipeData(BaseModel):
    id: NonEmptyStr
    name: NonEmptyStr
    station: CraftStation
    output: RecipeOutput
    cost: list[RecipeCost]
    cinders_cost: int = Field(ge=0)


class RegionData(BaseModel):
    id: NonEmptyStr
    name: NonEmptyStr
    biome: Biome
    recommended_level: int = Field(gt=0)
    neighbors: list[NonEmptyStr] = Field(default_factory=list)
    signature_puzzle: NonEmptyStr


# -- Shops (loaded beside the bundle, not part of validate_content) --

class ShopListing(BaseModel):
    id: NonEmptyStr
    item_id: NonEmptyStr
    display_name: NonEmptyStr
    buy_price: int = Field(ge=0)
    base_stock: int = Field(ge=0)
    restock_to: int = Field(ge=0)
    max_stack: Optional[int] = Field(default=None, gt=0)
    tags: list[InventoryTag] = Field(default_factory=list)
