from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ash_aether.models.content import FlagValue
from ash_aether.models.inventory import InventoryTag, SerializedInventory
from ash_aether.models.quest import QuestStatus, SerializedQuestState
from ash_aether.utils import utc_now_iso

FACTIONS: tuple[str, ...] = ("archivists", "pilgrims", "foundry")


class WeaponMode(str, Enum):
    SWORD = "sword"
    SPEAR = "spear"
    BOW = "bow"


class PlayerStats(BaseModel):
    level: int = 1
    xp: int = 0
    xp_to_next: int = 100
    hp: int = 100
    max_hp: int = 100
    stamina: float = 100
    max_stamina: int = 100
    attack: int = 12
    defense: int = 6
    crit: float = 0.05
    move_speed: float = 145


class EquipmentState(BaseModel):
    weapon: Optional[str] = "weapon_warden_blade"
    offhand: Optional[str] = None
    armor: Optional[str] = None
    trinkets: list[Optional[str]] = Field(default_factory=lambda: [None, None])
    weapon_mode: WeaponMode = WeaponMode.SWORD


class PerkState(BaseModel):
    points: int = 0
    ranks: dict[str, int] = Field(default_factory=dict)


class RegionState(BaseModel):
    unlocked: list[str] = Field(default_factory=lambda: ["cinderhaven", "gloamwood"])
    discovered: list[str] = Field(default_factory=lambda: ["cinderhaven"])


class EquipmentUpgradeState(BaseModel):
    weapon: int = 0
    armor: int = 0


class ShopRuntimeState(BaseModel):
    stock_by_listing_id: dict[str, int] = Field(default_factory=dict)
    restock_progress: float = 0


def default_reputations() -> dict[str, int]:
    return {faction: 0 for faction in FACTIONS}


class SessionSnapshot(BaseModel):
    """Everything a GameSession needs to rebuild itself."""

    player: PlayerStats = Field(default_factory=PlayerStats)
    cinders: int = 80
    equipment: EquipmentState = Field(default_factory=EquipmentState)
    inventory: SerializedInventory = Field(default_factory=SerializedInventory)
    quests: SerializedQuestState = Field(default_factory=SerializedQuestState)
    world_flags: dict[str, FlagValue] = Field(default_factory=dict)
    reputations: dict[str, int] = Field(default_factory=default_reputations)
    perks: PerkState = Field(default_factory=PerkState)
    regions: RegionState = Field(default_factory=RegionState)
    upgrades: EquipmentUpgradeState = Field(default_factory=EquipmentUpgradeState)
    shop: ShopRuntimeState = Field(default_factory=ShopRuntimeState)
    event_log: list[str] = Field(default_factory=list)
    timestamp: str = Field(default_factory=utc_now_iso)


# -- Rewards --

class RewardItemGrant(BaseModel):
    item_id: str
    amount: int
    max_stack: Optional[int] = None
    tags: list[InventoryTag] = Field(default_factory=list)


class RewardPackage(BaseModel):
    cinders: int = 0
    xp: int = 0
    reputation: dict[str, int] = Field(default_factory=dict)
    items: list[RewardItemGrant] = Field(default_factory=list)


# -- View models polled by UI layers --

class QuestUiObjective(BaseModel):
    id: str
    description: str
    progress: int
    required: int


class QuestUiEntry(BaseModel):
    id: str
    title: str
    status: QuestStatus
    objectives: list[QuestUiObjective] = Field(default_factory=list)


class InventoryUiEntry(BaseModel):
    index: int
    item_id: Optional[str] = None
    amount: int = 0
    tags: list[InventoryTag] = Field(default_factory=list)


class HudViewModel(BaseModel):
    hp: int
    max_hp: int
    stamina: int
    max_stamina: int
    level: int
    xp: int
    xp_to_next: int
    cinders: int
    active_weapon_mode: WeaponMode
    quest_hint: str
    events: list[str] = Field(default_factory=list)
    quickbar: list[str] = Field(default_factory=list)
