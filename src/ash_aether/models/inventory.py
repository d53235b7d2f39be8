from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class InventoryTag(str, Enum):
    QUEST = "quest"
    MATERIAL = "material"
    CONSUMABLE = "consumable"
    GEAR = "gear"
    KEY = "key"


class ItemStack(BaseModel):
    item_id: str
    amount: int
    max_stack: int
    tags: list[InventoryTag] = Field(default_factory=list)


class SerializedInventory(BaseModel):
    width: int = 6
    height: int = 8
    slots: list[ItemStack | None] = Field(default_factory=list)
    quickbar: list[int | None] = Field(default_factory=lambda: [None] * 8)
