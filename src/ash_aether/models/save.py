"""Versioned save envelopes.

Each persisted slot holds one of these shapes, tagged by ``saveVersion``.
Only ``SaveFile`` (the current version) is ever written; the older shapes
exist so the migration steps can validate what they read.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ash_aether.models.content import FlagValue
from ash_aether.models.inventory import SerializedInventory
from ash_aether.models.quest import SerializedQuestState
from ash_aether.models.session import SessionSnapshot

CURRENT_SAVE_VERSION = 3
VERSION_KEY = "saveVersion"


class SavePlayerV1(BaseModel):
    level: int
    hp: int
    max_hp: int
    cinders: int


class SavePlayerV2(SavePlayerV1):
    stamina: float
    max_stamina: int


class SaveFileV1(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    save_version: Literal[1] = Field(default=1, alias=VERSION_KEY)
    timestamp: str
    player: SavePlayerV1
    inventory: SerializedInventory
    quests: SerializedQuestState
    world_flags: dict[str, FlagValue] = Field(default_factory=dict)


class SaveFileV2(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    save_version: Literal[2] = Field(default=2, alias=VERSION_KEY)
    timestamp: str
    player: SavePlayerV2
    inventory: SerializedInventory
    quests: SerializedQuestState
    world_flags: dict[str, FlagValue] = Field(default_factory=dict)


class SaveFile(BaseModel):
    """Current save shape: the whole session snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    save_version: Literal[3] = Field(default=CURRENT_SAVE_VERSION, alias=VERSION_KEY)
    timestamp: str
    session: SessionSnapshot

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
