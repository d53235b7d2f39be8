"""Save format migrations — pure functions keyed by the version they upgrade from.

Each step takes a payload dict at version N and returns a new dict at N+1.
Inputs are never mutated.
"""
from __future__ import annotations

import copy
from typing import Callable

from ash_aether.models.save import (
    CURRENT_SAVE_VERSION,
    VERSION_KEY,
    SaveFile,
    SaveFileV1,
    SaveFileV2,
)
from ash_aether.models.session import (
    EquipmentState,
    EquipmentUpgradeState,
    PerkState,
    PlayerStats,
    RegionState,
    SessionSnapshot,
    ShopRuntimeState,
    default_reputations,
)

MigrationStep = Callable[[dict], dict]

DEFAULT_STAMINA = 100


def migrate_v1_to_v2(payload: dict) -> dict:
    """Version 2 introduced stamina."""
    v1 = SaveFileV1.model_validate(payload)
    v2 = SaveFileV2(
        timestamp=v1.timestamp,
        player={
            **v1.player.model_dump(),
            "stamina": DEFAULT_STAMINA,
            "max_stamina": DEFAULT_STAMINA,
        },
        inventory=v1.inventory,
        quests=v1.quests,
        world_flags=v1.world_flags,
    )
    return v2.model_dump(mode="json", by_alias=True)


def migrate_v2_to_v3(payload: dict) -> dict:
    """Version 3 stores the full session snapshot; new sections start at their defaults."""
    v2 = SaveFileV2.model_validate(payload)
    player = PlayerStats(
        level=v2.player.level,
        hp=v2.player.hp,
        max_hp=v2.player.max_hp,
        stamina=v2.player.stamina,
        max_stamina=v2.player.max_stamina,
    )
    session = SessionSnapshot(
        player=player,
        cinders=v2.player.cinders,
        equipment=EquipmentState(),
        inventory=v2.inventory,
        quests=v2.quests,
        world_flags=v2.world_flags,
        reputations=default_reputations(),
        perks=PerkState(),
        regions=RegionState(),
        upgrades=EquipmentUpgradeState(),
        shop=ShopRuntimeState(),
        event_log=[],
        timestamp=v2.timestamp,
    )
    v3 = SaveFile(timestamp=v2.timestamp, session=session)
    return v3.to_payload()


MIGRATIONS: dict[int, MigrationStep] = {
    1: migrate_v1_to_v2,
    2: migrate_v2_to_v3,
}


def read_version(payload: dict) -> int:
    version = payload.get(VERSION_KEY) if isinstance(payload, dict) else None
    if not isinstance(version, int) or isinstance(version, bool):
        raise ValueError("Save payload has no saveVersion")
    return version


def migrate_save(payload: dict) -> SaveFile:
    """Upgrade a raw save payload of any known version to the current SaveFile."""
    current = copy.deepcopy(payload)
    version = read_version(current)

    while version < CURRENT_SAVE_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise ValueError(f"No migration path from saveVersion={version}")
        current = step(current)
        version = read_version(current)

    if version != CURRENT_SAVE_VERSION:
        raise ValueError(f"Unsupported future save version: {version}")

    return SaveFile.model_validate(current)
