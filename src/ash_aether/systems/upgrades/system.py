"""Upgrade system — spends cinders and anchor dust to raise weapon/armor levels."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ash_aether.mechanics.progression import MAX_UPGRADE_LEVEL
from ash_aether.models.session import EquipmentUpgradeState

if TYPE_CHECKING:
    from ash_aether.engine.session import GameSession

logger = logging.getLogger(__name__)

ANCHOR_DUST_ID = "key_anchor_dust"


class UpgradeTarget(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"


_CINDERS_BASE = {
    UpgradeTarget.WEAPON: 48,
    UpgradeTarget.ARMOR: 40,
}


@dataclass
class UpgradeCost:
    cinders: int
    anchor_dust: int


@dataclass
class UpgradeAttempt:
    ok: bool
    target: UpgradeTarget
    next_level: int
    spent_cinders: int = 0
    spent_anchor_dust: int = 0
    reason: str = ""


class UpgradeSystem:
    def get_upgrade_level(self, target: UpgradeTarget | str, state: EquipmentUpgradeState) -> int:
        return getattr(state, UpgradeTarget(target).value)

    def get_upgrade_cost(self, target: UpgradeTarget | str, next_level: int) -> UpgradeCost:
        base = _CINDERS_BASE[UpgradeTarget(target)]
        return UpgradeCost(
            cinders=base + next_level * next_level * 18,
            anchor_dust=max(1, next_level),
        )

    def get_attack_bonus(self, level: int) -> int:
        return level * 3

    def get_defense_bonus(self, level: int) -> int:
        return level * 2

    def try_upgrade(self, target: UpgradeTarget | str, session: GameSession) -> UpgradeAttempt:
        target = UpgradeTarget(target)
        current = self.get_upgrade_level(target, session.get_equipment_upgrades())

        if current >= MAX_UPGRADE_LEVEL:
            return UpgradeAttempt(
                ok=False, target=target, next_level=current,
                reason=f"{target.value} is already +{MAX_UPGRADE_LEVEL}.",
            )

        next_level = current + 1
        cost = self.get_upgrade_cost(target, next_level)
        if session.get_cinders() < cost.cinders:
            return UpgradeAttempt(ok=False, target=target, next_level=next_level, reason="Not enough cinders.")
        if session.count_item(ANCHOR_DUST_ID) < cost.anchor_dust:
            return UpgradeAttempt(ok=False, target=target, next_level=next_level, reason="Not enough Anchor Dust.")

        session.spend_cinders(cost.cinders)
        session.remove_item(ANCHOR_DUST_ID, cost.anchor_dust)
        session.set_equipment_upgrade_level(target.value, next_level)
        logger.info("Upgraded %s to +%d", target.value, next_level)
        return UpgradeAttempt(
            ok=True, target=target, next_level=next_level,
            spent_cinders=cost.cinders, spent_anchor_dust=cost.anchor_dust,
        )
